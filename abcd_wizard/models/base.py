"""
Base types for the wizard entity model.

Enumerations for every closed vocabulary the wizard uses, plus the shared
pydantic base that maps snake_case attributes to the API's camelCase names.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TriageColumn(str, Enum):
    """Priority column a triage item sits in."""

    MUST = "must"
    SHOULD = "should"
    NICE = "nice"


class TriageSource(str, Enum):
    """Where a triage item came from."""

    NA = "NA"
    TASK_ANALYSIS = "TaskAnalysis"
    CUSTOM = "Custom"


class SubTaskStatus(str, Enum):
    """Whether the audience already performs a sub-task."""

    NEW = "New"
    ALREADY_CAN_DO = "Already can do"
    UNCERTAIN = "Uncertain"


class BloomLevel(str, Enum):
    """Bloom's taxonomy cognitive process levels."""

    REMEMBER = "Remember"
    UNDERSTAND = "Understand"
    APPLY = "Apply"
    ANALYZE = "Analyze"
    EVALUATE = "Evaluate"
    CREATE = "Create"


class BloomKnowledge(str, Enum):
    """Anderson-Krathwohl knowledge dimension."""

    FACTUAL = "Factual"
    CONCEPTUAL = "Conceptual"
    PROCEDURAL = "Procedural"
    METACOGNITIVE = "Metacognitive"


class ObjectivePriority(str, Enum):
    """Priority label of an objective."""

    MUST_HAVE = "Must Have"
    SHOULD_HAVE = "Should Have"
    NICE_TO_HAVE = "Nice to Have"


class StepKey(str, Enum):
    """Wizard steps, in display order."""

    CONTEXT = "context"
    PRIORITY = "priority"
    TASKS = "tasks"
    BUILDER = "builder"
    VALIDATION = "validation"
    EXPORT = "export"


class StepStatus(str, Enum):
    """Readiness indicator shown in the stepper."""

    NONE = "none"
    PROGRESS = "progress"
    DONE = "done"
    SKIP = "skip"


class WizardModel(BaseModel):
    """
    Base for all wizard models.

    Attributes are snake_case in Python and camelCase on the wire; both
    spellings are accepted on input. Defaults and assignments are validated
    too, so enum fields always hold plain string values.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        use_enum_values=True,
        validate_default=True,
    )

    def to_wire(self) -> dict:
        """Dump the model using the API's camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)
