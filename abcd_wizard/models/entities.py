"""
Entity models for the objectives wizard.

TriageItem, SubTask, WizardObjective and GapClassification are plain data:
all behavior lives in the managers that read them.
"""

from typing import Literal, Optional, Union

from pydantic import Field

from abcd_wizard.models.base import (
    BloomKnowledge,
    BloomLevel,
    ObjectivePriority,
    SubTaskStatus,
    TriageColumn,
    TriageSource,
    WizardModel,
)
from abcd_wizard.utils import new_temp_id
from abcd_wizard.constants import TEMP_OBJECTIVE_PREFIX


class TriageItem(WizardModel):
    """A candidate training task, sorted into a Must/Should/Nice column.

    Items in the ``nice`` column never take part in objective linking or
    traceability.
    """

    id: str
    course_id: str = ""
    text: str = ""
    column: TriageColumn = TriageColumn.SHOULD
    source: TriageSource = TriageSource.CUSTOM
    sort_order: int = 0

    @property
    def is_active(self) -> bool:
        """Whether the item takes part in objective linking."""
        return self.column != TriageColumn.NICE.value


class SubTask(WizardModel):
    """An observable step decomposing one triage item."""

    id: str
    parent_item_id: str
    text: str = ""
    is_new: SubTaskStatus = SubTaskStatus.NEW
    sort_order: int = 0

    @property
    def generates_objective(self) -> bool:
        """Only sub-tasks the audience cannot do yet become objectives."""
        return self.is_new == SubTaskStatus.NEW.value


class WizardObjective(WizardModel):
    """
    A single ABCD learning objective.

    Fields:
    - audience, behavior, condition, criteria: the ABCD components
    - verb, bloom_level, bloom_knowledge: taxonomy classification
    - freeform_text: alternate free text, kept alongside the ABCD fields
    - priority, requires_assessment, rationale, wiifm: design metadata
    - linked_task_id: weak reference to a TriageItem (may dangle)
    """

    id: str = Field(default_factory=lambda: new_temp_id(TEMP_OBJECTIVE_PREFIX))
    audience: str = ""
    behavior: str = ""
    verb: str = ""
    bloom_level: Union[BloomLevel, Literal[""]] = ""
    bloom_knowledge: Union[BloomKnowledge, Literal[""]] = ""
    condition: str = ""
    criteria: str = ""
    freeform_text: str = ""
    priority: Union[ObjectivePriority, Literal[""]] = ObjectivePriority.SHOULD_HAVE
    requires_assessment: bool = False
    rationale: str = ""
    wiifm: str = ""
    linked_task_id: Optional[str] = None
    sort_order: int = 0

    @property
    def is_composed(self) -> bool:
        """Whether condition, behavior and criteria are all filled in."""
        return bool(self.condition and self.behavior and self.criteria)


class GapClassification(WizardModel):
    """Nature of the performance gap driving the course."""

    knowledge: bool = False
    skill: bool = False

    def to_wire(self) -> dict:
        """Dump in the shape the gap endpoint expects."""
        return {"gapKnowledge": self.knowledge, "gapSkill": self.skill}
