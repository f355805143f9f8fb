"""
File models for the ABCD objectives wizard.

Models representing the structure of JSON files in the .abcd/ directory.
"""

from typing import List, Optional

from pydantic import Field

from abcd_wizard.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_AUDIENCE,
    DEFAULT_EXPORT_DIR,
    DEFAULT_GAP_DEBOUNCE_SECONDS,
    DEFAULT_OBJECTIVE_DEBOUNCE_SECONDS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SUBTASK_DEBOUNCE_SECONDS,
)

from .base import WizardModel
from .context import NASection, NASummary
from .entities import GapClassification, SubTask, TriageItem, WizardObjective


class WizardSnapshot(WizardModel):
    """Model for courses/<courseId>.json.

    Everything the wizard loads for one course, in wizard format.
    """

    course_id: str
    course_name: str = ""
    objectives: List[WizardObjective] = Field(default_factory=list)
    triage_items: List[TriageItem] = Field(default_factory=list)
    sub_tasks: List[SubTask] = Field(default_factory=list)
    gap: GapClassification = Field(default_factory=GapClassification)
    na_summary: Optional[NASummary] = None
    na_sections: List[NASection] = Field(default_factory=list)
    audiences: List[str] = Field(default_factory=list)

    @property
    def default_audience(self) -> str:
        """First audience name, used when an objective names none."""
        return self.audiences[0] if self.audiences else DEFAULT_AUDIENCE


class ExportRow(WizardModel):
    """One objective line in an export."""

    id: str
    text: str
    bloom_level: str = ""
    priority: str = ""
    requires_assessment: bool = False


class ExportGroup(WizardModel):
    """Objectives sharing a parent task (or the "Ungrouped" bucket)."""

    task: str
    objectives: List[ExportRow] = Field(default_factory=list)


class ExportFile(WizardModel):
    """Model for an exported objectives table."""

    course_id: str
    course_name: str = ""
    default_audience: str = DEFAULT_AUDIENCE
    objective_count: int = 0
    assessed_count: int = 0
    groups: List[ExportGroup] = Field(default_factory=list)
    uncovered_tasks: List[str] = Field(default_factory=list)


class ConfigFile(WizardModel):
    """Model for config.json file.

    Wizard settings and configuration. Keys are stored snake_case.
    """

    schema_version: str = "0.1.0"

    # API settings
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # Autosave settings
    subtask_debounce_seconds: float = DEFAULT_SUBTASK_DEBOUNCE_SECONDS
    objective_debounce_seconds: float = DEFAULT_OBJECTIVE_DEBOUNCE_SECONDS
    gap_debounce_seconds: float = DEFAULT_GAP_DEBOUNCE_SECONDS

    # Display settings
    default_audience: str = DEFAULT_AUDIENCE
    export_dir: str = DEFAULT_EXPORT_DIR
