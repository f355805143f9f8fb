"""
WizardCore - one objectives wizard session for a course.

Orchestrates the store, autosave, navigation and the read-only engines.
Uses StorageManager for .abcd/ snapshots and exports.
Uses a per-session EventBus so autosave reacts to store mutations.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from abcd_wizard.api_client import WizardApiClient
from abcd_wizard.constants import get_export_dir
from abcd_wizard.exceptions import NotFoundError
from abcd_wizard.managers import (
    AutosaveListener,
    AutosaveManager,
    EventBus,
    NavigationManager,
    Scheduler,
    StepTracker,
    StorageManager,
    WizardStore,
    build_export,
    build_validation_report,
    compose_objective_text,
    review_objective,
    uncovered_tasks,
)
from abcd_wizard.managers.composition import ReviewNote
from abcd_wizard.managers.traceability import ValidationReport
from abcd_wizard.models.base import StepKey, StepStatus, SubTaskStatus, TriageColumn
from abcd_wizard.models.entities import GapClassification, SubTask, TriageItem, WizardObjective
from abcd_wizard.models.files import ExportFile, WizardSnapshot

logger = logging.getLogger(__name__)


class WizardCore:
    """
    Core class for one wizard session.

    Orchestrates manager classes:
    - WizardStore: In-memory session state, the single writer
    - AutosaveManager: Debounced, optimistic persistence to the course API
    - StorageManager: Local snapshots and exports in .abcd/
    - NavigationManager: Current wizard step
    - StepTracker: Per-step readiness
    - EventBus: Store mutations fan out to the autosave listener
    """

    def __init__(
        self,
        course_id: str,
        wizard_dir: Optional[Path] = None,
        client: Optional[WizardApiClient] = None,
        scheduler: Optional[Scheduler] = None,
        autosave_enabled: bool = True,
    ) -> None:
        """
        Initialize WizardCore for a course. Nothing is loaded yet.

        Args:
            course_id: Course to edit.
            wizard_dir: Path to .abcd/ directory. Defaults to .abcd/ in current directory.
            client: API client. Defaults to one built from config.
            scheduler: Autosave scheduler. Defaults to ThreadedScheduler.
            autosave_enabled: Whether edits are written to the API.
        """
        self.course_id = course_id
        self.storage = StorageManager(wizard_dir, export_dir=get_export_dir())
        self.client = client or WizardApiClient()

        self.event_bus = EventBus()
        self.store = WizardStore(course_id, event_bus=self.event_bus)
        self.navigator = NavigationManager()
        self.step_tracker = StepTracker(self.store)

        self.autosave: Optional[AutosaveManager] = None
        if autosave_enabled:
            self.autosave = AutosaveManager(self.store, self.client, scheduler=scheduler)
            self.autosave_listener = AutosaveListener(self.autosave)
            self.event_bus.subscribe(self.autosave_listener)

        self._closed = False

    def __enter__(self) -> "WizardCore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def pull(self) -> WizardSnapshot:
        """Load the session from the API and save it locally.

        Raises:
            ApiError: If the course overview cannot be loaded.
        """
        snapshot = self.client.load_session(self.course_id)
        self.store.load(snapshot)
        self.storage.save_snapshot(snapshot)
        logger.info("Pulled course %s: %d objectives, %d triage items",
                    self.course_id, len(snapshot.objectives), len(snapshot.triage_items))
        return snapshot

    def load_local(self) -> WizardSnapshot:
        """Load the session from the local snapshot.

        Raises:
            NotFoundError: If the course has not been pulled.
        """
        snapshot = self.storage.load_snapshot(self.course_id)
        self.store.load(snapshot)
        return snapshot

    def save_local(self) -> Path:
        """Write the current session state to the local snapshot."""
        return self.storage.save_snapshot(self.store.snapshot())

    def close(self) -> None:
        """Flush pending writes, then release the HTTP client."""
        if self._closed:
            return
        self._closed = True
        if self.autosave is not None:
            self.autosave.close()
        self.client.close()

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def set_gap(self, knowledge: Optional[bool] = None, skill: Optional[bool] = None) -> GapClassification:
        return self.store.set_gap(knowledge=knowledge, skill=skill)

    def add_triage_item(self, text: str, column: TriageColumn = TriageColumn.SHOULD) -> TriageItem:
        return self.store.add_triage_item(text, column)

    def move_triage_item(self, item_id: str, column: TriageColumn) -> TriageItem:
        return self._require(self.store.move_triage_item(item_id, column), "Triage item", item_id)

    def add_sub_task(self, task_id: str, text: str = "",
                     is_new: SubTaskStatus = SubTaskStatus.NEW) -> SubTask:
        """Add a sub-task to a triage item.

        Raises:
            NotFoundError: If the triage item does not exist.
        """
        self._require(self.store.get_triage_item(task_id), "Triage item", task_id)
        return self.store.add_sub_task(task_id, text=text, is_new=is_new)

    def update_sub_task(self, sub_task_id: str, **fields) -> SubTask:
        return self._require(self.store.update_sub_task(sub_task_id, **fields), "Sub-task", sub_task_id)

    def remove_sub_task(self, sub_task_id: str) -> None:
        if not self.store.remove_sub_task(sub_task_id):
            raise NotFoundError(f"Sub-task '{sub_task_id}' not found.")

    def add_objective(self, **fields) -> WizardObjective:
        return self.store.add_objective(**fields)

    def update_objective(self, objective_id: str, **fields) -> WizardObjective:
        return self._require(self.store.update_objective(objective_id, **fields), "Objective", objective_id)

    def remove_objective(self, objective_id: str) -> None:
        if not self.store.remove_objective(objective_id):
            raise NotFoundError(f"Objective '{objective_id}' not found.")

    def create_objectives_for_uncovered(self) -> List[WizardObjective]:
        """Create one blank objective linked to each uncovered active task."""
        tasks = uncovered_tasks(self.store.objectives, self.store.triage_items)
        return [self.store.add_objective(linked_task_id=t.id) for t in tasks]

    @staticmethod
    def _require(entity, label: str, entity_id: str):
        if entity is None:
            raise NotFoundError(f"{label} '{entity_id}' not found.")
        return entity

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def step_status(self) -> Dict[StepKey, StepStatus]:
        return self.step_tracker.status()

    def compose(self, objective_id: str) -> str:
        """Composed sentence for one objective."""
        objective = self._require(self.store.get_objective(objective_id), "Objective", objective_id)
        return compose_objective_text(objective, self.store.default_audience)

    def review(self, objective_id: str) -> List[ReviewNote]:
        objective = self._require(self.store.get_objective(objective_id), "Objective", objective_id)
        return review_objective(objective)

    def validation_report(self) -> ValidationReport:
        return build_validation_report(self.store.objectives, self.store.triage_items)

    def export(self) -> ExportFile:
        return build_export(self.store.snapshot())
