"""
Managers for the ABCD objectives wizard.

This package contains focused modules that handle specific aspects of the wizard:
- composition: Objective sentence composition and review notes
- traceability: Linkage, orphan and distribution aggregates
- StepTracker: Per-step readiness for the stepper
- NavigationManager: Current step and step moves
- WizardStore: Session state, the single writer
- AutosaveManager: Debounced writes, optimistic creates, flush on close
- Scheduler: Timer/worker seam (ThreadedScheduler)
- StorageManager: Persistence to the .abcd/ folder
- EventBus: Event-driven communication between store and autosave
- export_manager: Export document building and rendering
"""

from abcd_wizard.managers.composition import (
    ReviewNote,
    compose_objective_text,
    export_text,
    is_composed,
    missing_components,
    review_objective,
    suggest_verbs,
)
from abcd_wizard.managers.traceability import (
    ValidationReport,
    build_validation_report,
    group_for_export,
    orphan_objectives,
    uncovered_tasks,
)
from abcd_wizard.managers.step_tracker import StepTracker, derive_step_status
from abcd_wizard.managers.navigation_manager import NavigationManager
from abcd_wizard.managers.events import (
    EntityEvent,
    EntityKind,
    Event,
    EventBus,
    EventListener,
    EventType,
)
from abcd_wizard.managers.store import WizardStore
from abcd_wizard.managers.scheduler import Scheduler, ThreadedScheduler
from abcd_wizard.managers.autosave import AutosaveListener, AutosaveManager
from abcd_wizard.managers.storage_manager import StorageManager
from abcd_wizard.managers.export_manager import build_export, render_markdown

__all__ = [
    "ReviewNote",
    "compose_objective_text",
    "export_text",
    "is_composed",
    "missing_components",
    "review_objective",
    "suggest_verbs",
    "ValidationReport",
    "build_validation_report",
    "group_for_export",
    "orphan_objectives",
    "uncovered_tasks",
    "StepTracker",
    "derive_step_status",
    "NavigationManager",
    "EntityEvent",
    "EntityKind",
    "Event",
    "EventBus",
    "EventListener",
    "EventType",
    "WizardStore",
    "Scheduler",
    "ThreadedScheduler",
    "AutosaveListener",
    "AutosaveManager",
    "StorageManager",
    "build_export",
    "render_markdown",
]
