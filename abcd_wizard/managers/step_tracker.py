"""
StepTracker for per-step readiness.

Derives the stepper indicator for each wizard step from the current entity
collections. Status is advisory only: navigation never consults it.
"""

from typing import Dict, Iterable, Optional

from abcd_wizard.constants import STEP_ICONS, STEPS
from abcd_wizard.models.base import StepKey, StepStatus, TriageColumn
from abcd_wizard.models.entities import (
    GapClassification,
    SubTask,
    TriageItem,
    WizardObjective,
)


def derive_step_status(
    gap: GapClassification,
    triage_items: Iterable[TriageItem],
    sub_tasks: Iterable[SubTask],
    objectives: Iterable[WizardObjective],
) -> Dict[StepKey, StepStatus]:
    """Compute the readiness of every step.

    - context: done once either gap type is set
    - priority: done once any item sits outside the "nice" column
    - tasks: in progress once any sub-task exists
    - builder, validation: in progress once any objective exists
    - export: always none, export has no completion concept

    Args:
        gap: Gap classification.
        triage_items: All triage items.
        sub_tasks: All sub-tasks.
        objectives: All objectives.

    Returns:
        Mapping with an entry for every StepKey.
    """
    has_objectives = any(True for _ in objectives)
    builder = StepStatus.PROGRESS if has_objectives else StepStatus.NONE

    return {
        StepKey.CONTEXT: StepStatus.DONE if (gap.knowledge or gap.skill) else StepStatus.NONE,
        StepKey.PRIORITY: (
            StepStatus.DONE
            if any(i.column != TriageColumn.NICE.value for i in triage_items)
            else StepStatus.NONE
        ),
        StepKey.TASKS: StepStatus.PROGRESS if any(True for _ in sub_tasks) else StepStatus.NONE,
        StepKey.BUILDER: builder,
        StepKey.VALIDATION: builder,
        StepKey.EXPORT: StepStatus.NONE,
    }


class StepTracker:
    """
    Reads step status off a WizardStore.

    Handles:
    - Deriving the status map from the store's current state
    - Stepper icons and labels for display
    - Counting steps per status
    """

    def __init__(self, store) -> None:
        """
        Initialize StepTracker.

        Args:
            store: WizardStore whose collections are read on every call.
        """
        self.store = store

    def status(self) -> Dict[StepKey, StepStatus]:
        """Current status of every step, recomputed from the store."""
        return derive_step_status(
            self.store.gap,
            self.store.triage_items,
            self.store.sub_tasks,
            self.store.objectives,
        )

    def rows(self, current: Optional[StepKey] = None) -> list:
        """Stepper rows for display.

        Args:
            current: Step to mark as the active one.

        Returns:
            List of dicts with key, num, label, status, icon and is_current.
        """
        status = self.status()
        rows = []
        for key, num, label in STEPS:
            st = status[StepKey(key)]
            rows.append({
                "key": key,
                "num": num,
                "label": label,
                "status": st.value,
                "icon": STEP_ICONS[st.value],
                "is_current": current is not None and key == StepKey(current).value,
            })
        return rows

    def get_status_counts(self) -> Dict[str, int]:
        """Number of steps in each status.

        Returns:
            Dictionary keyed by status value, including zero counts.
        """
        counts = {s.value: 0 for s in StepStatus}
        for st in self.status().values():
            counts[st.value] += 1
        return counts
