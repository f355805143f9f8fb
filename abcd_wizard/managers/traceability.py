"""
Traceability and validation aggregates.

Cross-entity statistics for the validation dashboard and the export step:
objective-to-task linkage, orphan objectives, Bloom and priority
distributions and assessment alignment. Every function is pure and advisory;
none of them ever blocks an action.

Triage items in the "nice" column are excluded everywhere. An objective linked
to such an item counts as an orphan and covers nothing.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from abcd_wizard.constants import (
    BLOOM_INTERPRETATION,
    BLOOM_VERBS,
    HIGH_BLOOM_LEVELS,
    UNGROUPED_LABEL,
    UNKNOWN_TASK_LABEL,
    UNTITLED_LABEL,
)
from abcd_wizard.models.base import ObjectivePriority, TriageColumn
from abcd_wizard.models.entities import TriageItem, WizardObjective

BLOOM_LEVELS = list(BLOOM_VERBS.keys())
PRIORITY_LABELS = [p.value for p in ObjectivePriority]


def active_tasks(triage_items: Sequence[TriageItem]) -> List[TriageItem]:
    """Triage items outside the "nice" column, in their original order."""
    return [t for t in triage_items if t.column != TriageColumn.NICE.value]


def resolve_linked_task(
    objective: WizardObjective, triage_items: Sequence[TriageItem]
) -> Optional[TriageItem]:
    """Look up an objective's linked task; None when unlinked or dangling."""
    if not objective.linked_task_id:
        return None
    for task in triage_items:
        if task.id == objective.linked_task_id:
            return task
    return None


def objective_label(objective: WizardObjective) -> str:
    """Short name for listings."""
    return objective.behavior or objective.freeform_text or UNTITLED_LABEL


@dataclass
class LinkageRow:
    """Objective count for one active task."""

    task_id: str
    text: str
    objective_count: int

    @property
    def covered(self) -> bool:
        return self.objective_count > 0


def linkage_table(
    objectives: Sequence[WizardObjective], triage_items: Sequence[TriageItem]
) -> List[LinkageRow]:
    """One row per active task with the number of objectives linked to it."""
    counts: Dict[str, int] = {}
    for o in objectives:
        if o.linked_task_id:
            counts[o.linked_task_id] = counts.get(o.linked_task_id, 0) + 1
    return [
        LinkageRow(task_id=t.id, text=t.text, objective_count=counts.get(t.id, 0))
        for t in active_tasks(triage_items)
    ]


def uncovered_tasks(
    objectives: Sequence[WizardObjective], triage_items: Sequence[TriageItem]
) -> List[TriageItem]:
    """Active tasks no objective links to."""
    linked_ids = {o.linked_task_id for o in objectives if o.linked_task_id}
    return [t for t in active_tasks(triage_items) if t.id not in linked_ids]


def orphan_objectives(
    objectives: Sequence[WizardObjective], triage_items: Sequence[TriageItem]
) -> List[WizardObjective]:
    """Objectives whose link is missing or does not resolve to an active task."""
    active_ids = {t.id for t in active_tasks(triage_items)}
    return [o for o in objectives if o.linked_task_id not in active_ids]


def bloom_distribution(objectives: Sequence[WizardObjective]) -> Tuple[Dict[str, int], int]:
    """Count objectives per Bloom level.

    Returns:
        (distribution over all six levels, unclassified count).
    """
    distribution = {level: 0 for level in BLOOM_LEVELS}
    for o in objectives:
        if o.bloom_level:
            distribution[o.bloom_level] += 1
    unclassified = len(objectives) - sum(distribution.values())
    return distribution, unclassified


def priority_distribution(objectives: Sequence[WizardObjective]) -> Tuple[Dict[str, int], int]:
    """Count objectives per priority label.

    Returns:
        (distribution over the three labels, count with no priority).
    """
    distribution = {label: 0 for label in PRIORITY_LABELS}
    no_priority = 0
    for o in objectives:
        if o.priority in distribution:
            distribution[o.priority] += 1
        else:
            no_priority += 1
    return distribution, no_priority


def high_bloom_without_assessment(objectives: Sequence[WizardObjective]) -> List[WizardObjective]:
    """Analyze/Evaluate/Create objectives not flagged for assessment."""
    return [
        o for o in objectives
        if o.bloom_level in HIGH_BLOOM_LEVELS and not o.requires_assessment
    ]


def dominant_bloom_level(distribution: Dict[str, int]) -> Optional[str]:
    """The most frequent level; ties go to the lower level. None if all zero."""
    best = None
    for level in BLOOM_LEVELS:
        count = distribution.get(level, 0)
        if count and (best is None or count > distribution[best]):
            best = level
    return best


@dataclass
class ValidationReport:
    """All validation dashboard aggregates for one set of objectives."""

    objective_count: int
    active_task_count: int
    linkage: List[LinkageRow]
    uncovered: List[TriageItem]
    orphans: List[WizardObjective]
    bloom: Dict[str, int]
    unclassified: int
    priority: Dict[str, int]
    no_priority: int
    assessed_count: int
    high_bloom_unassessed: List[WizardObjective]
    dominant_bloom: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    @property
    def linked_count(self) -> int:
        """Objectives linked to an active task."""
        return self.objective_count - len(self.orphans)

    @property
    def covered_task_count(self) -> int:
        return self.active_task_count - len(self.uncovered)

    def to_dict(self) -> dict:
        """Plain-data form for JSON output."""
        return {
            "objectives": self.objective_count,
            "active_tasks": self.active_task_count,
            "linked_objectives": self.linked_count,
            "covered_tasks": self.covered_task_count,
            "linkage": [
                {"task_id": r.task_id, "task": r.text, "objectives": r.objective_count}
                for r in self.linkage
            ],
            "uncovered_tasks": [{"id": t.id, "text": t.text} for t in self.uncovered],
            "orphan_objectives": [
                {"id": o.id, "label": objective_label(o)} for o in self.orphans
            ],
            "bloom_distribution": dict(self.bloom),
            "unclassified": self.unclassified,
            "dominant_bloom": self.dominant_bloom,
            "priority_distribution": dict(self.priority),
            "no_priority": self.no_priority,
            "assessed": self.assessed_count,
            "high_bloom_without_assessment": [
                {"id": o.id, "bloom_level": o.bloom_level, "label": objective_label(o)}
                for o in self.high_bloom_unassessed
            ],
            "notes": list(self.notes),
        }


def build_validation_report(
    objectives: Sequence[WizardObjective], triage_items: Sequence[TriageItem]
) -> ValidationReport:
    """Compute every validation aggregate in one pass over the inputs.

    Args:
        objectives: All objectives, complete or not.
        triage_items: All triage items, including "nice" ones.

    Returns:
        ValidationReport. Never raises for incomplete or dangling data.
    """
    bloom, unclassified = bloom_distribution(objectives)
    priority, no_priority = priority_distribution(objectives)
    dominant = dominant_bloom_level(bloom)

    notes = []
    if dominant:
        fit = (
            "Appropriate for new system deployment."
            if dominant == "Apply"
            else "Review whether this matches training goals."
        )
        notes.append(f"Weighted toward {dominant}. {fit} {BLOOM_INTERPRETATION[dominant]}")

    return ValidationReport(
        objective_count=len(objectives),
        active_task_count=len(active_tasks(triage_items)),
        linkage=linkage_table(objectives, triage_items),
        uncovered=uncovered_tasks(objectives, triage_items),
        orphans=orphan_objectives(objectives, triage_items),
        bloom=bloom,
        unclassified=unclassified,
        priority=priority,
        no_priority=no_priority,
        assessed_count=sum(1 for o in objectives if o.requires_assessment),
        high_bloom_unassessed=high_bloom_without_assessment(objectives),
        dominant_bloom=dominant,
        notes=notes,
    )


def uncovered_tasks_for_export(
    objectives: Sequence[WizardObjective], triage_items: Sequence[TriageItem]
) -> List[str]:
    """Texts of active tasks without objectives, for the export warning."""
    return [t.text for t in uncovered_tasks(objectives, triage_items)]


def group_for_export(
    objectives: Sequence[WizardObjective], triage_items: Sequence[TriageItem]
) -> Dict[str, List[WizardObjective]]:
    """Group objectives by the text of their linked task.

    Unlinked objectives land in "Ungrouped" and dangling links in
    "Unknown Task". Groups keep first-seen order.
    """
    tasks_by_id = {t.id: t for t in triage_items}
    grouped: Dict[str, List[WizardObjective]] = {}
    for o in objectives:
        if o.linked_task_id:
            task = tasks_by_id.get(o.linked_task_id)
            name = task.text if task else UNKNOWN_TASK_LABEL
        else:
            name = UNGROUPED_LABEL
        grouped.setdefault(name, []).append(o)
    return grouped
