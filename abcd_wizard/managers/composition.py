"""
Composition engine for ABCD objectives.

Builds the human-readable objective sentence from the structured fields,
reports which components are missing, and produces the advisory review notes
shown next to the composed sentence. Nothing here mutates its input except
apply_freeform_to_fields, which returns a copy.
"""

from dataclasses import dataclass
from typing import List, Optional

from abcd_wizard.constants import (
    AK_VERBS,
    BLOOM_VERBS,
    NON_OBSERVABLE_VERBS,
    PLACEHOLDER_AUDIENCE,
    PLACEHOLDER_BEHAVIOR,
    PLACEHOLDER_CONDITION,
    PLACEHOLDER_CRITERIA,
    REVIEW_HIGH_BLOOM_LEVELS,
)
from abcd_wizard.models.entities import WizardObjective


def _has_structured_fields(objective: WizardObjective) -> bool:
    return bool(objective.condition or objective.behavior or objective.criteria)


def compose_objective_text(
    objective: WizardObjective,
    default_audience: str = "",
    prefer_freeform: bool = False,
) -> str:
    """Compose the display sentence for an objective.

    Format: "{condition}, {audience} will {behavior} {criteria}." with an
    italic placeholder for each missing component. The audience falls back to
    default_audience, then to a placeholder. An objective with freeform text
    and none of condition, behavior or criteria is shown as its freeform text.

    Args:
        objective: Objective to compose.
        default_audience: Audience used when the objective names none.
        prefer_freeform: Return freeform_text whenever it is set.

    Returns:
        The composed sentence. Never raises.
    """
    if objective.freeform_text and (prefer_freeform or not _has_structured_fields(objective)):
        return objective.freeform_text

    condition = objective.condition or PLACEHOLDER_CONDITION
    audience = objective.audience or default_audience or PLACEHOLDER_AUDIENCE
    behavior = objective.behavior or PLACEHOLDER_BEHAVIOR
    criteria = objective.criteria or PLACEHOLDER_CRITERIA
    return f"{condition}, {audience} will {behavior} {criteria}."


def missing_components(objective: WizardObjective) -> List[str]:
    """List the ABCD components that still need content.

    Args:
        objective: Objective to inspect.

    Returns:
        Subset of ["Condition", "Behavior", "Criteria"], in that order.
    """
    missing = []
    if not objective.condition:
        missing.append("Condition")
    if not objective.behavior:
        missing.append("Behavior")
    if not objective.criteria:
        missing.append("Criteria")
    return missing


def is_composed(objective: WizardObjective) -> bool:
    """Whether the objective reads as a complete sentence."""
    return not missing_components(objective)


def export_text(objective: WizardObjective, default_audience: str = "") -> str:
    """Sentence used in exported tables.

    Freeform text wins when present. Otherwise missing condition and criteria
    are simply left out; only a missing behavior gets a placeholder.
    """
    if objective.freeform_text:
        return objective.freeform_text

    parts = []
    if objective.condition:
        parts.append(objective.condition + ", ")
    parts.append((objective.audience or default_audience) + " will ")
    parts.append(objective.behavior or "[behavior]")
    if objective.criteria:
        parts.append(", " + objective.criteria)
    return "".join(parts)


def apply_freeform_to_fields(
    objective: WizardObjective,
    condition: Optional[str] = None,
    behavior: Optional[str] = None,
    criteria: Optional[str] = None,
) -> WizardObjective:
    """Copy user-chosen parts of the freeform text into the ABCD fields.

    This is the one-way, user-triggered transformation; freeform_text itself
    is kept as is. Arguments left as None do not touch their field.

    Returns:
        An updated copy of the objective.
    """
    updates = {}
    if condition is not None:
        updates["condition"] = condition
    if behavior is not None:
        updates["behavior"] = behavior
    if criteria is not None:
        updates["criteria"] = criteria
    return objective.model_copy(update=updates)


def suggest_verbs(bloom_level: str, bloom_knowledge: Optional[str] = None) -> List[str]:
    """Suggested action verbs for a Bloom level.

    With a knowledge dimension the Anderson-Krathwohl matrix is used instead
    of the plain Bloom list. Unknown levels yield an empty list.
    """
    if bloom_knowledge:
        return list(AK_VERBS.get(f"{bloom_level}-{bloom_knowledge}", []))
    return list(BLOOM_VERBS.get(bloom_level, []))


@dataclass
class ReviewNote:
    """A single advisory remark about an objective."""

    kind: str  # success | warning | suggestion
    text: str


def review_objective(objective: WizardObjective) -> List[ReviewNote]:
    """Review an objective against ABCD completeness and verb observability.

    Args:
        objective: Objective to review.

    Returns:
        Ordered list of advisory notes. Never empty.
    """
    notes: List[ReviewNote] = []
    verb = objective.verb
    observable = bool(verb) and not any(v in verb.lower() for v in NON_OBSERVABLE_VERBS)

    if observable:
        notes.append(ReviewNote(
            "success",
            f"Observable action verb '{verb}'. This is measurable.",
        ))
    elif verb:
        notes.append(ReviewNote(
            "warning",
            f"'{verb}' may not be directly observable. "
            "Consider demonstrate, execute, or perform (Mager, 1997).",
        ))
    else:
        notes.append(ReviewNote("warning", "No verb selected yet."))

    if objective.condition:
        notes.append(ReviewNote(
            "warning",
            "Condition is stated. Consider adding what resources are NOT available, "
            "such as whether a job aid may be used (Dirksen, 2016).",
        ))
    else:
        notes.append(ReviewNote("warning", "No condition specified."))

    if objective.criteria:
        notes.append(ReviewNote(
            "suggestion",
            "Criterion is specific and measurable. "
            "Consider whether it is realistic for new vs. tenured staff.",
        ))
    else:
        notes.append(ReviewNote("warning", "No criteria specified."))

    if objective.bloom_level in REVIEW_HIGH_BLOOM_LEVELS and not objective.requires_assessment:
        notes.append(ReviewNote(
            "warning",
            f"{objective.bloom_level}-level needs performance-based assessment (Merrill, 2013).",
        ))

    if not objective.linked_task_id:
        notes.append(ReviewNote(
            "suggestion",
            "Not linked to a parent task. "
            "Connecting strengthens traceability (Dick, Carey & Carey, 2015).",
        ))

    return notes
