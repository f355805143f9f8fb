"""
Conversion between API payloads and wizard models.

Objectives are stored server-side under different field names and enum
spellings than the wizard uses (behavior is "title", priorities are
MUST/SHOULD/NICE_TO_HAVE, Bloom values are upper-case). Everything that
crosses the wire goes through the helpers here.

The needs-analysis helpers build the read-only context shown next to the
objectives from the analysis-context and overview payloads.
"""

import re
from typing import Any, Dict, List, Optional

from abcd_wizard.constants import (
    DEFAULT_SUMMARY_LABELS,
    GENERIC_TABS,
    NEW_SYSTEM_TABS,
    SUMMARY_LABELS,
    get_default_audience,
)
from abcd_wizard.models.base import BloomKnowledge, BloomLevel, ObjectivePriority, SubTaskStatus
from abcd_wizard.models.context import NAItem, NASection, NASummary, NASummaryLabels
from abcd_wizard.models.entities import SubTask, TriageItem, WizardObjective

PRIORITY_TO_DB = {
    ObjectivePriority.MUST_HAVE.value: "MUST",
    ObjectivePriority.SHOULD_HAVE.value: "SHOULD",
    ObjectivePriority.NICE_TO_HAVE.value: "NICE_TO_HAVE",
}
PRIORITY_FROM_DB = {v: k for k, v in PRIORITY_TO_DB.items()}

BLOOM_LEVEL_FROM_DB = {level.value.upper(): level.value for level in BloomLevel}
BLOOM_KNOWLEDGE_FROM_DB = {k.value.upper(): k.value for k in BloomKnowledge}

# Objective fields stored under the same (camelCase) name
OBJECTIVE_PASSTHROUGH = {
    "audience": "audience",
    "verb": "verb",
    "condition": "condition",
    "criteria": "criteria",
    "freeform_text": "freeformText",
    "requires_assessment": "requiresAssessment",
    "rationale": "rationale",
    "wiifm": "wiifm",
    "sort_order": "sortOrder",
}

SUBTASK_FIELDS = {
    "text": "text",
    "is_new": "isNew",
    "sort_order": "sortOrder",
}

NO_CONTEXT_MESSAGE = "No Needs Analysis data available."
NO_DATA_MESSAGE = "No data available yet."


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


# =============================================================================
# Objectives
# =============================================================================

def objective_from_db(row: Dict[str, Any]) -> WizardObjective:
    """Build a WizardObjective from an objectives API row.

    Missing or null fields fall back to empty values. Unknown Bloom values
    become "" and unknown priorities become "Should Have".
    """
    return WizardObjective(
        id=row["id"],
        audience=row.get("audience") or "",
        behavior=row.get("title") or "",
        verb=row.get("verb") or "",
        bloom_level=BLOOM_LEVEL_FROM_DB.get(row.get("bloomLevel") or "", ""),
        bloom_knowledge=BLOOM_KNOWLEDGE_FROM_DB.get(row.get("bloomKnowledge") or "", ""),
        condition=row.get("condition") or "",
        criteria=row.get("criteria") or "",
        freeform_text=row.get("freeformText") or "",
        priority=PRIORITY_FROM_DB.get(row.get("objectivePriority") or "", ObjectivePriority.SHOULD_HAVE.value),
        requires_assessment=bool(row.get("requiresAssessment")),
        rationale=row.get("rationale") or "",
        wiifm=row.get("wiifm") or "",
        linked_task_id=row.get("linkedTriageItemId") or None,
        sort_order=row.get("sortOrder") or 0,
    )


def objective_fields_to_db(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a partial map of wizard objective fields to API field names.

    Only the fields present are converted. Empty priority and Bloom values
    become null; fields the API does not store are dropped.

    Example:
        >>> objective_fields_to_db({"behavior": "enter a claim", "priority": "Must Have"})
        {'title': 'enter a claim', 'objectivePriority': 'MUST'}
    """
    db: Dict[str, Any] = {}
    for key, value in fields.items():
        value = _enum_value(value)
        if key == "behavior":
            db["title"] = value
        elif key == "linked_task_id":
            db["linkedTriageItemId"] = value
        elif key == "priority":
            db["objectivePriority"] = PRIORITY_TO_DB.get(value) if value else None
        elif key == "bloom_level":
            db["bloomLevel"] = value.upper() if value else None
        elif key == "bloom_knowledge":
            db["bloomKnowledge"] = value.upper() if value else None
        elif key in OBJECTIVE_PASSTHROUGH:
            db[OBJECTIVE_PASSTHROUGH[key]] = value
    return db


# =============================================================================
# Triage items and sub-tasks
# =============================================================================

def triage_item_from_db(row: Dict[str, Any]) -> TriageItem:
    """Build a TriageItem from a triage-items API row."""
    return TriageItem(
        id=row["id"],
        course_id=row.get("courseId") or "",
        text=row.get("text") or "",
        column=row.get("column") or "should",
        source=row.get("source") or "Custom",
        sort_order=row.get("sortOrder") or 0,
    )


def sub_task_from_db(row: Dict[str, Any], parent_item_id: Optional[str] = None) -> SubTask:
    """Build a SubTask from a sub-task API row.

    Args:
        row: API row.
        parent_item_id: Parent used when the row does not name one.
    """
    status = row.get("isNew") or SubTaskStatus.NEW.value
    if status not in {s.value for s in SubTaskStatus}:
        status = SubTaskStatus.NEW.value
    return SubTask(
        id=row["id"],
        parent_item_id=row.get("parentItemId") or parent_item_id or "",
        text=row.get("text") or "",
        is_new=status,
        sort_order=row.get("sortOrder") or 0,
    )


def sub_tasks_from_triage_rows(rows: List[Dict[str, Any]]) -> List[SubTask]:
    """Flatten the sub-tasks nested under triage-items API rows."""
    return [
        sub_task_from_db(s, parent_item_id=t.get("id"))
        for t in rows
        for s in (t.get("subTasks") or [])
    ]


def subtask_fields_to_db(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a partial map of sub-task fields to API field names."""
    return {
        SUBTASK_FIELDS[k]: _enum_value(v)
        for k, v in fields.items()
        if k in SUBTASK_FIELDS
    }


# =============================================================================
# Needs-analysis context
# =============================================================================

def _submission_response(submissions: List[Dict[str, Any]], question_id: str) -> str:
    """First non-empty answer to a question across all submissions."""
    for sub in submissions:
        for section in sub.get("sections") or []:
            for resp in section.get("responses") or []:
                if resp.get("questionId") == question_id and resp.get("value"):
                    return resp["value"]
    return ""


def summary_labels(training_type: str) -> NASummaryLabels:
    """Summary headings for a training type."""
    business_goal, current_state, desired_state = SUMMARY_LABELS.get(training_type, DEFAULT_SUMMARY_LABELS)
    return NASummaryLabels(
        business_goal=business_goal,
        current_state=current_state,
        desired_state=desired_state,
    )


def format_training_type(training_type: str) -> str:
    """Display form of a training type, e.g. role_change becomes Role Change."""
    spaced = training_type.replace("_", " ")
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)


def build_na_summary(context: Optional[Dict[str, Any]], course: Dict[str, Any]) -> Optional[NASummary]:
    """Condense the needs analysis for the context step.

    Stakeholder answers take precedence over the designer's own analysis.

    Args:
        context: analysis-context payload, or None when unavailable.
        course: Course record from the overview payload.

    Returns:
        NASummary, or None without an analysis context.
    """
    if not context:
        return None

    analysis = context.get("courseAnalysis") or {}
    submissions = context.get("submissions") or []
    training_type = course.get("courseType") or ""

    audience = ", ".join(a.get("role") or "" for a in analysis.get("audiences") or [])
    if not audience:
        audience = _submission_response(submissions, "SHARED_06")
    if not audience:
        audience = ", ".join(analysis.get("learnerPersonas") or [])

    pain_points: List[str] = []
    concerns = _submission_response(submissions, "SHARED_25")
    if concerns:
        pain_points = [p.strip() for p in re.split(r"\n|•", concerns) if p.strip()]
    if not pain_points and analysis.get("constraints"):
        pain_points = list(analysis["constraints"])

    return NASummary(
        training_type=format_training_type(training_type),
        business_goal=_submission_response(submissions, "SYS_05") or analysis.get("problemSummary") or "",
        audience=audience,
        current_state=_submission_response(submissions, "SYS_03") or analysis.get("currentStateSummary") or "",
        desired_state=_submission_response(submissions, "SYS_11") or analysis.get("desiredStateSummary") or "",
        pain_points=pain_points,
        labels=summary_labels(training_type),
    )


def _audience_profile(audience: Dict[str, Any]) -> str:
    role = audience.get("role") or ""
    headcount = f" (~{audience['headcount']})" if audience.get("headcount") else ""
    return f"{role}{headcount}, {audience.get('frequency') or ''}, Tech: {audience.get('techComfort') or ''}"


def build_na_sections(context: Optional[Dict[str, Any]], course: Dict[str, Any]) -> List[NASection]:
    """Group stakeholder answers into the needs-analysis tabs.

    Answers are routed by the title of the submission section they were given
    in; sections no tab claims go to the last tab. Tabs without items are
    omitted, and a single status section stands in when nothing is left.
    """
    if not context:
        return [NASection(key="project", title="Project Context", items=[NAItem(q="Status", a=NO_CONTEXT_MESSAGE)])]

    tabs = NEW_SYSTEM_TABS if (course.get("courseType") or "") == "NEW_SYSTEM" else GENERIC_TABS
    analysis = context.get("courseAnalysis") or {}
    items: Dict[str, List[NAItem]] = {key: [] for key, _, _ in tabs}

    for sub in context.get("submissions") or []:
        name = sub.get("stakeholderName") or "Stakeholder"
        for section in sub.get("sections") or []:
            section_title = section.get("title") or ""
            target = next((key for key, _, sources in tabs if section_title in sources), tabs[-1][0])
            for resp in section.get("responses") or []:
                if not resp.get("value"):
                    continue
                question = resp.get("question") or resp.get("questionId") or ""
                items[target].append(NAItem(q=f"{name}: {question}", a=resp["value"]))

    # Designer's analysis leads its tabs
    supplements = {"system": [], "audience": []}
    if analysis.get("problemSummary"):
        supplements["system"].append(NAItem(q="ID Analysis: Problem Summary", a=analysis["problemSummary"]))
    if analysis.get("solutionRationale"):
        supplements["system"].append(NAItem(q="ID Analysis: Solution Rationale", a=analysis["solutionRationale"]))
    if analysis.get("audiences"):
        profiles = "\n".join(_audience_profile(a) for a in analysis["audiences"])
        supplements["audience"].append(NAItem(q="ID Analysis: Audience Profiles", a=profiles))
    for key, extra in supplements.items():
        if key in items:
            items[key] = extra + items[key]

    sections = [
        NASection(key=key, title=title, items=items[key])
        for key, title, _ in tabs
        if items[key]
    ]
    if sections:
        return sections
    return [NASection(key="project", title="Project Context", items=[NAItem(q="Status", a=NO_DATA_MESSAGE)])]


def extract_audiences(context: Optional[Dict[str, Any]]) -> List[str]:
    """Audience names for the builder; the first one is the default audience.

    Roles carry their headcount when known, e.g. "Nurse (~40)". Falls back to
    learner personas, then to the configured default audience.
    """
    analysis = (context or {}).get("courseAnalysis") or {}
    audiences = analysis.get("audiences") or []
    if audiences:
        names = []
        for a in audiences:
            role = a.get("role") or ""
            names.append(f"{role} (~{a['headcount']})" if a.get("headcount") else role)
        return names
    personas = analysis.get("learnerPersonas") or []
    return list(personas) if personas else [get_default_audience()]
