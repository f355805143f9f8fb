"""
Export of the objectives table.

Export never blocks on completeness: missing components are left blank, and
the document lists the active tasks still lacking an objective instead of
refusing to build.
"""

from typing import List

from abcd_wizard.managers.composition import export_text
from abcd_wizard.managers.traceability import group_for_export, uncovered_tasks_for_export
from abcd_wizard.models.files import ExportFile, ExportGroup, ExportRow, WizardSnapshot


def build_export(snapshot: WizardSnapshot) -> ExportFile:
    """Build the export document for a session.

    Args:
        snapshot: Session state to export.

    Returns:
        ExportFile with objectives grouped by parent task.
    """
    audience = snapshot.default_audience
    groups = [
        ExportGroup(
            task=task,
            objectives=[
                ExportRow(
                    id=o.id,
                    text=export_text(o, audience),
                    bloom_level=o.bloom_level,
                    priority=o.priority,
                    requires_assessment=o.requires_assessment,
                )
                for o in objectives
            ],
        )
        for task, objectives in group_for_export(snapshot.objectives, snapshot.triage_items).items()
    ]

    return ExportFile(
        course_id=snapshot.course_id,
        course_name=snapshot.course_name,
        default_audience=audience,
        objective_count=len(snapshot.objectives),
        assessed_count=sum(1 for o in snapshot.objectives if o.requires_assessment),
        groups=groups,
        uncovered_tasks=uncovered_tasks_for_export(snapshot.objectives, snapshot.triage_items),
    )


def _table_cell(text: str) -> str:
    """Escape pipes and fold line breaks so text stays in one table cell."""
    return " ".join(text.replace("|", "\\|").splitlines())


def render_markdown(export: ExportFile) -> str:
    """Render an export document as a Markdown objectives table."""
    title = export.course_name or export.course_id
    lines: List[str] = [
        f"# Learning Objectives: {title}",
        "",
        f"Audience: {export.default_audience}",
        f"Objectives: {export.objective_count} ({export.assessed_count} assessed)",
        "",
    ]

    if export.uncovered_tasks:
        count = len(export.uncovered_tasks)
        noun = "parent task has" if count == 1 else "parent tasks have"
        lines.append(f"> {count} {noun} no matching objectives:")
        for task in export.uncovered_tasks:
            lines.append(f"> - {task}")
        lines.append("")

    for group in export.groups:
        lines.append(f"## Parent Task: {group.task}")
        lines.append("")
        lines.append("| Objective | Bloom | Priority | Assessed |")
        lines.append("|---|---|---|---|")
        for row in group.objectives:
            text = _table_cell(row.text)
            assessed = "yes" if row.requires_assessment else ""
            lines.append(f"| {text} | {row.bloom_level} | {row.priority} | {assessed} |")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
