"""
Session commands: pull, status, validate and export.

pull talks to the API; the others read the local snapshot only.
"""

import json
from pathlib import Path
from typing import Optional

import click

from abcd_wizard.commands.common import local_session, make_core
from abcd_wizard.constants import PRIORITY_DESCRIPTIONS
from abcd_wizard.exceptions import WizardError
from abcd_wizard.managers import render_markdown
from abcd_wizard.managers.traceability import objective_label
from abcd_wizard.utils import truncate


@click.command()
@click.argument("course_id")
@click.pass_context
def pull(ctx, course_id):
    """Load a course's wizard data from the API into .abcd/."""
    core = make_core(ctx, course_id, autosave_enabled=False)
    try:
        snapshot = core.pull()
    except WizardError as e:
        raise click.ClickException(str(e))
    finally:
        core.close()

    name = snapshot.course_name or course_id
    click.echo(f"✓ Pulled '{name}'")
    click.echo(f"  Objectives:   {len(snapshot.objectives)}")
    click.echo(f"  Triage items: {len(snapshot.triage_items)}")
    click.echo(f"  Sub-tasks:    {len(snapshot.sub_tasks)}")


@click.command()
@click.argument("course_id")
@click.option("--step", "step_token", default=None, help="Mark a step as current (key, number or letter).")
@click.option("--json", "as_json", is_flag=True, help="Output in JSON format.")
@click.pass_context
def status(ctx, course_id, step_token, as_json):
    """Show the wizard stepper for a course."""
    with local_session(ctx, course_id) as core:
        current = core.navigator.go_to(step_token) if step_token else None
        rows = core.step_tracker.rows(current)
        counts = core.step_tracker.get_status_counts()
        course_name = core.store.course_name

    if as_json:
        click.echo(json.dumps({"course_id": course_id, "steps": rows, "counts": counts}, indent=2))
        return

    click.echo(f"Objectives Wizard: {course_name or course_id}")
    for row in rows:
        marker = "→" if row["is_current"] else " "
        click.echo(f"{marker} {row['icon']} {row['num']}. {row['label']} ({row['status']})")


@click.command()
@click.argument("course_id")
@click.option("--json", "as_json", is_flag=True, help="Output in JSON format.")
@click.pass_context
def validate(ctx, course_id, as_json):
    """Show traceability and validation for a course."""
    with local_session(ctx, course_id) as core:
        report = core.validation_report()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    click.echo(f"Objectives: {report.objective_count}  "
               f"Linked: {report.linked_count}  "
               f"Assessed: {report.assessed_count}")
    click.echo(f"Tasks covered: {report.covered_task_count}/{report.active_task_count}")

    click.echo("\nTask linkage:")
    for row in report.linkage:
        mark = "✓" if row.covered else "✗"
        click.echo(f"  {mark} {truncate(row.text)} ({row.objective_count})")

    if report.orphans:
        click.echo(f"\n⚠ {len(report.orphans)} objective(s) not linked to an active task:")
        for o in report.orphans:
            click.echo(f"  - {truncate(objective_label(o))} [{o.id}]")

    click.echo("\nBloom distribution:")
    for level, count in report.bloom.items():
        click.echo(f"  {level:<11} {count}")
    if report.unclassified:
        click.echo(f"  Unclassified {report.unclassified}")

    click.echo("\nPriority:")
    for label, count in report.priority.items():
        click.echo(f"  {label:<13} {count}  {PRIORITY_DESCRIPTIONS[label]}")
    if report.no_priority:
        click.echo(f"  No priority   {report.no_priority}")

    if report.high_bloom_unassessed:
        click.echo(f"\n⚠ {len(report.high_bloom_unassessed)} high-Bloom objective(s) without assessment")
    for note in report.notes:
        click.echo(f"\n{note}")


@click.command()
@click.argument("course_id")
@click.option("--format", "fmt", type=click.Choice(["markdown", "json"]), default="markdown",
              show_default=True, help="Export format.")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Output file. Defaults to .abcd/exports/<course>.<ext>.")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print instead of writing a file.")
@click.pass_context
def export(ctx, course_id, fmt, output: Optional[Path], to_stdout):
    """Export the objectives table. Always succeeds, complete or not."""
    with local_session(ctx, course_id) as core:
        document = core.export()
        markdown = render_markdown(document) if fmt == "markdown" else None

        if to_stdout:
            click.echo(markdown if markdown is not None else json.dumps(document.model_dump(mode="json"), indent=2))
            return
        path = core.storage.save_export(document, markdown=markdown, output=output)

    click.echo(f"✓ Exported {document.objective_count} objective(s) to {path}")
    if document.uncovered_tasks:
        click.echo(f"⚠ {len(document.uncovered_tasks)} task(s) have no objectives")
