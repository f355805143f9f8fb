"""
Editing commands: gap, subtask and objective.

Each command runs a live session: the course is pulled, the edit goes
through the store, and autosave writes it to the API before the command
exits. The local snapshot is refreshed afterwards.
"""

import click

from abcd_wizard.commands.common import live_session, local_session, parse_assignments
from abcd_wizard.managers import missing_components
from abcd_wizard.models.base import SubTaskStatus

SUBTASK_STATUSES = [s.value for s in SubTaskStatus]


@click.command()
@click.argument("course_id")
@click.option("--knowledge/--no-knowledge", default=None, help="Knowledge gap.")
@click.option("--skill/--no-skill", default=None, help="Skill gap.")
@click.pass_context
def gap(ctx, course_id, knowledge, skill):
    """Show or set the gap classification of a course."""
    if knowledge is None and skill is None:
        with local_session(ctx, course_id) as core:
            current = core.store.gap
        click.echo(f"Knowledge gap: {'yes' if current.knowledge else 'no'}")
        click.echo(f"Skill gap:     {'yes' if current.skill else 'no'}")
        return

    with live_session(ctx, course_id) as core:
        updated = core.set_gap(knowledge=knowledge, skill=skill)
    click.echo(f"✓ Gap saved (knowledge={updated.knowledge}, skill={updated.skill})")


# =============================================================================
# Sub-tasks
# =============================================================================

@click.group()
def subtask():
    """Break triage items into observable sub-tasks."""
    pass


@subtask.command(name="list")
@click.argument("course_id")
@click.argument("task_id")
@click.pass_context
def list_subtasks(ctx, course_id, task_id):
    """List the sub-tasks of a triage item."""
    with local_session(ctx, course_id) as core:
        task = core.store.get_triage_item(task_id)
        subs = core.store.sub_tasks_for(task_id)
    if task is None:
        raise click.ClickException(f"Triage item '{task_id}' not found.")
    click.echo(f"{task.text} [{task.column}]")
    for i, sub in enumerate(subs, start=1):
        click.echo(f"  {i}. {sub.text or '(empty)'} ({sub.is_new}) [{sub.id}]")


@subtask.command(name="add")
@click.argument("course_id")
@click.argument("task_id")
@click.argument("text")
@click.option("--status", "is_new", type=click.Choice(SUBTASK_STATUSES), default=SubTaskStatus.NEW.value,
              show_default=True, help="Whether the audience already performs it.")
@click.pass_context
def add_subtask(ctx, course_id, task_id, text, is_new):
    """Add a sub-task to a triage item."""
    with live_session(ctx, course_id) as core:
        before = len(core.store.sub_tasks_for(task_id))
        core.add_sub_task(task_id, text=text, is_new=is_new)
    # A rejected create is rolled back by the time the session closes
    if len(core.store.sub_tasks_for(task_id)) <= before:
        raise click.ClickException("Sub-task could not be saved.")
    click.echo(f"✓ Added sub-task '{text}'")


@subtask.command(name="set")
@click.argument("course_id")
@click.argument("subtask_id")
@click.argument("assignments", nargs=-1, required=True)
@click.pass_context
def set_subtask(ctx, course_id, subtask_id, assignments):
    """Edit a sub-task, e.g. text="Open the chart" is_new="Already can do"."""
    fields = parse_assignments(assignments)
    with live_session(ctx, course_id) as core:
        core.update_sub_task(subtask_id, **fields)
    click.echo(f"✓ Updated sub-task {subtask_id}")


@subtask.command(name="rm")
@click.argument("course_id")
@click.argument("subtask_id")
@click.pass_context
def remove_subtask(ctx, course_id, subtask_id):
    """Delete a sub-task."""
    with live_session(ctx, course_id) as core:
        core.remove_sub_task(subtask_id)
    click.echo(f"✓ Deleted sub-task {subtask_id}")


# =============================================================================
# Objectives
# =============================================================================

@click.group()
def objective():
    """Build ABCD learning objectives."""
    pass


@objective.command(name="list")
@click.argument("course_id")
@click.pass_context
def list_objectives(ctx, course_id):
    """List objectives with their composed sentences."""
    with local_session(ctx, course_id) as core:
        objectives = core.store.objectives
        lines = [(o, core.compose(o.id)) for o in objectives]
    if not lines:
        click.echo("No objectives yet.")
        return
    for o, text in lines:
        missing = missing_components(o)
        suffix = f"  ({', '.join(missing)} needed)" if missing else ""
        click.echo(f"[{o.id}] {text}{suffix}")


@objective.command(name="show")
@click.argument("course_id")
@click.argument("objective_id")
@click.pass_context
def show_objective(ctx, course_id, objective_id):
    """Show one objective with its review notes."""
    with local_session(ctx, course_id) as core:
        o = core.store.get_objective(objective_id)
        if o is None:
            raise click.ClickException(f"Objective '{objective_id}' not found.")
        text = core.compose(objective_id)
        notes = core.review(objective_id)

    click.echo(text)
    click.echo(f"  Bloom:    {o.bloom_level or '-'} {o.bloom_knowledge or ''}".rstrip())
    click.echo(f"  Priority: {o.priority or '-'}")
    click.echo(f"  Assessed: {'yes' if o.requires_assessment else 'no'}")
    icons = {"success": "✓", "warning": "⚠", "suggestion": "💡"}
    for note in notes:
        click.echo(f"  {icons.get(note.kind, '-')} {note.text}")


@objective.command(name="add")
@click.argument("course_id")
@click.option("--task", "task_id", default=None, help="Triage item to link.")
@click.option("--field", "assignments", multiple=True, help="Initial value as key=value. Repeatable.")
@click.pass_context
def add_objective(ctx, course_id, task_id, assignments):
    """Add an objective."""
    fields = parse_assignments(assignments)
    if task_id:
        fields["linked_task_id"] = task_id
    with live_session(ctx, course_id) as core:
        before = len(core.store.objectives)
        core.add_objective(**fields)
    if len(core.store.objectives) <= before:
        raise click.ClickException("Objective could not be saved.")
    click.echo("✓ Added objective")


@objective.command(name="set")
@click.argument("course_id")
@click.argument("objective_id")
@click.argument("assignments", nargs=-1, required=True)
@click.pass_context
def set_objective(ctx, course_id, objective_id, assignments):
    """Edit an objective, e.g. behavior="enter a claim" bloom_level=Apply."""
    fields = parse_assignments(assignments)
    with live_session(ctx, course_id) as core:
        core.update_objective(objective_id, **fields)
    click.echo(f"✓ Updated objective {objective_id}")


@objective.command(name="rm")
@click.argument("course_id")
@click.argument("objective_id")
@click.pass_context
def remove_objective(ctx, course_id, objective_id):
    """Delete an objective."""
    with live_session(ctx, course_id) as core:
        core.remove_objective(objective_id)
    click.echo(f"✓ Deleted objective {objective_id}")


@objective.command(name="fill")
@click.argument("course_id")
@click.pass_context
def fill_objectives(ctx, course_id):
    """Create a blank objective for every task that has none."""
    with live_session(ctx, course_id) as core:
        created = core.create_objectives_for_uncovered()
    click.echo(f"✓ Created {len(created)} objective(s)")
