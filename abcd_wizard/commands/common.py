"""
Shared helpers for wizard CLI commands.

Commands get their WizardCore from here so that the .abcd/ location and the
API client can be swapped through the click context object.
"""
from contextlib import contextmanager
from typing import Iterator, Tuple

import click

from abcd_wizard.core import WizardCore
from abcd_wizard.exceptions import WizardError


def make_core(ctx: click.Context, course_id: str, autosave_enabled: bool) -> WizardCore:
    """Build a WizardCore from the options stored on the click context."""
    obj = ctx.obj or {}
    factory = obj.get("client_factory")
    return WizardCore(
        course_id,
        wizard_dir=obj.get("wizard_dir"),
        client=factory() if factory else None,
        autosave_enabled=autosave_enabled,
    )


@contextmanager
def local_session(ctx: click.Context, course_id: str) -> Iterator[WizardCore]:
    """Read-only session over the local snapshot. No network writes."""
    core = make_core(ctx, course_id, autosave_enabled=False)
    try:
        core.load_local()
        yield core
    except WizardError as e:
        raise click.ClickException(str(e))
    finally:
        core.close()


@contextmanager
def live_session(ctx: click.Context, course_id: str) -> Iterator[WizardCore]:
    """Editing session: pull, edit with autosave, flush, save the snapshot.

    The local snapshot is refreshed only when the edits went through.
    """
    core = make_core(ctx, course_id, autosave_enabled=True)
    try:
        core.pull()
        yield core
        core.close()
        core.save_local()
    except WizardError as e:
        raise click.ClickException(str(e))
    finally:
        core.close()


def parse_assignments(pairs: Tuple[str, ...]) -> dict:
    """Parse key=value arguments into a field map.

    "true"/"false" become booleans and an empty value after "=" clears a
    text field. Keys may use dashes instead of underscores.

    Raises:
        click.BadParameter: If an argument has no "=".
    """
    fields = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected key=value, got '{pair}'.")
        key, value = pair.split("=", 1)
        key = key.strip().replace("-", "_")
        lowered = value.strip().lower()
        if lowered == "true":
            fields[key] = True
        elif lowered == "false":
            fields[key] = False
        elif key == "sort_order" and value.strip().lstrip("-").isdigit():
            fields[key] = int(value)
        elif key == "linked_task_id" and not value:
            fields[key] = None
        else:
            fields[key] = value
    return fields

