"""
CLI for the ABCD objectives wizard using .abcd/ folder-based storage.

Uses WizardCore and managers exclusively.
"""
import logging
from pathlib import Path

import click

from abcd_wizard.commands.config import config
from abcd_wizard.commands.edit import gap, objective, subtask
from abcd_wizard.commands.session import export, pull, status, validate
from abcd_wizard.constants import DEFAULT_WIZARD_DIR, get_config_manager


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log autosave and API activity.")
@click.option("--wizard-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help=f"Wizard data directory. Defaults to ./{DEFAULT_WIZARD_DIR}.")
@click.pass_context
def cli(ctx, verbose, wizard_dir):
    """Build ABCD learning objectives for a course, step by step."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["wizard_dir"] = wizard_dir
    get_config_manager(reset=True, wizard_dir=wizard_dir)


cli.add_command(pull)
cli.add_command(status)
cli.add_command(validate)
cli.add_command(export)
cli.add_command(gap)
cli.add_command(subtask)
cli.add_command(objective)
cli.add_command(config)


if __name__ == '__main__':
    cli()
