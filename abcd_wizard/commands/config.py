"""
Config command group.

Commands for viewing and editing wizard configuration.
"""
import json

import click
from pydantic import ValidationError as PydanticValidationError

from abcd_wizard.constants import get_config_manager
from abcd_wizard.exceptions import WizardError
from abcd_wizard.managers import StorageManager
from abcd_wizard.models.files import ConfigFile

# Keys that are not user-editable
READ_ONLY_KEYS = {"schema_version"}


def _storage(ctx: click.Context) -> StorageManager:
    obj = ctx.obj or {}
    return StorageManager(obj.get("wizard_dir"))


def _load(ctx: click.Context) -> tuple:
    storage = _storage(ctx)
    try:
        return storage, storage.load_config()
    except WizardError as e:
        raise click.ClickException(str(e))


def _check_key(key: str) -> str:
    key = key.replace("-", "_")
    if key not in ConfigFile.model_fields:
        known = ", ".join(k for k in ConfigFile.model_fields if k not in READ_ONLY_KEYS)
        raise click.ClickException(f"Unknown config key '{key}'. Known keys: {known}")
    return key


@click.group()
def config():
    """View and edit wizard configuration.

    Configuration is stored in .abcd/config.json.
    """
    pass


@config.command(name="show")
@click.pass_context
def show_config(ctx):
    """Show current configuration."""
    _, current = _load(ctx)
    click.echo(json.dumps(current.model_dump(mode="json"), indent=2))


@config.command(name="get")
@click.argument("key")
@click.pass_context
def get_config(ctx, key):
    """Get a configuration value."""
    key = _check_key(key)
    _, current = _load(ctx)
    click.echo(getattr(current, key))


@config.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_config(ctx, key, value):
    """Set a configuration value."""
    key = _check_key(key)
    if key in READ_ONLY_KEYS:
        raise click.ClickException(f"'{key}' cannot be changed.")

    storage, current = _load(ctx)
    data = current.model_dump()
    data[key] = value
    try:
        updated = ConfigFile.model_validate(data)
    except PydanticValidationError as e:
        raise click.ClickException(f"Invalid value for '{key}': {e.errors()[0]['msg']}")

    try:
        storage.save_config(updated)
    except WizardError as e:
        raise click.ClickException(str(e))
    get_config_manager().reload()
    click.echo(f"✓ {key} = {getattr(updated, key)}")
