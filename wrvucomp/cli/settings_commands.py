"""Settings CLI commands for wRVU Comp.

Manages organization.yaml (compensation defaults) and settings.json
(data directory, organization file location).
"""

import click
from pathlib import Path

from wrvucomp.sdk import (
    ConfigError,
    get_data_path,
    get_organization_path,
    get_settings_path,
    load_engine_settings,
    load_settings,
    set_organization_value,
    set_setting,
)


@click.group()
def settings():
    """Manage settings (organization.yaml and settings.json).

    Available settings:
    - default_holdback_percent: holdback when a provider has no override
    - fallback_conversion_factor: $/wRVU when a specialty has no market data
    - data_dir: directory where `compute --save` writes metrics
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their effective values."""
    try:
        engine = load_engine_settings()
    except ConfigError as e:
        raise click.ClickException(str(e))

    org_path = get_organization_path()
    click.echo(f"Organization file: {org_path}")
    click.echo(f"File exists: {org_path.exists()}")
    click.echo()
    click.echo("Compensation settings:")
    click.echo(f"  default_holdback_percent: {engine.default_holdback_percent}")
    click.echo(f"  fallback_conversion_factor: {engine.fallback_conversion_factor}")
    click.echo()

    current = load_settings()
    click.echo(f"Settings file: {get_settings_path()}")
    for key, value in current.items():
        click.echo(f"  {key}: {value}")
    click.echo(f"  data_dir (effective): {get_data_path()}")


@settings.command("holdback")
@click.argument("percent", type=float)
def settings_holdback(percent):
    """Set the organization-wide default holdback PERCENT (0-100)."""
    try:
        path = set_organization_value("default_holdback_percent", percent)
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(f"Set default_holdback_percent: {percent}")
    click.echo(f"Saved to: {path}")


@settings.command("fallback-cf")
@click.argument("rate", type=float)
def settings_fallback_cf(rate):
    """Set the fallback conversion factor RATE ($/wRVU, must be positive)."""
    try:
        path = set_organization_value("fallback_conversion_factor", rate)
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(f"Set fallback_conversion_factor: {rate}")
    click.echo(f"Saved to: {path}")


@settings.command("data-dir")
@click.argument("path", type=click.Path())
def settings_data_dir(path):
    """Set the directory where computed metrics are written."""
    data_path = Path(path).expanduser().resolve()

    if data_path.exists() and not data_path.is_dir():
        raise click.ClickException(f"Path exists but is not a directory: {data_path}")

    try:
        data_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise click.ClickException(f"Cannot create directory: {data_path}\n{e}")

    set_setting("data_dir", str(data_path))
    click.echo(f"Set data_dir: {data_path}")
    click.echo(f"Saved to: {get_settings_path()}")
