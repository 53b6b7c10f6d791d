"""wRVU Comp CLI - Command-line interface for physician compensation metrics."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console

from wrvucomp import __version__
from wrvucomp.sdk import (
    BenchmarkSet,
    ConfigError,
    InvalidInput,
    MetricStore,
    get_year_data_path,
    load_engine_settings,
    load_snapshot,
    monthly_target,
    nearest_benchmark,
    percentile_of,
    run_batch,
)

from .renderers.metrics_renderer import render_batch_report
from .settings_commands import settings as settings_group

METRICS_FILENAME = "metrics.json"


@click.group()
@click.version_option(version=__version__, prog_name="wrvu-comp")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def cli(verbose):
    """wRVU Comp - Physician compensation calculation engine.

    Computes monthly wRVU targets, market percentiles, incentives and
    holdbacks from a snapshot of provider, market and productivity data.

    Configuration is loaded from (in order):

    \b
    1. WRVU_COMP_CONFIG_PATH environment variable
    2. ~/.config/wrvu-comp/organization.yaml (XDG default)
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


cli.add_command(settings_group)


@cli.command("compute")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--year", "-y", type=int, required=True, help="Calendar year to compute.")
@click.option("--through-month", type=click.IntRange(1, 12), default=12, show_default=True,
              help="Last month to compute (year-to-date runs).")
@click.option("--workers", type=click.IntRange(1, None), default=1, show_default=True,
              help="Providers computed in parallel.")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              help="Upsert metrics into this JSON file.")
@click.option("--save", is_flag=True,
              help="Upsert metrics into the data directory (<data_dir>/<year>/metrics.json).")
@click.option("--format", "output_format", type=click.Choice(["json", "table"]), default="json",
              show_default=True, help="Output format for stdout.")
def compute_cmd(snapshot, year, through_month, workers, output, save, output_format):
    """Compute monthly metrics for every provider in SNAPSHOT.

    SNAPSHOT is a YAML or JSON file with providers, benchmarks, actuals
    and adjustments. Providers with invalid data are skipped and listed
    in the report; they never abort the run.

    With --save, metrics are upserted into the year folder of the data
    directory (see `wrvu-comp settings data-dir`). --output wins if both
    are given.

    Examples:
        wrvu-comp compute snapshot.yaml --year 2025
        wrvu-comp compute snapshot.yaml -y 2025 --through-month 6 -o metrics.json
        wrvu-comp compute snapshot.yaml -y 2025 --save
    """
    try:
        engine_settings = load_engine_settings()
        data = load_snapshot(snapshot)
    except (ConfigError, InvalidInput) as e:
        raise click.ClickException(str(e))

    report = run_batch(
        data, year,
        settings=engine_settings,
        through_month=through_month,
        max_workers=workers,
    )

    if output is None and save:
        output = get_year_data_path(year) / METRICS_FILENAME

    if output:
        store = MetricStore.load(output) if output.exists() else MetricStore()
        counts = store.upsert_many(report.metrics)
        store.save(output)
        click.echo(
            f"Saved {len(store)} metric(s) to {output} "
            f"({counts['created']} created, {counts['updated']} updated, "
            f"{counts['unchanged']} unchanged)",
            err=True,
        )

    if output_format == "table":
        render_batch_report(Console(), report.model_dump())
    else:
        click.echo(json.dumps(report.model_dump(), indent=2))


@cli.command("percentile")
@click.argument("value", type=float)
@click.option("--p25", type=float, required=True, help="25th percentile benchmark.")
@click.option("--p50", type=float, required=True, help="50th percentile benchmark.")
@click.option("--p75", type=float, required=True, help="75th percentile benchmark.")
@click.option("--p90", type=float, required=True, help="90th percentile benchmark.")
def percentile_cmd(value, p25, p50, p75, p90):
    """Show the market percentile of VALUE against a benchmark curve.

    Example:
        wrvu-comp percentile 4250 --p25 4000 --p50 4500 --p75 5000 --p90 5500
    """
    try:
        benchmarks = BenchmarkSet(p25=p25, p50=p50, p75=p75, p90=p90)
        result = percentile_of(value, benchmarks)
        label = nearest_benchmark(value, benchmarks)
    except (InvalidInput, ValueError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Percentile: {result:.2f} ({label})")


@cli.command("target")
@click.option("--salary", type=float, required=True, help="Annual base salary.")
@click.option("--cf", "conversion_factor", type=float, required=True, help="Conversion factor ($/wRVU).")
@click.option("--clinical-fte", type=float, default=1.0, show_default=True, help="Clinical FTE.")
def target_cmd(salary, conversion_factor, clinical_fte):
    """Show monthly and annual wRVU targets for a salary.

    Example:
        wrvu-comp target --salary 245055 --cf 47.9
    """
    try:
        monthly = monthly_target(salary, conversion_factor, clinical_fte)
    except InvalidInput as e:
        raise click.ClickException(str(e))

    click.echo(f"Monthly target: {monthly:,.2f} wRVUs")
    click.echo(f"Annual target:  {monthly * 12:,.2f} wRVUs")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
