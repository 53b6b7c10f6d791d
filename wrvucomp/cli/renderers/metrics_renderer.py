"""Rich renderer for batch metrics.

Transforms SDK BatchReport output into formatted Rich tables.
"""

from itertools import groupby

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table


def render_batch_report(console: Console, report: dict) -> None:
    """Render a batch report as one table per provider.

    Args:
        console: Rich Console instance
        report: BatchReport.model_dump() output
    """
    for warning in report.get("warnings", []):
        console.print(Panel(f"[yellow]{warning}[/yellow]", title="Note", border_style="yellow"))

    metrics = report.get("metrics", [])
    if not metrics:
        console.print("[dim]No metrics computed.[/dim]")

    for provider_id, rows in groupby(metrics, key=lambda m: m["provider_id"]):
        _render_provider_table(console, provider_id, report.get("year"), list(rows))

    skipped = report.get("skipped", [])
    if skipped:
        _render_skipped(console, skipped)


def _render_provider_table(console: Console, provider_id: str, year, rows: list) -> None:
    table = Table(title=f"{provider_id} ({year})", box=box.SIMPLE_HEAVY)
    table.add_column("Month", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("YTD Actual", justify="right")
    table.add_column("YTD Target", justify="right")
    table.add_column("wRVU %ile", justify="right")
    table.add_column("Comp %ile", justify="right")
    table.add_column("Incentive", justify="right")
    table.add_column("Holdback", justify="right")
    table.add_column("Total Comp", justify="right")
    table.add_column("Progress", justify="right")

    for row in rows:
        progress = row["plan_progress"]
        progress_style = "green" if progress >= 100 else "yellow"
        table.add_row(
            str(row["month"]),
            f"{row['actual']:,.2f}",
            f"{row['target']:,.2f}",
            f"{row['cumulative_actual']:,.2f}",
            f"{row['cumulative_target']:,.2f}",
            f"{row['wrvu_percentile']:.1f}",
            f"{row['comp_percentile']:.1f}",
            f"${row['incentive']:,.2f}",
            f"${row['holdback']:,.2f}",
            f"${row['total_compensation']:,.2f}",
            f"[{progress_style}]{progress:.1f}%[/{progress_style}]",
        )

    console.print(table)


def _render_skipped(console: Console, skipped: list) -> None:
    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("Provider")
    table.add_column("Month", justify="right")
    table.add_column("Error", style="red")
    table.add_column("Reason")

    for item in skipped:
        month = item.get("month")
        table.add_row(item["provider_id"], str(month) if month else "-", item["error"], item["reason"])

    console.print(Panel(table, title="Skipped", border_style="red"))
