from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from failover_probe.controller import RunSummary


def build_summary_table(summary: RunSummary) -> Table:
    """
    Render a run summary as a two-column rich table.
    """
    title = "Failover Probe Results"
    table = Table(title=title, box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")

    finished = summary.finished_at.isoformat() if summary.finished_at else "N/A"
    throughput = summary.records / summary.duration_seconds if summary.duration_seconds else 0.0

    table.add_row("Mode", summary.mode.value)
    table.add_row("Start time", summary.started_at.isoformat())
    table.add_row("End time", finished)
    table.add_row("Duration (s)", f"{summary.duration_seconds:.2f}")
    table.add_row("Records written", f"{summary.records:,}")
    table.add_row("Attempts", f"{summary.attempts:,}")
    table.add_row("Throughput (rows/s)", f"{throughput:,.2f}")
    table.add_row("Recovered failure streaks", str(summary.recovered_streaks))

    if summary.downtimes_ms:
        downtimes = ", ".join(f"{value}ms" for value in summary.downtimes_ms)
        table.add_row("Downtime", downtimes, style="bold red")
        table.add_row("Max downtime (ms)", str(summary.max_downtime_ms), style="bold red")
    else:
        table.add_row("Downtime", "[green]none observed[/green]")

    return table


def print_summary(summary: RunSummary, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(build_summary_table(summary))
