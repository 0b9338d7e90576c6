"""
Output renderers for analysis reports.

Separates presentation from analysis: the report models carry values
only, and every color, icon and layout decision lives here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from planinspector.analyzer.formatting import delimit, format_ms, format_number
from planinspector.analyzer.models import Severity, VerdictLevel

if TYPE_CHECKING:
    from planinspector.analyzer.models import AnalysisReport, Recommendation

MAX_HOTSPOTS_SHOWN = 3


def render_json(report: "AnalysisReport", indent: int = 2) -> str:
    """
    Render the report as JSON.

    Uses the Pydantic models directly, so the schema always matches the
    report. Infinite ratios serialize as null.
    """
    return report.model_dump_json(indent=indent)


def print_report(report: "AnalysisReport", console: Console | None = None) -> None:
    """Print a report to a rich console."""
    console = console or Console()

    console.print(_verdict_panel(report))
    console.print(_summary_table(report))

    if report.hotspots:
        console.print("\n[bold]Performance Hotspots[/bold]")
        for hotspot in report.hotspots[:MAX_HOTSPOTS_SHOWN]:
            console.print(f"  [red]{escape(hotspot)}[/red]")

    if report.index_usage.warnings:
        console.print("\n[bold]Index Usage[/bold]")
        for warning in report.index_usage.warnings:
            console.print(f"  [yellow]{escape(warning)}[/yellow]")

    if report.recommendations:
        console.print(f"\n[bold]Recommendations ({len(report.recommendations)})[/bold]\n")
        for rec in report.recommendations:
            _print_recommendation(console, rec)


def _verdict_panel(report: "AnalysisReport") -> Panel:
    style = {
        VerdictLevel.GOOD: "green",
        VerdictLevel.OK: "yellow",
        VerdictLevel.BAD: "red",
    }[report.verdict.level]
    mode = "EXPLAIN ANALYZE" if report.analyze else "EXPLAIN (estimates only)"
    return Panel(
        f"[{style}]{escape(report.verdict.message)}[/{style}]",
        title=f"PlanInspector: {report.verdict.level.value.upper()}",
        subtitle=mode,
        border_style=style,
    )


def _summary_table(report: "AnalysisReport") -> Table:
    summary = report.summary
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="dim")
    table.add_column("Value")

    if summary.execution_time is not None:
        table.add_row("Execution time", format_ms(summary.execution_time))
    if summary.planning_time is not None:
        table.add_row("Planning time", format_ms(summary.planning_time))
    if summary.total_cost is not None:
        table.add_row("Total cost", format_number(summary.total_cost))
    if summary.actual_rows is not None:
        table.add_row("Rows returned", delimit(summary.actual_rows))
    table.add_row("Nodes", str(summary.node_count))

    usage = report.index_usage
    table.add_row("Index scans", f"{usage.index_scans}/{usage.total_scans}")
    if usage.indexes_used:
        table.add_row("Indexes used", escape(", ".join(usage.indexes_used)))

    hit_ratio = report.buffer_stats.hit_ratio
    if hit_ratio is not None:
        table.add_row("Cache hit ratio", f"{hit_ratio:.1f}%")

    return table


def _print_recommendation(console: Console, rec: "Recommendation") -> None:
    if rec.severity == Severity.CRITICAL:
        severity_style = "red bold"
    elif rec.severity == Severity.WARNING:
        severity_style = "yellow"
    else:
        severity_style = "blue"

    console.print(
        f"[{severity_style}]\\[{rec.severity.value.upper()}][/{severity_style}] {escape(rec.title)}"
    )
    console.print(f"   [dim]{escape(rec.description)}[/dim]")

    if rec.action:
        console.print("\n   [bold]Fix:[/bold]")
        for line in rec.action.split("\n"):
            if line.startswith("--"):
                console.print(f"   [dim]{escape(line)}[/dim]")
            else:
                console.print(f"   [green]{escape(line)}[/green]")

    console.print()
