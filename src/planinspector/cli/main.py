"""
PlanInspector CLI - PostgreSQL EXPLAIN plan analyzer.

Usage:
    planinspector analyze explain.json
    planinspector analyze --estimate --json plain_explain.json
    planinspector analyze --fail-on ok explain.json
    planinspector rules
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from planinspector import __version__
from planinspector.analyzer import PlanAnalyzer, Severity, VerdictLevel
from planinspector.analyzer.rules import all_rules
from planinspector.config import get_config, load_config_from_file
from planinspector.exceptions import PlanInspectorError
from planinspector.output import print_report, render_json
from planinspector.parser import parse_explain_file


class FailOn(str, Enum):
    """Verdict level that makes `analyze` exit non-zero."""
    bad = "bad"
    ok = "ok"


app = typer.Typer(
    name="planinspector",
    help="PostgreSQL EXPLAIN plan analyzer",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"PlanInspector version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send library debug logs to stderr through rich."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """PlanInspector - PostgreSQL EXPLAIN plan analyzer."""
    pass


@app.command()
def analyze(
    explain_file: Annotated[
        Path,
        typer.Argument(
            help="Path to EXPLAIN output file (JSON format)",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    mode: Annotated[
        Optional[bool],
        typer.Option(
            "--analyze/--estimate",
            help="Treat the plan as EXPLAIN ANALYZE or estimate-only output (detected if omitted)",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output the report as JSON"),
    ] = False,
    fail_on: Annotated[
        Optional[FailOn],
        typer.Option(
            "--fail-on",
            help="Exit with code 1 when the verdict is at least this bad",
        ),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="JSON file with analyzer thresholds",
            exists=True,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Analyze PostgreSQL EXPLAIN (FORMAT JSON) output.

    Examples:

        $ psql -XqAt -c "EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON) SELECT ..." > explain.json
        $ planinspector analyze explain.json
    """
    configure_logging(verbose)

    try:
        config = load_config_from_file(config_file) if config_file else get_config()
        output = parse_explain_file(explain_file)
        report = PlanAnalyzer(config).analyze(output.to_request(analyze=mode))
    except PlanInspectorError as e:
        error_console.print(f"[red]Error:[/red] {escape(e.message)}")
        detail = getattr(e, "detail", None)
        if detail:
            error_console.print(f"\n[dim]{escape(detail)}[/dim]")
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(render_json(report))
    else:
        print_report(report, console)

    if fail_on is not None and report.verdict.level.rank >= VerdictLevel(fail_on.value).rank:
        raise typer.Exit(code=1)


@app.command()
def rules() -> None:
    """List all recommendation rules."""
    table = Table()
    table.add_column("Rule ID", style="cyan", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Scope")
    table.add_column("Description")

    available = all_rules()
    for rule in available:
        severity = rule.severity.value.upper()
        if rule.severity == Severity.CRITICAL:
            sev_style = "red bold"
        elif rule.severity == Severity.WARNING:
            sev_style = "yellow"
        else:
            sev_style = "blue"

        table.add_row(
            rule.rule_id,
            f"[{sev_style}]{severity}[/{sev_style}]",
            "ANALYZE" if rule.requires_analyze else "any",
            rule.description,
        )

    console.print(table)
    console.print(f"\n[dim]{len(available)} rules available[/dim]")


if __name__ == "__main__":
    app()
