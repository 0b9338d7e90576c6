"""
Output module - Separates rendering from analysis.

- print_report: rich terminal output for the CLI
- render_json: JSON for scripts and API consumers

Usage:
    from planinspector.output import print_report, render_json

    report = analyze_plan(explain.to_request())
    print_report(report)
"""

from planinspector.output.renderers import print_report, render_json

__all__ = ["print_report", "render_json"]
