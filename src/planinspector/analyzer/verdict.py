"""
VerdictCalculator: one good/ok/bad judgement for the whole plan.

- Any critical recommendation: bad
- Otherwise any warning: ok
- Otherwise: good

The message wording depends on whether the plan was actually run
(EXPLAIN ANALYZE) or is only an estimate.
"""

from __future__ import annotations

from typing import Sequence

from planinspector.analyzer.formatting import format_number
from planinspector.analyzer.models import (
    IndexUsage,
    Recommendation,
    Severity,
    Verdict,
    VerdictLevel,
)
from planinspector.analyzer.rules.plan_level import NO_INDEXES_USED_TITLE


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def calculate_verdict(
    analyze: bool,
    recommendations: Sequence[Recommendation],
    index_usage: IndexUsage,
    total_cost: float | None = None,
) -> Verdict:
    """
    Pure function: the same inputs always give the same verdict.

    Args:
        analyze: Whether the plan carries actual-run statistics
        recommendations: Everything the engine produced
        index_usage: Plan-wide scan counts
        total_cost: Root node cost, quoted in the estimate-only good message
    """
    critical = sum(1 for r in recommendations if r.severity == Severity.CRITICAL)
    warnings = sum(1 for r in recommendations if r.severity == Severity.WARNING)

    if critical:
        if analyze:
            message = f"This query needs attention: {_plural(critical, 'critical issue')} found."
        else:
            message = (
                f"Potential problems: {_plural(critical, 'critical issue')} "
                "found in the estimated plan."
            )
        if any(r.title == NO_INDEXES_USED_TITLE for r in recommendations):
            message += " No indexes used."
        return Verdict(level=VerdictLevel.BAD, message=message)

    if warnings:
        if analyze:
            message = f"Room for improvement: {_plural(warnings, 'warning')} found."
        else:
            message = f"Some concerns: {_plural(warnings, 'warning')} found in the estimated plan."
        return Verdict(level=VerdictLevel.OK, message=message)

    if analyze:
        message = "Query plan looks good"
    else:
        message = "Estimated plan looks efficient"
        if total_cost is not None:
            message += f" (total cost {format_number(total_cost)})"
    if index_usage.all_scans_use_indexes:
        message += ", all scans use indexes"
    return Verdict(level=VerdictLevel.GOOD, message=message + ".")
