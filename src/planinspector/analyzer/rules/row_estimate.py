"""
Rule: Row estimate mismatch

When the planner's row estimate is off by an order of magnitude it picks
join types and scan methods for the wrong data volume. Stale statistics
are the usual cause, so the suggested fix is ANALYZE.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.formatting import delimit
from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext
from planinspector.analyzer.warnings import row_estimate_ratio

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


def mismatch_factor(ratio: float) -> str:
    """
    How many times off the estimate was, as shown in the title.

    Overestimates are inverted so "10x" reads the same in both directions.
    """
    if math.isinf(ratio) or ratio == 0:
        return "∞"
    if ratio > 1:
        return str(round(ratio))
    return str(round(1 / ratio))


class RowEstimateMismatch(NodeRule):
    rule_id = "ROW_ESTIMATE_MISMATCH"
    severity = Severity.WARNING
    description = "Planner row estimate far from actual rows"
    requires_analyze = True

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.actual_rows is None or node.plan_rows is None:
            return []

        actual, estimated = node.actual_rows, node.plan_rows
        ratio = row_estimate_ratio(actual, estimated)
        threshold = ctx.config.estimate_ratio

        if abs(actual - estimated) <= ctx.config.estimate_min_diff:
            return []
        if not (ratio > threshold or ratio < 1 / threshold):
            return []

        table = node.relation_name or "the involved table"
        return [Recommendation(
            severity=self.severity,
            title=f"Row estimate off by {mismatch_factor(ratio)}x on {node.node_type}",
            description=(
                f"PostgreSQL estimated {delimit(estimated)} rows but got {delimit(actual)}. "
                "Bad estimates lead to suboptimal plan choices (wrong join type, wrong scan method)."
            ),
            action=f"ANALYZE {table}; -- updates table statistics so the planner makes better estimates",
        )]
