"""Rule: Nested loop with many iterations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.formatting import delimit
from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


class NestedLoopIterations(NodeRule):
    """
    Flags Nested Loop nodes executed more than loop_threshold times.

    Each loop re-runs the inner side, so without an index lookup there the
    cost grows with the product of both inputs.
    """

    rule_id = "NESTED_LOOP_ITERATIONS"
    severity = Severity.WARNING
    description = "Nested loop whose inner side runs many times"
    requires_analyze = True

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.node_type != "Nested Loop" or node.actual_loops is None:
            return []
        if node.actual_loops <= ctx.config.loop_threshold:
            return []

        loops = delimit(node.actual_loops)
        return [Recommendation(
            severity=self.severity,
            title=f"Nested loop with {loops} iterations",
            description=(
                f"The inner side of this join is executed {loops} times. "
                "If the inner operation is not an index lookup, this can be extremely slow."
            ),
            action=(
                "Consider restructuring the query to allow a hash join, "
                "or ensure the inner table has appropriate indexes."
            ),
        )]
