"""
Rules: Correlated subquery (SubPlan)

Detects subqueries re-evaluated once per outer row. PostgreSQL shows
them either as a node whose type starts with "SubPlan" or as a child
marked with a Subplan Name / "SubPlan" parent relationship.

Why it matters:
- A 10K row outer result with a subquery means 10K subquery executions
- A JOIN or semi-join usually does the same work in one pass

Both shapes are checked; when both match the same node only one
recommendation is emitted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.formatting import delimit
from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode

CORRELATED_SUBQUERY_TITLE = "Correlated subquery detected"


def _severity_for(loops: int, ctx: RuleContext) -> Severity:
    return Severity.CRITICAL if loops > ctx.config.loop_threshold else Severity.WARNING


class SubPlanNode(NodeRule):
    """Node types named "SubPlan" or "SubPlan <n>"."""

    rule_id = "CORRELATED_SUBQUERY"
    severity = Severity.WARNING
    description = "SubPlan node executed once per outer row (critical above the loop threshold)"

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if not node.node_type.startswith("SubPlan"):
            return []

        if ctx.analyze and node.actual_loops is not None:
            loops = node.actual_loops
        else:
            loops = node.plan_rows or 0

        times = f" ({delimit(loops)} times)" if loops > 1 else ""
        return [Recommendation(
            severity=_severity_for(loops, ctx),
            title=CORRELATED_SUBQUERY_TITLE,
            description=(
                f"A subquery is being executed once per row from the outer query{times}. "
                "This is one of the most common causes of slow queries."
            ),
            action=(
                "Rewrite the correlated subquery as a JOIN or use a lateral join. "
                "Example: SELECT ... FROM outer_table LEFT JOIN (subquery) ON ... "
                "instead of SELECT ..., (SELECT ...) FROM outer_table"
            ),
        )]


class SubPlanChild(NodeRule):
    """Nodes attached to their parent as a SubPlan."""

    rule_id = "CORRELATED_SUBQUERY_CHILD"
    severity = Severity.WARNING
    description = "Child plan run as a SubPlan of its parent (critical above the loop threshold)"

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if not (node.subplan_name or node.parent_relationship == "SubPlan"):
            return []
        if any(rec.title == CORRELATED_SUBQUERY_TITLE for rec in emitted):
            return []

        if ctx.analyze:
            loops = node.actual_loops or 0
        else:
            loops = node.plan_rows or 0

        executions = f" ({delimit(loops)} executions)" if loops > 1 else ""
        return [Recommendation(
            severity=_severity_for(loops, ctx),
            title=CORRELATED_SUBQUERY_TITLE,
            description=(
                f"A subquery ({node.subplan_name or node.node_type}) runs for each row "
                f"of the outer query{executions}. This pattern scales poorly with table size."
            ),
            action=(
                "Rewrite as a JOIN: replace WHERE col IN (SELECT ...) with an INNER JOIN, "
                "or WHERE EXISTS (SELECT ...) with a semi-join."
            ),
        )]
