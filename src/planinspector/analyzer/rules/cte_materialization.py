"""Rule: Materialized CTE scan."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


class MaterializedCTE(NodeRule):
    rule_id = "MATERIALIZED_CTE"
    severity = Severity.INFO
    description = "CTE materialized before being scanned"

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.node_type != "CTE Scan":
            return []

        name = node.cte_name or "the CTE"
        return [Recommendation(
            severity=self.severity,
            title=f"Materialized CTE: {name}",
            description=(
                f"The CTE '{name}' is materialized into a temporary result set before being scanned. "
                "If the CTE result is large or the outer query filters most rows, this can be wasteful."
            ),
            action=(
                f"WITH {name} AS NOT MATERIALIZED (SELECT ...) -- allows PostgreSQL to inline "
                "the CTE and apply outer filters (requires PostgreSQL 12+)"
            ),
        )]
