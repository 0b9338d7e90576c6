"""
Rule: Index Only Scan falling back to the heap

An index-only scan still visits the table for pages the visibility map
doesn't mark all-visible. A high heap fetch ratio means the table needs
a VACUUM.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.formatting import delimit
from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


class IndexOnlyHeapFetches(NodeRule):
    rule_id = "INDEX_ONLY_HEAP_FETCHES"
    severity = Severity.INFO
    description = "Index-only scan fetching many rows from the heap (warning above 90%)"
    requires_analyze = True

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.node_type != "Index Only Scan" or not node.heap_fetches:
            return []

        actual_rows = node.actual_rows if node.actual_rows is not None else 1
        if actual_rows <= 0:
            return []

        fetch_ratio = round(node.heap_fetches / actual_rows * 100, 1)
        if fetch_ratio <= ctx.config.heap_fetch_ratio:
            return []

        severity = (
            Severity.WARNING
            if fetch_ratio > ctx.config.heap_fetch_warning_ratio
            else self.severity
        )
        table = node.relation_name or "the table"
        return [Recommendation(
            severity=severity,
            title=f"Index Only Scan falling back to heap ({fetch_ratio}%)",
            description=(
                f"{delimit(node.heap_fetches)} of {delimit(actual_rows)} rows required a heap fetch "
                "because the visibility map is out of date. "
                "This negates most of the benefit of an index-only scan."
            ),
            action=f"VACUUM {table}; -- refreshes the visibility map so future index-only scans can skip heap fetches",
        )]
