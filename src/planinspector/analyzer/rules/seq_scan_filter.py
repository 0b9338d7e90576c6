"""
Rule: Sequential scan with filter

A Seq Scan that reads many rows only to throw most of them away is the
classic missing-index symptom. The suggested index is built from the
columns found in the Filter expression.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.columns import extract_columns
from planinspector.analyzer.formatting import delimit
from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


def selectivity_percent(rows: int, removed: int) -> str:
    """Percentage of scanned rows kept; exactly "100" when nothing was removed."""
    if removed <= 0:
        return "100"
    return str(round(rows / (rows + removed) * 100, 1))


class SeqScanWithFilter(NodeRule):
    rule_id = "SEQ_SCAN_WITH_FILTER"
    severity = Severity.CRITICAL
    description = "Sequential scan discarding rows through a filter"

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.node_type != "Seq Scan" or not node.filter:
            return []

        table = node.relation_name or "table"
        if ctx.analyze:
            rows = node.actual_rows if node.actual_rows is not None else (node.plan_rows or 0)
        else:
            rows = node.plan_rows or 0
        removed = node.rows_removed_by_filter or 0
        scanned = rows + removed

        if scanned <= ctx.config.filtered_scan_rows:
            return []

        columns = extract_columns(node.filter)
        first_column = columns[0] if columns else "column"
        column_list = ", ".join(columns) if columns else "the filtered column(s)"

        return [Recommendation(
            severity=self.severity,
            title=f"Sequential scan with filter on '{table}'",
            description=(
                f"PostgreSQL scanned {delimit(scanned)} rows but only kept {delimit(rows)} "
                f"({selectivity_percent(rows, removed)}% selectivity). "
                "A targeted index would avoid scanning irrelevant rows."
            ),
            action=f"CREATE INDEX idx_{table}_on_{first_column} ON {table} ({column_list});",
        )]
