"""Rule: Bitmap heap scan with heavy recheck (lossy bitmap)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.formatting import delimit
from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


class BitmapHeavyRecheck(NodeRule):
    rule_id = "BITMAP_HEAVY_RECHECK"
    severity = Severity.INFO
    description = "Bitmap heap scan rechecking many rows"
    requires_analyze = True

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.node_type != "Bitmap Heap Scan":
            return []

        rechecked = node.rows_removed_by_index_recheck
        if rechecked is None or rechecked <= ctx.config.recheck_rows:
            return []

        return [Recommendation(
            severity=self.severity,
            title="Bitmap scan with heavy recheck",
            description=(
                f"{delimit(rechecked)} rows were rechecked after the bitmap index scan. "
                "This happens when the bitmap becomes lossy (too many results)."
            ),
            action="Increase work_mem to keep more exact page references, or add a more selective index.",
        )]
