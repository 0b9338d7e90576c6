"""Rule: Large hash table."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


class LargeHashTable(NodeRule):
    rule_id = "LARGE_HASH_TABLE"
    severity = Severity.INFO
    description = "Hash node with high peak memory usage"
    requires_analyze = True

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.node_type != "Hash" or node.peak_memory_usage is None:
            return []

        peak_kb = node.peak_memory_usage
        if peak_kb <= ctx.config.hash_peak_memory_kb:
            return []

        work_mem = max(math.ceil(peak_kb / 512), ctx.config.min_work_mem_mb)
        return [Recommendation(
            severity=self.severity,
            title=f"Large hash table ({peak_kb / 1024:.1f}MB)",
            description=(
                "Building the hash table for this join used significant memory. "
                "Under concurrent load, this could cause memory pressure."
            ),
            action=f"SET work_mem = '{work_mem}MB'; -- ensure enough memory for the hash",
        )]
