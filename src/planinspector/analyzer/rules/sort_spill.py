"""
Rules: Sort memory usage

A sort that spills to disk is much slower than one that fits in
work_mem; a very large in-memory sort is fine alone but adds up under
concurrency.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import NodeRule, RuleContext

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


def suggested_work_mem_mb(space_kb: int, floor_mb: int) -> int:
    """Twice the spilled space, in whole MB, never below floor_mb."""
    return max(math.ceil(space_kb * 2 / 1024), floor_mb)


class SortSpilledToDisk(NodeRule):
    rule_id = "SORT_SPILLED_TO_DISK"
    severity = Severity.WARNING
    description = "Sort exceeded work_mem and used disk"
    requires_analyze = True

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.node_type != "Sort" or node.sort_space_type != "Disk":
            return []

        space = node.sort_space_used or 0
        work_mem = suggested_work_mem_mb(space, ctx.config.min_work_mem_mb)

        return [Recommendation(
            severity=self.severity,
            title=f"Sort spilled to disk ({space}kB)",
            description=(
                "The sort couldn't fit in memory and used disk, which is much slower. "
                "This happens when work_mem is too small for the data being sorted."
            ),
            action=f"SET work_mem = '{work_mem}MB'; -- or increase work_mem in postgresql.conf",
        )]


class LargeInMemorySort(NodeRule):
    rule_id = "LARGE_IN_MEMORY_SORT"
    severity = Severity.INFO
    description = "In-memory sort using a large amount of work_mem"
    requires_analyze = True

    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        if node.node_type != "Sort" or node.sort_space_type != "Memory":
            return []

        space = node.sort_space_used or 0
        if space <= ctx.config.memory_sort_kb:
            return []

        return [Recommendation(
            severity=self.severity,
            title=f"Large in-memory sort ({space}kB)",
            description=(
                "The sort fits in memory but uses significant space. "
                "If this query runs concurrently, total memory usage could be high."
            ),
        )]
