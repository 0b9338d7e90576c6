"""
Recommendation rules.

Node rules run at every node in this order, so recommendations for one
node always come out in the same sequence; plan rules run afterwards.
"""

from planinspector.analyzer.rules.base import NodeRule, PlanRule, RuleContext
from planinspector.analyzer.rules.bitmap_recheck import BitmapHeavyRecheck
from planinspector.analyzer.rules.correlated_subquery import SubPlanChild, SubPlanNode
from planinspector.analyzer.rules.cte_materialization import MaterializedCTE
from planinspector.analyzer.rules.hash_memory import LargeHashTable
from planinspector.analyzer.rules.index_only_heap_fetches import IndexOnlyHeapFetches
from planinspector.analyzer.rules.nested_loop import NestedLoopIterations
from planinspector.analyzer.rules.plan_level import (
    LowCacheHitRatio,
    NoIndexesUsed,
    PlanningTimeDominates,
    SlowQuery,
)
from planinspector.analyzer.rules.row_estimate import RowEstimateMismatch
from planinspector.analyzer.rules.seq_scan_filter import SeqScanWithFilter
from planinspector.analyzer.rules.sort_spill import LargeInMemorySort, SortSpilledToDisk

NODE_RULES: tuple[NodeRule, ...] = (
    SeqScanWithFilter(),
    SortSpilledToDisk(),
    LargeInMemorySort(),
    NestedLoopIterations(),
    RowEstimateMismatch(),
    LargeHashTable(),
    BitmapHeavyRecheck(),
    SubPlanNode(),
    SubPlanChild(),
    MaterializedCTE(),
    IndexOnlyHeapFetches(),
)

PLAN_RULES: tuple[PlanRule, ...] = (
    PlanningTimeDominates(),
    LowCacheHitRatio(),
    NoIndexesUsed(),
    SlowQuery(),
)


def all_rules() -> list[NodeRule | PlanRule]:
    """Every rule in evaluation order."""
    return [*NODE_RULES, *PLAN_RULES]


__all__ = [
    "NodeRule",
    "PlanRule",
    "RuleContext",
    "NODE_RULES",
    "PLAN_RULES",
    "all_rules",
    "BitmapHeavyRecheck",
    "IndexOnlyHeapFetches",
    "LargeHashTable",
    "LargeInMemorySort",
    "LowCacheHitRatio",
    "MaterializedCTE",
    "NestedLoopIterations",
    "NoIndexesUsed",
    "PlanningTimeDominates",
    "RowEstimateMismatch",
    "SeqScanWithFilter",
    "SlowQuery",
    "SortSpilledToDisk",
    "SubPlanChild",
    "SubPlanNode",
]
