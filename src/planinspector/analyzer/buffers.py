"""BufferStatsCollector: shared buffer block totals for a plan."""

from __future__ import annotations

from typing import TYPE_CHECKING

from planinspector.analyzer.models import BufferStats
from planinspector.analyzer.path import walk_plan

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


def collect_buffer_stats(root: "PlanNode") -> BufferStats:
    """
    Sum shared hit/read/written blocks over every node.

    total is hit + read; written blocks are tracked but not part of the
    total. Absent counters count as zero, so the result does not depend
    on traversal order.
    """
    hit = read = written = 0

    for _path, node in walk_plan(root):
        hit += node.shared_hit_blocks or 0
        read += node.shared_read_blocks or 0
        written += node.shared_written_blocks or 0

    return BufferStats(hit=hit, read=read, written=written, total=hit + read)
