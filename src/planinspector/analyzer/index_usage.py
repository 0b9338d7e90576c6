"""
IndexUsageAnalyzer: scan counts and index vs. sequential access.

A node counts as a scan when its type contains "Scan" or "Seek". Scans
whose type also contains "Index" count as index scans; plain "Seq Scan"
nodes are recorded with their filter columns so index suggestions can be
built from them later.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from planinspector.analyzer.columns import extract_columns
from planinspector.analyzer.formatting import delimit
from planinspector.analyzer.models import IndexUsage, SeqScanInfo
from planinspector.analyzer.path import walk_plan
from planinspector.config import DEFAULT_ANALYZER_CONFIG, AnalyzerConfig

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode

logger = logging.getLogger(__name__)

UNKNOWN_TABLE = "unknown table"


def is_scan_type(node_type: str) -> bool:
    """True for any node type counted as a scan."""
    return "Scan" in node_type or "Seek" in node_type


class _IndexUsageAccumulator:
    """Running totals for one walk. Always built fresh per call."""

    __slots__ = ("index_scans", "total_scans", "indexes_used", "seq_scans", "warnings")

    def __init__(self) -> None:
        self.index_scans = 0
        self.total_scans = 0
        self.indexes_used: dict[str, None] = {}
        self.seq_scans: list[SeqScanInfo] = []
        self.warnings: list[str] = []

    def freeze(self) -> IndexUsage:
        return IndexUsage(
            index_scans=self.index_scans,
            total_scans=self.total_scans,
            indexes_used=tuple(self.indexes_used),
            seq_scans=tuple(self.seq_scans),
            warnings=tuple(self.warnings),
        )


class IndexUsageAnalyzer:
    """
    Walks a plan once and reports how its scans access data.

    Example:
        usage = IndexUsageAnalyzer().analyze(request.root)
        if usage.total_scans and not usage.index_scans:
            print("no indexes used")
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or DEFAULT_ANALYZER_CONFIG

    def analyze(self, root: "PlanNode") -> IndexUsage:
        acc = _IndexUsageAccumulator()

        for _path, node in walk_plan(root):
            node_type = node.node_type
            if not is_scan_type(node_type):
                continue

            acc.total_scans += 1

            if "Index" in node_type:
                acc.index_scans += 1
                if node.index_name:
                    name = (
                        f"{node.relation_name}.{node.index_name}"
                        if node.relation_name
                        else node.index_name
                    )
                    acc.indexes_used.setdefault(name, None)
            elif node_type == "Seq Scan":
                self._record_seq_scan(acc, node)

        usage = acc.freeze()
        logger.debug(
            "Index usage: %d/%d scans use an index, %d seq scans",
            usage.index_scans,
            usage.total_scans,
            len(usage.seq_scans),
        )
        return usage

    def _record_seq_scan(self, acc: _IndexUsageAccumulator, node: "PlanNode") -> None:
        table = node.relation_name or UNKNOWN_TABLE
        rows = node.plan_rows or 0

        acc.seq_scans.append(
            SeqScanInfo(
                table=table,
                rows=rows,
                filter=node.filter,
                columns=tuple(extract_columns(node.filter)),
            )
        )

        if rows > self.config.large_seq_scan_rows:
            acc.warnings.append(f"Large sequential scan on {table} ({delimit(rows)} rows)")
        elif rows > self.config.seq_scan_rows and node.filter:
            acc.warnings.append(
                f"Sequential scan with filter on {table} - consider adding index"
            )


def analyze_index_usage(root: "PlanNode", config: AnalyzerConfig | None = None) -> IndexUsage:
    """Convenience wrapper around IndexUsageAnalyzer."""
    return IndexUsageAnalyzer(config).analyze(root)
