"""
WarningDetector: short diagnostic badges for a single plan node.

Every check is independent, so one node can carry several badges (a big
filtered Seq Scan gets both "Large Seq Scan" and "Filtered Seq Scan").

Also home to the per-node row-estimate classification and filter
efficiency figures shown next to each node.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from planinspector.analyzer.formatting import delimit
from planinspector.analyzer.models import Badge, BadgeType, EstimateAccuracy, RowEstimate
from planinspector.config import DEFAULT_ANALYZER_CONFIG, AnalyzerConfig

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode

# Ratio band outside of which an estimate is "off" rather than accurate.
OFF_RATIO_LOW = 0.5
OFF_RATIO_HIGH = 2.0


def row_estimate_ratio(actual: int, estimated: int) -> float:
    """
    actual / estimated, guarded against a zero estimate.

    Returns inf when nothing was expected but rows came back, and 1.0 when
    both are zero.
    """
    if estimated > 0:
        return actual / estimated
    if actual == 0:
        return 1.0
    return math.inf


def detect_warnings(
    node: "PlanNode",
    analyze: bool = False,
    config: AnalyzerConfig | None = None,
) -> list[Badge]:
    """
    Classify one node into zero or more badges.

    Example:
        >>> node = PlanNode(node_type="Seq Scan", relation_name="users", plan_rows=50000)
        >>> detect_warnings(node)[0].text
        'Large Seq Scan (50,000 rows on users)'
    """
    config = config or DEFAULT_ANALYZER_CONFIG
    badges: list[Badge] = []
    node_type = node.node_type

    if node_type == "Seq Scan":
        table = node.relation_name or "table"
        rows = node.plan_rows or 0
        if rows > config.large_seq_scan_rows:
            badges.append(Badge(
                type=BadgeType.SEQ_SCAN,
                text=f"Large Seq Scan ({delimit(rows)} rows on {table})",
            ))
        elif rows > config.seq_scan_rows:
            badges.append(Badge(type=BadgeType.SEQ_SCAN, text=f"Seq Scan ({table})"))

    if (
        node_type == "Bitmap Heap Scan"
        and node.plan_rows is not None
        and node.plan_rows > config.large_bitmap_rows
    ):
        badges.append(Badge(type=BadgeType.SORT, text="Large Bitmap Scan"))

    if node_type == "Sort" and node.plan_rows is not None and node.plan_rows > config.large_sort_rows:
        badges.append(Badge(
            type=BadgeType.SORT,
            text=f"Large Sort ({delimit(node.plan_rows)} rows)",
        ))

    if node_type == "Nested Loop" and node.children:
        inner_rows = max(child.plan_rows or 0 for child in node.children)
        if inner_rows > config.nested_loop_inner_rows:
            badges.append(Badge(
                type=BadgeType.NESTED_LOOP,
                text=f"Large Nested Loop ({delimit(inner_rows)} inner rows)",
            ))

    if analyze and node.actual_rows is not None and node.plan_rows is not None:
        actual, estimated = node.actual_rows, node.plan_rows
        if estimated > 0 and actual > estimated * config.fanout_ratio:
            ratio = round(actual / estimated, 1)
            badges.append(Badge(
                type=BadgeType.FANOUT,
                text=f"Row Explosion ({ratio}x estimate)",
            ))

    if node_type == "Seq Scan" and node.filter:
        badges.append(Badge(type=BadgeType.SEQ_SCAN, text="Filtered Seq Scan (missing index?)"))

    return badges


def classify_row_estimate(
    node: "PlanNode",
    analyze: bool = False,
    config: AnalyzerConfig | None = None,
) -> RowEstimate | None:
    """
    Compare actual rows with the planner estimate.

    Returns None outside analyze mode or when either figure is absent.
    Differences of at most estimate_noise_diff rows are always accurate.
    """
    if not analyze or node.actual_rows is None or node.plan_rows is None:
        return None

    config = config or DEFAULT_ANALYZER_CONFIG
    actual, estimated = node.actual_rows, node.plan_rows
    ratio = row_estimate_ratio(actual, estimated)
    if not math.isinf(ratio):
        ratio = round(ratio, 2)

    if abs(actual - estimated) <= config.estimate_noise_diff:
        accuracy = EstimateAccuracy.ACCURATE
    elif math.isinf(ratio):
        accuracy = EstimateAccuracy.BAD
    elif ratio < 1 / config.estimate_ratio or ratio > config.estimate_ratio:
        accuracy = EstimateAccuracy.BAD
    elif ratio < OFF_RATIO_LOW or ratio > OFF_RATIO_HIGH:
        accuracy = EstimateAccuracy.OFF
    else:
        accuracy = EstimateAccuracy.ACCURATE

    return RowEstimate(actual=actual, estimated=estimated, ratio=ratio, accuracy=accuracy)


def filter_efficiency(node: "PlanNode", analyze: bool = False) -> float | None:
    """Percentage of scanned rows the filter kept, to one decimal place."""
    if not analyze or not node.rows_removed_by_filter:
        return None

    actual = node.actual_rows or 0
    total = actual + node.rows_removed_by_filter
    if total == 0:
        return 0.0
    return round(actual / total * 100, 1)
