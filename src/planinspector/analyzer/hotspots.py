"""
HotspotFinder: nodes that took the most time.

Only meaningful for EXPLAIN ANALYZE output. Each hotspot is a label like
"Seq Scan on orders (250.5ms)", ordered slowest first.
"""

from __future__ import annotations

from planinspector.analyzer.formatting import format_ms
from planinspector.analyzer.models import AnalysisRequest
from planinspector.analyzer.path import walk_plan
from planinspector.config import DEFAULT_ANALYZER_CONFIG, AnalyzerConfig


def hotspot_label(node_type: str, relation_name: str | None, total_time: float) -> str:
    label = node_type
    if relation_name:
        label += f" on {relation_name}"
    return f"{label} ({format_ms(total_time)})"


def find_hotspots(
    request: AnalysisRequest,
    config: AnalyzerConfig | None = None,
) -> list[str]:
    """
    Collect nodes whose actual total time exceeds the hotspot threshold.

    Returns an empty list unless the request is in analyze mode. Ties keep
    their pre-order position.
    """
    if not request.analyze:
        return []

    config = config or DEFAULT_ANALYZER_CONFIG
    timed: list[tuple[float, str]] = []

    for _path, node in walk_plan(request.root):
        total_time = node.actual_total_time
        if total_time is not None and total_time > config.hotspot_ms:
            timed.append(
                (total_time, hotspot_label(node.node_type, node.relation_name, total_time))
            )

    timed.sort(key=lambda item: item[0], reverse=True)
    return [label for _time, label in timed]
