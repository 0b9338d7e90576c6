"""
Analyzer - assembles the full AnalysisReport for one plan.

Runs each analyzer once over the same immutable tree:

    IndexUsageAnalyzer   -> index_usage
    collect_buffer_stats -> buffer_stats
    find_hotspots        -> hotspots
    RecommendationEngine -> recommendations (uses the two above)
    calculate_verdict    -> verdict

plus the per-node insights (badges, row estimates, filter efficiency)
used by presentation layers. Nothing here performs I/O or keeps state
between calls, so concurrent analyses need no coordination.
"""

from __future__ import annotations

import logging
import time

from planinspector.analyzer.buffers import collect_buffer_stats
from planinspector.analyzer.hotspots import find_hotspots
from planinspector.analyzer.index_usage import IndexUsageAnalyzer
from planinspector.analyzer.models import (
    AnalysisReport,
    AnalysisRequest,
    NodeInsight,
    PlanSummary,
)
from planinspector.analyzer.path import walk_plan
from planinspector.analyzer.recommendations import RecommendationEngine
from planinspector.analyzer.verdict import calculate_verdict
from planinspector.analyzer.warnings import (
    classify_row_estimate,
    detect_warnings,
    filter_efficiency,
)
from planinspector.config import DEFAULT_ANALYZER_CONFIG, AnalyzerConfig
from planinspector.exceptions import InvalidPlanError
from planinspector.parser.models import PlanNode

logger = logging.getLogger(__name__)


class PlanAnalyzer:
    """
    Analyzes query plans and produces reports.

    Example:
        analyzer = PlanAnalyzer()
        report = analyzer.analyze(explain.to_request())
        print(report.verdict.message)
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or DEFAULT_ANALYZER_CONFIG
        self.index_usage_analyzer = IndexUsageAnalyzer(self.config)
        self.engine = RecommendationEngine(self.config)

    def analyze(self, request: AnalysisRequest) -> AnalysisReport:
        """
        Build the report for one plan.

        Raises:
            InvalidPlanError: If the request does not carry a plan tree, or
                a node violates the tree contract
        """
        if not isinstance(request, AnalysisRequest):
            raise InvalidPlanError(
                f"Expected AnalysisRequest, got {type(request).__name__}"
            )
        if not isinstance(request.root, PlanNode):
            raise InvalidPlanError(f"Expected PlanNode root, got {type(request.root).__name__}")

        start_time = time.perf_counter()

        index_usage = self.index_usage_analyzer.analyze(request.root)
        buffer_stats = collect_buffer_stats(request.root)
        hotspots = find_hotspots(request, self.config)
        recommendations = self.engine.generate(request, index_usage, buffer_stats)
        insights = self._node_insights(request)

        verdict = calculate_verdict(
            request.analyze,
            recommendations,
            index_usage,
            total_cost=request.root.total_cost,
        )

        report = AnalysisReport(
            analyze=request.analyze,
            summary=PlanSummary(
                execution_time=request.execution_time,
                planning_time=request.planning_time,
                total_cost=request.root.total_cost,
                actual_rows=request.root.actual_rows if request.analyze else None,
                node_count=len(insights),
            ),
            index_usage=index_usage,
            buffer_stats=buffer_stats,
            hotspots=tuple(hotspots),
            recommendations=tuple(recommendations),
            node_insights=tuple(insights),
            verdict=verdict,
        )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "Analyzed %d nodes in %.2fms: %d recommendation(s), verdict=%s",
            len(insights),
            duration_ms,
            len(recommendations),
            verdict.level.value,
        )
        return report

    def _node_insights(self, request: AnalysisRequest) -> list[NodeInsight]:
        insights: list[NodeInsight] = []
        for path, node in walk_plan(request.root):
            insights.append(NodeInsight(
                path=path,
                node_type=node.node_type,
                relation_name=node.relation_name,
                index_name=node.index_name,
                badges=tuple(detect_warnings(node, request.analyze, self.config)),
                row_estimate=classify_row_estimate(node, request.analyze, self.config),
                filter_efficiency=filter_efficiency(node, request.analyze),
            ))
        return insights


def analyze_plan(
    request: AnalysisRequest,
    config: AnalyzerConfig | None = None,
) -> AnalysisReport:
    """Analyze one plan with a fresh PlanAnalyzer."""
    return PlanAnalyzer(config).analyze(request)
