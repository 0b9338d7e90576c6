"""Plan analysis: metrics, badges, recommendations and verdict."""

from planinspector.analyzer.analyzer import PlanAnalyzer, analyze_plan
from planinspector.analyzer.buffers import collect_buffer_stats
from planinspector.analyzer.columns import extract_columns
from planinspector.analyzer.hotspots import find_hotspots
from planinspector.analyzer.index_usage import IndexUsageAnalyzer, analyze_index_usage
from planinspector.analyzer.models import (
    AnalysisReport,
    AnalysisRequest,
    Badge,
    BadgeType,
    BufferStats,
    EstimateAccuracy,
    IndexUsage,
    NodeInsight,
    PlanSummary,
    Recommendation,
    RowEstimate,
    SeqScanInfo,
    Severity,
    Verdict,
    VerdictLevel,
)
from planinspector.analyzer.path import NodePath, walk_plan
from planinspector.analyzer.recommendations import RecommendationEngine, generate_recommendations
from planinspector.analyzer.verdict import calculate_verdict
from planinspector.analyzer.warnings import (
    classify_row_estimate,
    detect_warnings,
    filter_efficiency,
    row_estimate_ratio,
)

__all__ = [
    "PlanAnalyzer",
    "analyze_plan",
    "collect_buffer_stats",
    "extract_columns",
    "find_hotspots",
    "IndexUsageAnalyzer",
    "analyze_index_usage",
    "RecommendationEngine",
    "generate_recommendations",
    "calculate_verdict",
    "classify_row_estimate",
    "detect_warnings",
    "filter_efficiency",
    "row_estimate_ratio",
    "NodePath",
    "walk_plan",
    "AnalysisReport",
    "AnalysisRequest",
    "Badge",
    "BadgeType",
    "BufferStats",
    "EstimateAccuracy",
    "IndexUsage",
    "NodeInsight",
    "PlanSummary",
    "Recommendation",
    "RowEstimate",
    "SeqScanInfo",
    "Severity",
    "Verdict",
    "VerdictLevel",
]
