"""PlanInspector - PostgreSQL EXPLAIN plan analyzer."""

__version__ = "0.3.0"
__license__ = "MIT"

# Exception hierarchy (import first so other modules can use it)
from planinspector.exceptions import (
    ConfigurationError,
    InvalidPlanError,
    ParseError,
    PlanInspectorError,
)

# Public API exports
from planinspector.analyzer import (
    AnalysisReport,
    AnalysisRequest,
    NodePath,
    PlanAnalyzer,
    Recommendation,
    Severity,
    Verdict,
    VerdictLevel,
    analyze_plan,
)
from planinspector.config import AnalyzerConfig, get_config
from planinspector.parser import ExplainOutput, PlanNode, parse_explain, parse_explain_file

__all__ = [
    "__version__",
    # Exceptions
    "PlanInspectorError",
    "ParseError",
    "InvalidPlanError",
    "ConfigurationError",
    # Parsing
    "ExplainOutput",
    "PlanNode",
    "parse_explain",
    "parse_explain_file",
    # Analysis
    "AnalysisReport",
    "AnalysisRequest",
    "NodePath",
    "PlanAnalyzer",
    "Recommendation",
    "Severity",
    "Verdict",
    "VerdictLevel",
    "analyze_plan",
    # Configuration
    "AnalyzerConfig",
    "get_config",
]
