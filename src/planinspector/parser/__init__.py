"""EXPLAIN JSON parsing module."""

from planinspector.exceptions import InvalidPlanError, ParseError
from planinspector.parser.config import DEFAULT_CONFIG, STRICT_CONFIG, ParserConfig
from planinspector.parser.models import ExplainOutput, PlanNode
from planinspector.parser.parser import parse_explain, parse_explain_file

__all__ = [
    "ExplainOutput",
    "PlanNode",
    "parse_explain",
    "parse_explain_file",
    "ParseError",
    "InvalidPlanError",
    "ParserConfig",
    "DEFAULT_CONFIG",
    "STRICT_CONFIG",
]
