"""
Base classes for recommendation rules.

There are two kinds of rule:

1. NodeRule: evaluated at every node during the pre-order walk.
2. PlanRule: evaluated once, after the walk, against plan-wide figures
   (timings, index usage, buffer totals).

Rules are stateless. Everything they need arrives through RuleContext,
and they return plain Recommendation values with no presentation detail.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

from planinspector.analyzer.models import (
    AnalysisRequest,
    BufferStats,
    IndexUsage,
    Recommendation,
    Severity,
)
from planinspector.config import DEFAULT_ANALYZER_CONFIG, AnalyzerConfig

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


class RuleContext:
    """
    Inputs shared by every rule for one analysis call.

    index_usage and buffer_stats are produced by their analyzers before
    any rule runs; node rules usually only need `analyze` and `config`.
    """

    def __init__(
        self,
        request: AnalysisRequest,
        config: AnalyzerConfig | None = None,
        index_usage: IndexUsage | None = None,
        buffer_stats: BufferStats | None = None,
    ) -> None:
        self.request = request
        self.config = config or DEFAULT_ANALYZER_CONFIG
        self.index_usage = index_usage or IndexUsage()
        self.buffer_stats = buffer_stats or BufferStats()

    @property
    def analyze(self) -> bool:
        return self.request.analyze


class _BaseRule(ABC):
    """
    Attributes:
        rule_id: Unique identifier, UPPER_SNAKE_CASE
        severity: Default severity (some rules escalate or downgrade)
        description: One-line description for documentation
        requires_analyze: Skip the rule for estimate-only plans
    """

    rule_id: str
    severity: Severity
    description: str = ""
    requires_analyze: bool = False

    def applies(self, ctx: RuleContext) -> bool:
        return ctx.analyze or not self.requires_analyze

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rule_id={self.rule_id!r})"


class NodeRule(_BaseRule):
    """A check run against each plan node in pre-order."""

    @abstractmethod
    def check(
        self,
        node: "PlanNode",
        ctx: RuleContext,
        emitted: Sequence[Recommendation] = (),
    ) -> list[Recommendation]:
        """
        Evaluate one node.

        Args:
            node: The node being visited
            ctx: Shared analysis context
            emitted: Recommendations already produced for this same node
                by earlier rules, in rule order

        Returns:
            Zero or more recommendations
        """


class PlanRule(_BaseRule):
    """A check run once per plan after the node walk."""

    @abstractmethod
    def check(self, ctx: RuleContext) -> list[Recommendation]:
        """Evaluate plan-wide figures."""
