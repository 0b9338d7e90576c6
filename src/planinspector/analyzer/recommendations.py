"""
RecommendationEngine: runs the rules over a plan.

Node rules are evaluated at every node in pre-order, so recommendations
come out in plan order; plan rules follow once the walk is done.
"""

from __future__ import annotations

import logging

from planinspector.analyzer.models import (
    AnalysisRequest,
    BufferStats,
    IndexUsage,
    Recommendation,
)
from planinspector.analyzer.path import walk_plan
from planinspector.analyzer.rules import NODE_RULES, PLAN_RULES, NodeRule, PlanRule, RuleContext
from planinspector.config import AnalyzerConfig

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """
    Produces the flat, severity-tagged recommendation list for a plan.

    Example:
        engine = RecommendationEngine()
        recs = engine.generate(request, index_usage, buffer_stats)
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        node_rules: tuple[NodeRule, ...] = NODE_RULES,
        plan_rules: tuple[PlanRule, ...] = PLAN_RULES,
    ) -> None:
        self.config = config
        self.node_rules = node_rules
        self.plan_rules = plan_rules

    def generate(
        self,
        request: AnalysisRequest,
        index_usage: IndexUsage,
        buffer_stats: BufferStats,
    ) -> list[Recommendation]:
        ctx = RuleContext(
            request,
            config=self.config,
            index_usage=index_usage,
            buffer_stats=buffer_stats,
        )
        node_rules = [rule for rule in self.node_rules if rule.applies(ctx)]
        recommendations: list[Recommendation] = []

        for path, node in walk_plan(request.root):
            emitted: list[Recommendation] = []
            for rule in node_rules:
                emitted.extend(rule.check(node, ctx, emitted))
            if emitted:
                logger.debug("%d recommendation(s) at %s", len(emitted), path)
            recommendations.extend(emitted)

        for plan_rule in self.plan_rules:
            if plan_rule.applies(ctx):
                recommendations.extend(plan_rule.check(ctx))

        return recommendations


def generate_recommendations(
    request: AnalysisRequest,
    index_usage: IndexUsage,
    buffer_stats: BufferStats,
    config: AnalyzerConfig | None = None,
) -> list[Recommendation]:
    """Convenience wrapper around RecommendationEngine with the default rules."""
    return RecommendationEngine(config).generate(request, index_usage, buffer_stats)
