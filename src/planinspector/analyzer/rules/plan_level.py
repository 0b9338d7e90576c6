"""
Plan-level rules, evaluated once after the node walk.

They read the request timings and the index usage / buffer totals
already gathered for the report.
"""

from __future__ import annotations

from planinspector.analyzer.formatting import format_ms, format_number
from planinspector.analyzer.models import Recommendation, Severity
from planinspector.analyzer.rules.base import PlanRule, RuleContext


class PlanningTimeDominates(PlanRule):
    rule_id = "PLANNING_TIME_DOMINATES"
    severity = Severity.INFO
    description = "Planning takes more than twice as long as execution"

    def check(self, ctx: RuleContext) -> list[Recommendation]:
        planning = ctx.request.planning_time
        execution = ctx.request.execution_time
        if planning is None or execution is None or planning <= 0 or execution <= 0:
            return []
        if not (planning > execution * 2 and planning > ctx.config.planning_time_ms):
            return []

        return [Recommendation(
            severity=self.severity,
            title="Planning time exceeds execution time",
            description=(
                f"The query planner spent {format_ms(planning)} planning but only "
                f"{format_ms(execution)} executing. For frequently-run queries this overhead adds up."
            ),
            action=(
                "Consider using prepared statements to skip repeated planning: "
                "connection.prepare('my_query', sql)"
            ),
        )]


class LowCacheHitRatio(PlanRule):
    rule_id = "LOW_CACHE_HIT_RATIO"
    severity = Severity.WARNING
    description = "Too many shared buffer reads came from disk"

    def check(self, ctx: RuleContext) -> list[Recommendation]:
        stats = ctx.buffer_stats
        hit_ratio = stats.hit_ratio
        if hit_ratio is None:
            return []
        if hit_ratio >= ctx.config.cache_hit_ratio or stats.read <= ctx.config.cache_min_read_blocks:
            return []

        return [Recommendation(
            severity=self.severity,
            title=f"Low cache hit ratio ({hit_ratio:.1f}%)",
            description=(
                f"{stats.read} pages were read from disk instead of cache. "
                "This slows queries significantly, especially under load."
            ),
            action="Increase shared_buffers in postgresql.conf, or run the query again (it may now be cached).",
        )]


NO_INDEXES_USED_TITLE = "No indexes used"


class NoIndexesUsed(PlanRule):
    """
    Every scan in the plan is a sequential scan.

    When filter columns could be extracted, the action lists one
    CREATE INDEX statement per scanned table; otherwise it names the
    tables involved.
    """

    rule_id = "NO_INDEXES_USED"
    severity = Severity.WARNING
    description = "Plan scans tables without using any index"

    def check(self, ctx: RuleContext) -> list[Recommendation]:
        usage = ctx.index_usage
        if usage.total_scans == 0 or usage.index_scans > 0:
            return []

        suggestions = [
            f"CREATE INDEX idx_{scan.table}_on_{scan.columns[0]} "
            f"ON {scan.table} ({', '.join(scan.columns)});"
            for scan in usage.seq_scans
            if scan.columns
        ]

        if suggestions:
            return [Recommendation(
                severity=self.severity,
                title=NO_INDEXES_USED_TITLE,
                description=(
                    f"All {usage.total_scans} scan(s) in this query are sequential scans. "
                    "This means PostgreSQL is reading entire tables to find matching rows."
                ),
                action="\n".join(suggestions),
            )]

        tables = ", ".join(dict.fromkeys(scan.table for scan in usage.seq_scans))
        return [Recommendation(
            severity=self.severity,
            title=NO_INDEXES_USED_TITLE,
            description=(
                f"All {usage.total_scans} scan(s) in this query are sequential scans on {tables}. "
                "This means PostgreSQL is reading entire tables to find matching rows."
            ),
            action=f"Add indexes on the columns used in WHERE, JOIN, and ORDER BY clauses for: {tables}",
        )]


class SlowQuery(PlanRule):
    """Critical above slow_query_ms, warning above moderate_query_ms."""

    rule_id = "SLOW_QUERY"
    severity = Severity.CRITICAL
    description = "Execution time above 1s (critical) or 100ms (warning)"

    def check(self, ctx: RuleContext) -> list[Recommendation]:
        execution = ctx.request.execution_time
        if execution is None:
            return []

        if execution > ctx.config.slow_query_ms:
            return [Recommendation(
                severity=Severity.CRITICAL,
                title=f"Slow query ({format_ms(execution)})",
                description=(
                    f"This query took over {format_number(ctx.config.slow_query_ms / 1000)} second"
                    f"{'' if ctx.config.slow_query_ms == 1000 else 's'} to execute. "
                    "Users will notice this delay. Consider optimizing the query or adding caching."
                ),
            )]

        if execution > ctx.config.moderate_query_ms:
            return [Recommendation(
                severity=Severity.WARNING,
                title=f"Moderately slow query ({format_ms(execution)})",
                description=(
                    f"This query took over {format_ms(ctx.config.moderate_query_ms)}. "
                    "It's acceptable for background jobs but may be too slow for web requests "
                    "where < 50ms is ideal."
                ),
            )]

        return []
