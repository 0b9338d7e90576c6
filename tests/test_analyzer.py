"""
End-to-end tests for PlanAnalyzer.

Fixtures under tests/fixtures are real-shaped EXPLAIN (FORMAT JSON)
outputs; the hand-built trees cover the tree contract and edge cases.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from planinspector.analyzer import PlanAnalyzer, analyze_plan
from planinspector.analyzer.models import (
    AnalysisReport,
    AnalysisRequest,
    BadgeType,
    EstimateAccuracy,
    Severity,
    VerdictLevel,
)
from planinspector.analyzer.path import NodePath
from planinspector.config import AnalyzerConfig
from planinspector.exceptions import InvalidPlanError
from planinspector.parser import parse_explain
from planinspector.parser.models import PlanNode

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def node(node_type: str, *children: PlanNode, **fields: object) -> PlanNode:
    return PlanNode(node_type=node_type, children=children, **fields)


def analyze_fixture(name: str) -> AnalysisReport:
    output = parse_explain(FIXTURES_DIR / name)
    return PlanAnalyzer().analyze(output.to_request())


@pytest.fixture
def analyzer() -> PlanAnalyzer:
    return PlanAnalyzer()


# =============================================================================
# Fixture plans
# =============================================================================


class TestSeqScanFiltered:

    @pytest.fixture
    def report(self) -> AnalysisReport:
        return analyze_fixture("seq_scan_filtered.json")

    def test_verdict(self, report: AnalysisReport) -> None:
        assert report.analyze is True
        assert report.verdict.level == VerdictLevel.BAD
        assert report.verdict.message == (
            "This query needs attention: 2 critical issues found. No indexes used."
        )

    def test_recommendations(self, report: AnalysisReport) -> None:
        assert [(r.severity, r.title) for r in report.recommendations] == [
            (Severity.CRITICAL, "Sequential scan with filter on 'huge_table'"),
            (Severity.WARNING, "Low cache hit ratio (10.0%)"),
            (Severity.WARNING, "No indexes used"),
            (Severity.CRITICAL, "Slow query (2000ms)"),
        ]
        first = report.recommendations[0]
        assert "scanned 1,500,000 rows but only kept 500,000 (33.3% selectivity)" in first.description
        assert first.action == "CREATE INDEX idx_huge_table_on_status ON huge_table (status);"

    def test_metrics(self, report: AnalysisReport) -> None:
        assert report.hotspots == ("Seq Scan on huge_table (2000ms)",)
        assert report.index_usage.warnings == ("Large sequential scan on huge_table (500,000 rows)",)
        assert report.index_usage.total_scans == 1
        assert report.index_usage.index_scans == 0
        assert report.buffer_stats.hit == 100
        assert report.buffer_stats.read == 900
        assert report.buffer_stats.total == 1000

    def test_summary(self, report: AnalysisReport) -> None:
        assert report.summary.execution_time == 2000.0
        assert report.summary.planning_time == 1.0
        assert report.summary.total_cost == 25000.0
        assert report.summary.actual_rows == 500000
        assert report.summary.node_count == 1

    def test_root_insight(self, report: AnalysisReport) -> None:
        [insight] = report.node_insights

        assert insight.path == NodePath.root()
        assert insight.relation_name == "huge_table"
        assert [b.text for b in insight.badges] == [
            "Large Seq Scan (500,000 rows on huge_table)",
            "Filtered Seq Scan (missing index?)",
        ]
        assert insight.filter_efficiency == 33.3
        assert insight.row_estimate is not None
        assert insight.row_estimate.accuracy == EstimateAccuracy.ACCURATE

    def test_counts(self, report: AnalysisReport) -> None:
        assert report.has_critical
        assert report.has_warnings
        assert report.counts() == {"total": 4, "critical": 2, "warning": 2, "info": 0}


class TestIndexScanGood:

    def test_good_verdict(self) -> None:
        report = analyze_fixture("index_scan_good.json")

        assert report.recommendations == ()
        assert report.hotspots == ()
        assert report.verdict.level == VerdictLevel.GOOD
        assert report.verdict.message == "Query plan looks good, all scans use indexes."
        assert report.index_usage.indexes_used == ("users.users_email_idx",)
        assert report.index_usage.all_scans_use_indexes
        assert report.buffer_stats.hit_ratio == 100.0


class TestCorrelatedSubquery:

    @pytest.fixture
    def report(self) -> AnalysisReport:
        return analyze_fixture("correlated_subquery.json")

    def test_recommendations(self, report: AnalysisReport) -> None:
        assert [(r.severity, r.title) for r in report.recommendations] == [
            (Severity.CRITICAL, "Correlated subquery detected"),
            (Severity.INFO, "Index Only Scan falling back to heap (80.0%)"),
            (Severity.WARNING, "Moderately slow query (121ms)"),
        ]
        assert report.recommendations[0].description.startswith(
            "A subquery (SubPlan 1) runs for each row of the outer query (500 executions)."
        )

    def test_verdict(self, report: AnalysisReport) -> None:
        assert report.verdict.level == VerdictLevel.BAD
        assert report.verdict.message == "This query needs attention: 1 critical issue found."

    def test_metrics(self, report: AnalysisReport) -> None:
        assert report.hotspots == ("Seq Scan on customers (120.5ms)",)
        assert report.index_usage.total_scans == 2
        assert report.index_usage.index_scans == 1
        assert report.index_usage.indexes_used == ("orders.orders_customer_id_idx",)

    def test_insight_paths(self, report: AnalysisReport) -> None:
        assert [str(i.path) for i in report.node_insights] == [
            "Plan",
            "Plan → Plans[0]",
            "Plan → Plans[0] → Plans[0]",
        ]
        assert [i.node_type for i in report.node_insights] == [
            "Seq Scan",
            "Aggregate",
            "Index Only Scan",
        ]


class TestEstimateOnly:

    @pytest.fixture
    def report(self) -> AnalysisReport:
        return analyze_fixture("estimate_only.json")

    def test_mode_detected(self, report: AnalysisReport) -> None:
        assert report.analyze is False
        assert report.summary.execution_time is None
        assert report.summary.actual_rows is None
        assert report.hotspots == ()

    def test_recommendations(self, report: AnalysisReport) -> None:
        index_sql = "CREATE INDEX idx_orders_on_created_at ON orders (created_at);"

        assert [(r.severity, r.title) for r in report.recommendations] == [
            (Severity.CRITICAL, "Sequential scan with filter on 'orders'"),
            (Severity.WARNING, "No indexes used"),
        ]
        assert "scanned 200,000 rows but only kept 200,000 (100% selectivity)" in (
            report.recommendations[0].description
        )
        assert report.recommendations[0].action == index_sql
        assert report.recommendations[1].action == index_sql

    def test_verdict(self, report: AnalysisReport) -> None:
        assert report.verdict.level == VerdictLevel.BAD
        assert report.verdict.message == (
            "Potential problems: 1 critical issue found in the estimated plan. No indexes used."
        )

    def test_index_usage(self, report: AnalysisReport) -> None:
        assert report.index_usage.total_scans == 2
        assert [s.table for s in report.index_usage.seq_scans] == ["orders", "users"]
        assert report.index_usage.warnings == ("Large sequential scan on orders (200,000 rows)",)

    def test_no_row_estimates(self, report: AnalysisReport) -> None:
        assert all(i.row_estimate is None for i in report.node_insights)
        assert all(i.filter_efficiency is None for i in report.node_insights)

    def test_users_badge(self, report: AnalysisReport) -> None:
        users = report.node_insights[-1]

        assert users.path == NodePath.root().child(1).child(0)
        assert [b.text for b in users.badges] == ["Seq Scan (users)"]

    def test_forcing_analyze_mode(self) -> None:
        output = parse_explain(FIXTURES_DIR / "estimate_only.json")

        report = analyze_plan(output.to_request(analyze=True))

        assert report.analyze is True
        assert report.verdict.message == (
            "This query needs attention: 1 critical issue found. No indexes used."
        )


class TestSortDisk:

    @pytest.fixture
    def report(self) -> AnalysisReport:
        return analyze_fixture("sort_disk.json")

    def test_recommendations(self, report: AnalysisReport) -> None:
        assert [r.title for r in report.recommendations] == [
            "Sort spilled to disk (25600kB)",
            "Low cache hit ratio (5.0%)",
            "No indexes used",
            "Moderately slow query (900ms)",
        ]
        assert all(r.severity == Severity.WARNING for r in report.recommendations)
        assert report.recommendations[0].action == (
            "SET work_mem = '50MB'; -- or increase work_mem in postgresql.conf"
        )
        assert report.recommendations[2].action == (
            "Add indexes on the columns used in WHERE, JOIN, and ORDER BY clauses for: events"
        )

    def test_verdict(self, report: AnalysisReport) -> None:
        assert report.verdict.level == VerdictLevel.OK
        assert report.verdict.message == "Room for improvement: 4 warnings found."

    def test_hotspots_slowest_first(self, report: AnalysisReport) -> None:
        assert report.hotspots == ("Sort (850.25ms)", "Seq Scan on events (300ms)")

    def test_buffers(self, report: AnalysisReport) -> None:
        stats = report.buffer_stats

        assert (stats.hit, stats.read, stats.written, stats.total) == (50, 950, 20, 1000)

    def test_badges(self, report: AnalysisReport) -> None:
        texts = [b.text for i in report.node_insights for b in i.badges]

        assert "Large Sort (100,000 rows)" in texts
        assert "Large Seq Scan (100,000 rows on events)" in texts


# =============================================================================
# Hand-built plans
# =============================================================================


class TestScenarios:

    def test_single_node_estimate_plan(self, analyzer: PlanAnalyzer) -> None:
        request = AnalysisRequest(root=node("Result", total_cost=0.01))

        report = analyzer.analyze(request)

        assert report.recommendations == ()
        assert report.index_usage.total_scans == 0
        assert report.buffer_stats.total == 0
        assert report.verdict.message == "Estimated plan looks efficient (total cost 0.01)."

    def test_fast_indexed_analyze_plan(self, analyzer: PlanAnalyzer) -> None:
        root = node(
            "Nested Loop",
            node("Index Scan", relation_name="a", index_name="a_pkey", actual_rows=1, plan_rows=1),
            node("Index Scan", relation_name="b", index_name="b_pkey", actual_rows=1, plan_rows=1),
            actual_rows=1,
            plan_rows=1,
            actual_loops=1,
        )

        report = analyzer.analyze(AnalysisRequest(root=root, analyze=True, execution_time=0.2))

        assert report.verdict.level == VerdictLevel.GOOD
        assert report.verdict.message == "Query plan looks good, all scans use indexes."
        assert report.index_usage.indexes_used == ("a.a_pkey", "b.b_pkey")

    def test_row_explosion_badge_and_estimate(self, analyzer: PlanAnalyzer) -> None:
        root = node("Hash Join", plan_rows=100, actual_rows=50000)

        report = analyzer.analyze(AnalysisRequest(root=root, analyze=True))

        [insight] = report.node_insights
        assert [b.type for b in insight.badges] == [BadgeType.FANOUT]
        assert insight.row_estimate.ratio == 500.0
        assert insight.row_estimate.accuracy == EstimateAccuracy.BAD
        assert [r.title for r in report.recommendations] == ["Row estimate off by 500x on Hash Join"]

    def test_zero_estimate_ratio_is_infinite(self, analyzer: PlanAnalyzer) -> None:
        root = node("Result", plan_rows=0, actual_rows=5000)

        report = analyzer.analyze(AnalysisRequest(root=root, analyze=True))

        estimate = report.node_insights[0].row_estimate
        assert estimate.ratio == float("inf")
        assert estimate.accuracy == EstimateAccuracy.BAD

    def test_custom_config(self) -> None:
        config = AnalyzerConfig(hotspot_ms=500.0, moderate_query_ms=1000.0)
        root = node("Seq Scan", relation_name="t", actual_total_time=600.0, actual_rows=1, plan_rows=1)

        report = PlanAnalyzer(config).analyze(
            AnalysisRequest(root=root, analyze=True, execution_time=600.0)
        )

        assert report.hotspots == ("Seq Scan on t (600ms)",)
        assert [r.title for r in report.recommendations] == ["No indexes used"]

    def test_report_is_deterministic(self, analyzer: PlanAnalyzer) -> None:
        request = parse_explain(FIXTURES_DIR / "sort_disk.json").to_request()

        first = analyzer.analyze(request)
        second = analyzer.analyze(request)

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_analyzer_is_reusable(self, analyzer: PlanAnalyzer) -> None:
        seq = analyzer.analyze(AnalysisRequest(root=node("Seq Scan", relation_name="a")))
        idx = analyzer.analyze(AnalysisRequest(root=node("Index Scan", index_name="a_idx")))

        assert seq.index_usage.seq_scans[0].table == "a"
        assert idx.index_usage.seq_scans == ()
        assert idx.index_usage.indexes_used == ("a_idx",)

    def test_deep_plan(self, analyzer: PlanAnalyzer) -> None:
        root = node("Seq Scan", relation_name="leaf", plan_rows=1)
        for _ in range(2000):
            root = node("Limit", root)

        report = analyzer.analyze(AnalysisRequest(root=root))

        assert report.summary.node_count == 2001
        assert report.index_usage.total_scans == 1
        assert report.node_insights[-1].path.depth == 2000


class TestTreeContract:

    def test_empty_node_type(self, analyzer: PlanAnalyzer) -> None:
        root = PlanNode.model_construct(node_type="")

        with pytest.raises(InvalidPlanError) as exc_info:
            analyzer.analyze(AnalysisRequest(root=root))

        assert exc_info.value.node_path == NodePath.root()
        assert str(exc_info.value).endswith("at Plan")

    def test_child_that_is_not_a_node(self, analyzer: PlanAnalyzer) -> None:
        root = PlanNode.model_construct(
            node_type="Nested Loop",
            children=(node("Seq Scan"), {"Node Type": "Seq Scan"}),
        )

        with pytest.raises(InvalidPlanError) as exc_info:
            analyzer.analyze(AnalysisRequest(root=root))

        assert str(exc_info.value.node_path) == "Plan → Plans[1]"

    def test_not_a_request(self, analyzer: PlanAnalyzer) -> None:
        with pytest.raises(InvalidPlanError):
            analyzer.analyze({"Plan": {"Node Type": "Result"}})  # type: ignore[arg-type]

    def test_direct_construction_with_empty_node_type(self) -> None:
        with pytest.raises(InvalidPlanError, match="missing 'Node Type'"):
            PlanNode(node_type="")

    def test_direct_construction_with_malformed_child(self) -> None:
        with pytest.raises(InvalidPlanError, match="missing 'Node Type'"):
            PlanNode(node_type="Limit", children=({"Total Cost": 1.0},))

    def test_request_from_raw_dict_without_node_type(self) -> None:
        with pytest.raises(InvalidPlanError, match="missing 'Node Type'"):
            AnalysisRequest(root={"Plans": [{"Node Type": "Result"}]})

    def test_request_from_raw_dict_with_plans_not_a_list(self) -> None:
        with pytest.raises(InvalidPlanError, match="'Plans' must be a list"):
            AnalysisRequest(root={"Node Type": "Limit", "Plans": {"Node Type": "Result"}})


class TestNodePath:

    def test_root(self) -> None:
        path = NodePath.root()

        assert path.depth == 0
        assert path.segments == ("Plan",)
        assert str(path) == "Plan"

    def test_child(self) -> None:
        path = NodePath.root().child(1).child(0)

        assert path.depth == 2
        assert str(path) == "Plan → Plans[1] → Plans[0]"
        assert path != NodePath.root()
        assert hash(path) == hash(NodePath.root().child(1).child(0))
