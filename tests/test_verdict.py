"""Tests for calculate_verdict."""

import random

import pytest

from planinspector.analyzer.models import (
    IndexUsage,
    Recommendation,
    SeqScanInfo,
    Severity,
    VerdictLevel,
)
from planinspector.analyzer.verdict import calculate_verdict


def rec(severity: Severity, title: str = "Something") -> Recommendation:
    return Recommendation(severity=severity, title=title, description="...")


ALL_INDEXED = IndexUsage(total_scans=2, index_scans=2, indexes_used=("t.t_pkey",))
NO_SCANS = IndexUsage()
SEQ_ONLY = IndexUsage(total_scans=1, seq_scans=(SeqScanInfo(table="t"),))


class TestBad:

    def test_analyze_single_critical(self) -> None:
        verdict = calculate_verdict(True, [rec(Severity.CRITICAL)], NO_SCANS)

        assert verdict.level == VerdictLevel.BAD
        assert verdict.message == "This query needs attention: 1 critical issue found."

    def test_analyze_plural_with_no_indexes(self) -> None:
        recs = [
            rec(Severity.CRITICAL),
            rec(Severity.WARNING, "No indexes used"),
            rec(Severity.CRITICAL),
        ]

        verdict = calculate_verdict(True, recs, SEQ_ONLY)

        assert verdict.message == (
            "This query needs attention: 2 critical issues found. No indexes used."
        )

    def test_estimate(self) -> None:
        verdict = calculate_verdict(False, [rec(Severity.CRITICAL)], NO_SCANS, total_cost=99.0)

        assert verdict.level == VerdictLevel.BAD
        assert verdict.message == "Potential problems: 1 critical issue found in the estimated plan."

    def test_estimate_plural_with_no_indexes(self) -> None:
        recs = [rec(Severity.CRITICAL), rec(Severity.CRITICAL), rec(Severity.WARNING, "No indexes used")]

        verdict = calculate_verdict(False, recs, SEQ_ONLY)

        assert verdict.message == (
            "Potential problems: 2 critical issues found in the estimated plan. No indexes used."
        )

    def test_critical_outranks_warnings(self) -> None:
        recs = [rec(Severity.WARNING)] * 5 + [rec(Severity.CRITICAL)]

        assert calculate_verdict(True, recs, NO_SCANS).level == VerdictLevel.BAD


class TestOk:

    def test_analyze(self) -> None:
        recs = [rec(Severity.WARNING), rec(Severity.INFO), rec(Severity.WARNING)]

        verdict = calculate_verdict(True, recs, NO_SCANS)

        assert verdict.level == VerdictLevel.OK
        assert verdict.message == "Room for improvement: 2 warnings found."

    def test_estimate_singular(self) -> None:
        verdict = calculate_verdict(False, [rec(Severity.WARNING)], NO_SCANS)

        assert verdict.message == "Some concerns: 1 warning found in the estimated plan."

    def test_no_indexes_suffix_only_for_bad(self) -> None:
        verdict = calculate_verdict(True, [rec(Severity.WARNING, "No indexes used")], SEQ_ONLY)

        assert verdict.message == "Room for improvement: 1 warning found."


class TestGood:

    def test_analyze_all_indexed(self) -> None:
        verdict = calculate_verdict(True, [], ALL_INDEXED)

        assert verdict.level == VerdictLevel.GOOD
        assert verdict.message == "Query plan looks good, all scans use indexes."

    def test_analyze_without_scans(self) -> None:
        assert calculate_verdict(True, [], NO_SCANS).message == "Query plan looks good."

    def test_info_only_is_good(self) -> None:
        verdict = calculate_verdict(True, [rec(Severity.INFO)], NO_SCANS)

        assert verdict.level == VerdictLevel.GOOD

    def test_estimate_with_cost(self) -> None:
        verdict = calculate_verdict(False, [], ALL_INDEXED, total_cost=8.44)

        assert verdict.message == (
            "Estimated plan looks efficient (total cost 8.44), all scans use indexes."
        )

    def test_estimate_whole_cost(self) -> None:
        verdict = calculate_verdict(False, [], NO_SCANS, total_cost=120.0)

        assert verdict.message == "Estimated plan looks efficient (total cost 120)."

    def test_estimate_without_cost(self) -> None:
        assert calculate_verdict(False, [], NO_SCANS).message == "Estimated plan looks efficient."


@pytest.mark.parametrize("seed", range(5))
def test_verdict_depends_only_on_inputs(seed: int) -> None:
    rng = random.Random(seed)
    recs = [rec(rng.choice(list(Severity))) for _ in range(rng.randint(0, 8))]
    analyze = rng.random() < 0.5

    first = calculate_verdict(analyze, recs, SEQ_ONLY, total_cost=10.0)
    second = calculate_verdict(analyze, list(recs), SEQ_ONLY, total_cost=10.0)

    assert first == second
    if any(r.severity == Severity.CRITICAL for r in recs):
        assert first.level == VerdictLevel.BAD
    elif any(r.severity == Severity.WARNING for r in recs):
        assert first.level == VerdictLevel.OK
    else:
        assert first.level == VerdictLevel.GOOD
