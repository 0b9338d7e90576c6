"""
Data models for the analyzer module.

These models carry the analysis input and everything the analyzers
produce. They're designed to be:
- Immutable (frozen=True): results never change after creation
- Serializable: JSON output for the CLI and API consumers
- Presentation-free: no colors, icons or markup, only values
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from planinspector.analyzer.path import NodePath
from planinspector.parser.models import PlanNode


class Severity(str, Enum):
    """
    Severity levels for recommendations.

    CRITICAL: Severe performance impact, fix before shipping
    WARNING: Significant issue that should be addressed
    INFO: Optimization opportunity
    """
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    def __lt__(self, other: object) -> bool:
        """Enable sorting by severity (CRITICAL first)."""
        if not isinstance(other, Severity):
            return NotImplemented
        order = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}
        return order[self] < order[other]


class BadgeType(str, Enum):
    """Kinds of per-node diagnostic badges."""
    SEQ_SCAN = "seq-scan"
    SORT = "sort"
    NESTED_LOOP = "nested-loop"
    FANOUT = "fanout"


class EstimateAccuracy(str, Enum):
    """How far the planner's row estimate was from reality."""
    ACCURATE = "accurate"
    OFF = "off"
    BAD = "bad"


class VerdictLevel(str, Enum):
    """Overall verdict for a plan."""
    GOOD = "good"
    OK = "ok"
    BAD = "bad"

    @property
    def rank(self) -> int:
        return {VerdictLevel.GOOD: 0, VerdictLevel.OK: 1, VerdictLevel.BAD: 2}[self]


class Recommendation(BaseModel):
    """
    A single actionable recommendation.

    Attributes:
        severity: How serious the issue is.
        title: Human-readable one-line summary.
        description: What was observed and why it matters.
        action: Concrete statement or step to take, if any.
    """

    model_config = ConfigDict(frozen=True)

    severity: Severity
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    action: str | None = None


class Badge(BaseModel):
    """Short diagnostic label attached to a single plan node."""

    model_config = ConfigDict(frozen=True)

    type: BadgeType
    text: str


class SeqScanInfo(BaseModel):
    """A sequential scan seen during the index usage walk."""

    model_config = ConfigDict(frozen=True)

    table: str
    rows: int = 0
    filter: str | None = None
    columns: tuple[str, ...] = ()


class IndexUsage(BaseModel):
    """Scan counts and index usage across the whole plan."""

    model_config = ConfigDict(frozen=True)

    index_scans: int = 0
    total_scans: int = 0
    indexes_used: tuple[str, ...] = Field(
        default=(),
        description="Distinct indexes used, in first-seen order",
    )
    seq_scans: tuple[SeqScanInfo, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def all_scans_use_indexes(self) -> bool:
        return self.total_scans > 0 and self.index_scans == self.total_scans


class BufferStats(BaseModel):
    """Shared buffer block counters summed over the plan."""

    model_config = ConfigDict(frozen=True)

    hit: int = 0
    read: int = 0
    written: int = 0
    total: int = Field(default=0, description="hit + read; written is excluded")

    @property
    def hit_ratio(self) -> float | None:
        """Percentage of accessed blocks found in cache, or None without accesses."""
        if self.total == 0:
            return None
        return self.hit / self.total * 100


class RowEstimate(BaseModel):
    """Planner estimate compared against actual rows for one node."""

    model_config = ConfigDict(frozen=True)

    actual: int
    estimated: int
    ratio: float = Field(..., description="actual / estimated; inf when estimated is 0")
    accuracy: EstimateAccuracy


class NodeInsight(BaseModel):
    """Per-node annotations for presentation layers."""

    model_config = ConfigDict(frozen=True)

    path: NodePath
    node_type: str
    relation_name: str | None = None
    index_name: str | None = None
    badges: tuple[Badge, ...] = ()
    row_estimate: RowEstimate | None = None
    filter_efficiency: float | None = Field(
        default=None,
        description="Percentage of scanned rows kept by the filter",
    )


class PlanSummary(BaseModel):
    """Headline figures for a plan."""

    model_config = ConfigDict(frozen=True)

    execution_time: float | None = None
    planning_time: float | None = None
    total_cost: float | None = None
    actual_rows: int | None = None
    node_count: int = 0


class Verdict(BaseModel):
    """Overall good/ok/bad judgement with a one-line message."""

    model_config = ConfigDict(frozen=True)

    level: VerdictLevel
    message: str


class AnalysisRequest(BaseModel):
    """
    Input to the analyzer.

    Attributes:
        root: Root node of the plan tree.
        planning_time: Planning time in ms, if reported.
        execution_time: Execution time in ms (EXPLAIN ANALYZE only).
        analyze: True iff the plan carries actual-run statistics. Every
            check that reads actual_* fields is gated on this flag.
    """

    model_config = ConfigDict(frozen=True)

    root: PlanNode
    planning_time: float | None = Field(default=None, ge=0)
    execution_time: float | None = Field(default=None, ge=0)
    analyze: bool = False


class AnalysisReport(BaseModel):
    """
    Complete result of analyzing one plan.

    Identical requests always produce identical reports.
    """

    model_config = ConfigDict(frozen=True)

    analyze: bool = False
    summary: PlanSummary = Field(default_factory=PlanSummary)
    index_usage: IndexUsage = Field(default_factory=IndexUsage)
    buffer_stats: BufferStats = Field(default_factory=BufferStats)
    hotspots: tuple[str, ...] = Field(
        default=(),
        description="Slow nodes, slowest first",
    )
    recommendations: tuple[Recommendation, ...] = Field(
        default=(),
        description="Recommendations in plan pre-order, then plan-level checks",
    )
    node_insights: tuple[NodeInsight, ...] = ()
    verdict: Verdict

    @property
    def has_critical(self) -> bool:
        return any(r.severity == Severity.CRITICAL for r in self.recommendations)

    @property
    def has_warnings(self) -> bool:
        return any(r.severity == Severity.WARNING for r in self.recommendations)

    def recommendations_by_severity(self, severity: Severity) -> list[Recommendation]:
        """Get all recommendations of a specific severity."""
        return [r for r in self.recommendations if r.severity == severity]

    def counts(self) -> dict[str, int]:
        """Recommendation counts by severity."""
        return {
            "total": len(self.recommendations),
            "critical": len(self.recommendations_by_severity(Severity.CRITICAL)),
            "warning": len(self.recommendations_by_severity(Severity.WARNING)),
            "info": len(self.recommendations_by_severity(Severity.INFO)),
        }
