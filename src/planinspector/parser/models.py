"""
Pydantic models for PostgreSQL EXPLAIN (FORMAT JSON) output.

The structure is:
- ExplainOutput: Top-level wrapper containing the plan and timing info
- PlanNode: Recursive, immutable structure for each node in the plan tree

PostgreSQL EXPLAIN JSON uses "Title Case" keys, which we map to snake_case
via Pydantic aliases. Both spellings are accepted on input.

Every field except node_type is optional: a missing value means "absent",
never zero. Rules check presence explicitly before using a value.

Reference: https://www.postgresql.org/docs/current/using-explain.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, model_validator

from planinspector.exceptions import InvalidPlanError

if TYPE_CHECKING:
    from planinspector.analyzer.models import AnalysisRequest

NODE_TYPE_KEYS = ("Node Type", "node_type")
CHILDREN_KEYS = ("Plans", "children")


def _first_key(node: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in node:
            return node[key]
    return None


def raw_children(node: dict[str, Any]) -> Any:
    """The "Plans" value of a raw node, under either key spelling."""
    return _first_key(node, CHILDREN_KEYS)


def node_contract_violation(node: Any) -> str | None:
    """
    Describe how a raw node breaks the tree contract, or return None.

    A node must be an object with a non-empty string node type, and its
    children (when present) must be a list. Only the node itself is
    checked, not its descendants.
    """
    if not isinstance(node, dict):
        return f"Expected plan node object, got {type(node).__name__}"

    node_type = _first_key(node, NODE_TYPE_KEYS)
    if not isinstance(node_type, str) or not node_type.strip():
        return "Plan node is missing 'Node Type'"

    children = raw_children(node)
    if children is not None and not isinstance(children, (list, tuple)):
        return f"'Plans' must be a list, got {type(children).__name__}"

    return None


class PlanNode(BaseModel):
    """
    A single operator in the query execution plan.

    Children are held in `children` (the "Plans" key in EXPLAIN JSON) in
    the order the planner emitted them. Nodes are frozen once built.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    # =========================================================================
    # Identity
    # =========================================================================

    node_type: str = Field(
        ...,
        min_length=1,
        alias="Node Type",
        description="The type of plan node (e.g., 'Seq Scan', 'Hash Join')",
    )

    relation_name: str | None = Field(default=None, alias="Relation Name")
    index_name: str | None = Field(default=None, alias="Index Name")
    schema_name: str | None = Field(default=None, alias="Schema")

    # =========================================================================
    # Planner estimates
    # =========================================================================

    startup_cost: float | None = Field(default=None, ge=0, alias="Startup Cost")
    total_cost: float | None = Field(default=None, ge=0, alias="Total Cost")
    plan_rows: int | None = Field(default=None, ge=0, alias="Plan Rows")
    plan_width: int | None = Field(default=None, ge=0, alias="Plan Width")

    # =========================================================================
    # EXPLAIN ANALYZE fields
    # =========================================================================

    actual_rows: int | None = Field(default=None, ge=0, alias="Actual Rows")
    actual_loops: int | None = Field(default=None, ge=0, alias="Actual Loops")
    actual_startup_time: float | None = Field(default=None, ge=0, alias="Actual Startup Time")
    actual_total_time: float | None = Field(default=None, ge=0, alias="Actual Total Time")

    # =========================================================================
    # Planner-emitted expressions
    # =========================================================================

    filter: str | None = Field(default=None, alias="Filter")
    index_cond: str | None = Field(default=None, alias="Index Cond")
    recheck_cond: str | None = Field(default=None, alias="Recheck Cond")
    hash_cond: str | None = Field(default=None, alias="Hash Cond")
    join_type: str | None = Field(default=None, alias="Join Type")

    # =========================================================================
    # Sort details
    # =========================================================================

    sort_key: str | list[str] | None = Field(default=None, alias="Sort Key")
    sort_method: str | None = Field(default=None, alias="Sort Method")
    sort_space_type: str | None = Field(default=None, alias="Sort Space Type")
    sort_space_used: int | None = Field(
        default=None,
        ge=0,
        alias="Sort Space Used",
        description="Memory/disk used for sort in kB",
    )

    # =========================================================================
    # Buffer statistics (BUFFERS option)
    # =========================================================================

    shared_hit_blocks: int | None = Field(default=None, ge=0, alias="Shared Hit Blocks")
    shared_read_blocks: int | None = Field(default=None, ge=0, alias="Shared Read Blocks")
    shared_written_blocks: int | None = Field(default=None, ge=0, alias="Shared Written Blocks")

    # =========================================================================
    # Row accounting and memory
    # =========================================================================

    rows_removed_by_filter: int | None = Field(default=None, ge=0, alias="Rows Removed by Filter")
    rows_removed_by_index_recheck: int | None = Field(
        default=None, ge=0, alias="Rows Removed by Index Recheck"
    )
    heap_fetches: int | None = Field(default=None, ge=0, alias="Heap Fetches")
    peak_memory_usage: int | None = Field(
        default=None,
        ge=0,
        alias="Peak Memory Usage",
        description="Peak memory used by hash table in kB",
    )

    # =========================================================================
    # Subplans and CTEs
    # =========================================================================

    subplan_name: str | None = Field(default=None, alias="Subplan Name")
    parent_relationship: str | None = Field(default=None, alias="Parent Relationship")
    cte_name: str | None = Field(default=None, alias="CTE Name")

    # =========================================================================
    # Child nodes
    # =========================================================================

    children: tuple[PlanNode, ...] = Field(
        default_factory=tuple,
        alias="Plans",
        description="Child plan nodes",
    )

    @model_validator(mode="before")
    @classmethod
    def _check_node_contract(cls, data: Any) -> Any:
        """Reject malformed nodes with InvalidPlanError instead of a ValidationError."""
        if isinstance(data, PlanNode):
            return data
        problem = node_contract_violation(data)
        if problem:
            raise InvalidPlanError(problem)
        return data

    # =========================================================================
    # Computed properties
    # =========================================================================

    @property
    def has_analyze_data(self) -> bool:
        """Check if EXPLAIN ANALYZE data is present."""
        return self.actual_rows is not None

    def iter_nodes(self) -> Iterator[PlanNode]:
        """
        Iterate through all nodes in the plan tree (pre-order).

        Uses an explicit stack, so arbitrarily deep plans are safe.
        """
        stack: list[PlanNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


class ExplainOutput(BaseModel):
    """
    Top-level structure for PostgreSQL EXPLAIN (FORMAT JSON) output.

    PostgreSQL returns EXPLAIN JSON as a single-element array containing
    an object with 'Plan', 'Planning Time', etc. This model represents
    that inner object.

    Usage:
        output = parse_explain("explain.json")
        request = output.to_request()
        report = analyze_plan(request)
    """

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    plan: PlanNode = Field(
        ...,
        alias="Plan",
        description="Root node of the execution plan tree",
    )

    planning_time: float | None = Field(
        default=None,
        ge=0,
        alias="Planning Time",
        description="Time spent planning the query in milliseconds",
    )

    execution_time: float | None = Field(
        default=None,
        ge=0,
        alias="Execution Time",
        description="Total execution time in milliseconds (ANALYZE only)",
    )

    @property
    def has_analyze_data(self) -> bool:
        """Check if EXPLAIN ANALYZE data is present."""
        return self.execution_time is not None or self.plan.has_analyze_data

    @property
    def all_nodes(self) -> list[PlanNode]:
        """Get all nodes in the plan tree as a flat list."""
        return list(self.plan.iter_nodes())

    def to_request(self, analyze: bool | None = None) -> "AnalysisRequest":
        """
        Build an AnalysisRequest for the analyzer.

        Args:
            analyze: Whether the plan carries actual-run statistics.
                Inferred from the output when not given.
        """
        from planinspector.analyzer.models import AnalysisRequest

        return AnalysisRequest(
            root=self.plan,
            planning_time=self.planning_time,
            execution_time=self.execution_time,
            analyze=self.has_analyze_data if analyze is None else analyze,
        )
