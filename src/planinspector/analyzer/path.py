"""
NodePath: first-class type for plan tree navigation.

Every walk over a plan goes through walk_plan(), which uses an explicit
stack so plan depth is never limited by the interpreter's recursion limit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import CoreSchema, core_schema

from planinspector.exceptions import InvalidPlanError

if TYPE_CHECKING:
    from planinspector.parser.models import PlanNode


class NodePath:
    """
    Immutable path to a node in the query plan tree.

    Format: ("Plan", "Plans[0]", "Plans[2]") means root → first child → third grandchild.

    Example:
        path = NodePath.root()           # ("Plan",)
        child = path.child(0)            # ("Plan", "Plans[0]")
        str(child)                       # "Plan → Plans[0]"
    """

    __slots__ = ("_segments",)

    def __init__(self, segments: tuple[str, ...] | None = None) -> None:
        self._segments: tuple[str, ...] = segments or ("Plan",)

    @classmethod
    def root(cls) -> "NodePath":
        """Create a path pointing to the root Plan node."""
        return cls(("Plan",))

    @property
    def segments(self) -> tuple[str, ...]:
        return self._segments

    def child(self, index: int) -> "NodePath":
        """Navigate to the child at the given index of the node's Plans array."""
        return NodePath(self._segments + (f"Plans[{index}]",))

    @property
    def depth(self) -> int:
        """Number of child navigations from root (0 for root)."""
        return len(self._segments) - 1

    def __str__(self) -> str:
        return " → ".join(self._segments)

    def __repr__(self) -> str:
        return f"NodePath({'.'.join(self._segments)})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NodePath):
            return self._segments == other._segments
        return False

    def __hash__(self) -> int:
        return hash(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    # Pydantic v2 serialization support
    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        """Accept a NodePath or a list of segments; serialize as a list."""
        return core_schema.no_info_after_validator_function(
            cls._validate,
            core_schema.union_schema([
                core_schema.is_instance_schema(cls),
                core_schema.list_schema(core_schema.str_schema()),
            ]),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda x: list(x.segments),
                info_arg=False,
            ),
        )

    @classmethod
    def _validate(cls, value: Any) -> "NodePath":
        if isinstance(value, cls):
            return value
        if isinstance(value, (list, tuple)):
            return cls(tuple(value))
        raise ValueError(f"Cannot convert {type(value)} to NodePath")

    @classmethod
    def __get_pydantic_json_schema__(
        cls, core_schema: CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        return {
            "type": "array",
            "items": {"type": "string"},
            "description": "Path segments from root to node",
            "example": ["Plan", "Plans[0]", "Plans[2]"],
        }


def walk_plan(
    root: "PlanNode",
    path: NodePath | None = None,
) -> Iterator[tuple[NodePath, "PlanNode"]]:
    """
    Traverse the plan tree in pre-order, yielding (path, node) pairs.

    Children are visited in their planner order. Each node is checked
    against the tree contract as it is reached.

    Raises:
        InvalidPlanError: If a node is not a PlanNode or has no node type

    Example:
        for path, node in walk_plan(request.root):
            if node.node_type == "Seq Scan":
                print(f"Found seq scan at {path}")
    """
    from planinspector.parser.models import PlanNode

    stack: list[tuple[NodePath, Any]] = [(path or NodePath.root(), root)]

    while stack:
        current_path, node = stack.pop()

        if not isinstance(node, PlanNode):
            raise InvalidPlanError(
                f"Expected PlanNode, got {type(node).__name__}",
                node_path=current_path,
            )
        if not isinstance(node.node_type, str) or not node.node_type:
            raise InvalidPlanError("Plan node has no node type", node_path=current_path)

        yield current_path, node

        children = node.children
        if not isinstance(children, (tuple, list)):
            raise InvalidPlanError(
                f"Children must be a sequence, got {type(children).__name__}",
                node_path=current_path,
            )
        for i in range(len(children) - 1, -1, -1):
            stack.append((current_path.child(i), children[i]))
