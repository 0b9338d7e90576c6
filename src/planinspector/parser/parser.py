"""
Parser for PostgreSQL EXPLAIN (FORMAT JSON) output.

This module handles:
- Loading EXPLAIN JSON from files, strings or already-decoded data
- Checking the raw tree shape before validation (node types, Plans lists)
- Enforcing resource limits (file size, depth, node count)
- Converting to typed, immutable Pydantic models

Error handling philosophy: fail fast with clear messages. Input problems
raise ParseError; a malformed plan node raises InvalidPlanError naming
the path to the node.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from planinspector.analyzer.path import NodePath
from planinspector.exceptions import InvalidPlanError, ParseError
from planinspector.parser.config import DEFAULT_CONFIG, ParserConfig
from planinspector.parser.models import ExplainOutput, node_contract_violation, raw_children


def parse_explain(
    source: str | Path | dict[str, Any] | list[Any],
    config: ParserConfig | None = None,
) -> ExplainOutput:
    """
    Parse PostgreSQL EXPLAIN (FORMAT JSON) output into typed models.

    Accepts multiple input formats for convenience:
    - File path (str or Path): Reads and parses the file
    - JSON string: Parses the string
    - Dict: Validates as the inner EXPLAIN object
    - List: Expects the single-element array EXPLAIN returns

    Args:
        source: EXPLAIN JSON in any of the supported formats
        config: Parser limits. Defaults to DEFAULT_CONFIG.

    Returns:
        ExplainOutput: Validated and typed representation of the plan

    Raises:
        ParseError: If input cannot be loaded or exceeds limits
        InvalidPlanError: If a plan node is malformed

    Example:
        >>> output = parse_explain("explain.json")
        >>> output = parse_explain('[{"Plan": {"Node Type": "Result"}}]')
        >>> report = analyze_plan(output.to_request())
    """
    config = config or DEFAULT_CONFIG

    _check_file_size(source, config)

    data = _load_source(source)
    data = _unwrap_array(data)

    if "Plan" not in data:
        raise ParseError(
            "Missing 'Plan' field - this doesn't look like EXPLAIN output",
            detail="EXPLAIN (FORMAT JSON) output must contain a 'Plan' object",
            source="validation",
        )

    # Shape and limits are checked on the raw tree so validation never
    # recurses into something pathological.
    _check_plan_tree(data["Plan"], config)

    return _validate_explain(data)


def parse_explain_file(path: str | Path, config: ParserConfig | None = None) -> ExplainOutput:
    """
    Parse EXPLAIN JSON from a file.

    Convenience wrapper around parse_explain() with file-specific messages.

    Raises:
        ParseError: If the file is missing, unreadable, empty or invalid
    """
    filepath = Path(path)

    if not filepath.exists():
        raise ParseError(f"File not found: {filepath}", source="file_read")

    if not filepath.is_file():
        raise ParseError(f"Path is not a file: {filepath}", source="file_read")

    _check_file_size(filepath, config or DEFAULT_CONFIG)

    try:
        content = filepath.read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(
            f"Cannot read file: {filepath}",
            detail=str(e),
            source="file_read",
        ) from e

    if not content.strip():
        raise ParseError(f"File is empty: {filepath}", source="file_read")

    return parse_explain(_parse_json_string(content), config)


def _load_source(source: str | Path | dict[str, Any] | list[Any]) -> dict[str, Any] | list[Any]:
    """Load source into a Python dict/list."""
    if isinstance(source, (dict, list)):
        return source

    if isinstance(source, Path):
        return _load_json_file(source)

    if isinstance(source, str):
        stripped = source.strip()
        if stripped.startswith(("{", "[")):
            return _parse_json_string(stripped)
        return _load_json_file(Path(source))

    raise ParseError(
        f"Unsupported source type: {type(source).__name__}",
        detail="Expected file path, JSON string, dict, or list",
        source="type_check",
    )


def _load_json_file(path: Path) -> dict[str, Any] | list[Any]:
    """Load and parse a JSON file."""
    if not path.exists():
        raise ParseError(f"File not found: {path}", source="file_read")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(
            f"Cannot read file: {path}",
            detail=str(e),
            source="file_read",
        ) from e

    return _parse_json_string(content)


def _parse_json_string(content: str) -> dict[str, Any] | list[Any]:
    """Parse a JSON string."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(
            "Invalid JSON format",
            detail=f"Line {e.lineno}, column {e.colno}: {e.msg}",
            source="json_decode",
        ) from e

    if not isinstance(data, (dict, list)):
        raise ParseError(
            f"Expected JSON object or array, got {type(data).__name__}",
            source="json_decode",
        )

    return data


def _unwrap_array(data: dict[str, Any] | list[Any]) -> dict[str, Any]:
    """
    Unwrap the single-element array that PostgreSQL EXPLAIN returns.

    EXPLAIN (FORMAT JSON) returns: [{"Plan": {...}}]
    We want just: {"Plan": {...}}
    """
    if isinstance(data, dict):
        return data

    if len(data) == 0:
        raise ParseError(
            "Empty array - no EXPLAIN output found",
            detail="PostgreSQL EXPLAIN (FORMAT JSON) returns a single-element array",
            source="structure",
        )

    if len(data) > 1:
        raise ParseError(
            f"Expected single EXPLAIN output, got {len(data)} elements",
            detail="Did you concatenate multiple EXPLAIN outputs? Analyze one at a time.",
            source="structure",
        )

    inner = data[0]
    if not isinstance(inner, dict):
        raise ParseError(
            f"Expected object inside array, got {type(inner).__name__}",
            source="structure",
        )

    return inner


def _check_plan_tree(plan: Any, config: ParserConfig) -> None:
    """
    Walk the raw plan tree and enforce the node contract and limits.

    Every node must be an object with a non-empty node type, and "Plans"
    (when present) must be a list. Uses an explicit stack.
    """
    stack: list[tuple[Any, NodePath]] = [(plan, NodePath.root())]
    count = 0

    while stack:
        node, path = stack.pop()

        problem = node_contract_violation(node)
        if problem:
            raise InvalidPlanError(problem, node_path=path)

        if path.depth + 1 > config.max_depth:
            raise ParseError(
                f"Plan too deeply nested: depth > {config.max_depth}",
                detail="This may indicate a pathological query or corrupted EXPLAIN output",
                source="resource_limit",
            )

        count += 1
        if count > config.max_nodes:
            raise ParseError(
                f"Plan too large: more than {config.max_nodes:,} nodes",
                detail="Consider analyzing a simpler query or increasing max_nodes in config",
                source="resource_limit",
            )

        children = raw_children(node) or []
        for i in range(len(children) - 1, -1, -1):
            stack.append((children[i], path.child(i)))


def _validate_explain(data: dict[str, Any]) -> ExplainOutput:
    """
    Validate the data against our Pydantic models.

    Converts Pydantic validation errors into InvalidPlanError.
    """
    try:
        return ExplainOutput.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = " -> ".join(str(x) for x in error["loc"])
            errors.append(f"  {loc}: {error['msg']}")

        raise InvalidPlanError(
            "EXPLAIN output validation failed",
            detail="\n".join(errors),
        ) from e


def _check_file_size(source: str | Path | dict[str, Any] | list[Any], config: ParserConfig) -> None:
    """Check file size before loading into memory."""
    path: Path | None = None

    if isinstance(source, Path):
        path = source
    elif isinstance(source, str) and not source.strip().startswith(("{", "[")):
        path = Path(source)

    if path is not None and path.exists() and path.is_file():
        size_mb = path.stat().st_size / (1024 * 1024)
        if size_mb > config.max_file_size_mb:
            raise ParseError(
                f"File too large: {size_mb:.1f}MB (max {config.max_file_size_mb}MB)",
                detail="Use a smaller EXPLAIN output or increase max_file_size_mb in config",
                source="resource_limit",
            )


def validate_has_analyze(output: ExplainOutput) -> None:
    """
    Verify that EXPLAIN ANALYZE data is present.

    Raises:
        ParseError: If only EXPLAIN (not ANALYZE) was run
    """
    if not output.has_analyze_data:
        raise ParseError(
            "Missing EXPLAIN ANALYZE data",
            detail=(
                "This looks like plain EXPLAIN output without ANALYZE.\n"
                "Run: EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON) <your query>\n"
                "Note: ANALYZE actually executes the query, so be careful with mutations."
            ),
            source="validation",
        )
