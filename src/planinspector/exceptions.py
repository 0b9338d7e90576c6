"""
Package-level exception hierarchy for PlanInspector.

All exceptions inherit from PlanInspectorError, enabling:
- Catching all PlanInspector errors with a single except clause
- Rich context fields for debugging (node_path, config_key, source)
- Structured serialization via to_dict() for JSON error responses

Hierarchy:
    PlanInspectorError
    ├── ParseError          – Input is not usable EXPLAIN JSON
    ├── InvalidPlanError    – Plan tree violates the node contract
    └── ConfigurationError  – Invalid analyzer configuration
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from planinspector.analyzer.path import NodePath


class PlanInspectorError(Exception):
    """
    Base exception for all PlanInspector errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON error responses."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
        }


# ── Parse Errors ─────────────────────────────────────────────────────────


class ParseError(PlanInspectorError):
    """
    Failed to load EXPLAIN JSON input.

    Raised when the input is not valid JSON, cannot be read, is too large,
    too deeply nested, or otherwise cannot be interpreted as EXPLAIN output.

    Attributes:
        detail: Technical details for debugging (optional).
        source: Where the error occurred (e.g., "json_decode", "resource_limit").
    """

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        source: str = "unknown",
    ) -> None:
        self.detail = detail
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}\n\nDetails: {self.detail}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["detail"] = self.detail
        result["source"] = self.source
        return result


# ── Plan Contract Errors ─────────────────────────────────────────────────


class InvalidPlanError(PlanInspectorError):
    """
    A plan node violates the tree contract.

    Missing or empty node types and children that are not plan nodes are
    an upstream parsing bug. They are reported at the first offending node
    and never recovered from.

    Attributes:
        node_path: Location of the offending node, if known.
        detail: Additional validation output (optional).
    """

    def __init__(
        self,
        message: str,
        node_path: "NodePath | None" = None,
        detail: str | None = None,
    ) -> None:
        self.node_path = node_path
        self.detail = detail
        if node_path is not None:
            message = f"{message} at {node_path}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["node_path"] = list(self.node_path.segments) if self.node_path else None
        result["detail"] = self.detail
        return result


# ── Configuration Errors ─────────────────────────────────────────────────


class ConfigurationError(PlanInspectorError):
    """
    Error in analyzer configuration.

    Attributes:
        config_key: The configuration key that caused the error (if known).
    """

    def __init__(self, message: str, config_key: str | None = None) -> None:
        self.config_key = config_key
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result
