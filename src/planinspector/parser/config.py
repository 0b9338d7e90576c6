"""
Parser configuration with resource limits.

These limits keep pathological inputs from exhausting memory or the
interpreter stack during model validation. The defaults are generous for
normal usage but will catch genuinely problematic files.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ParserConfig(BaseModel):
    """
    Configuration for the EXPLAIN parser with resource limits.

    Attributes:
        max_file_size_mb: Maximum file size to parse.
        max_nodes: Maximum number of plan nodes.
        max_depth: Maximum tree depth (nesting level).

    Example:
        # Stricter limits for untrusted input
        config = ParserConfig(max_file_size_mb=10, max_nodes=1000)
    """

    model_config = ConfigDict(frozen=True)

    max_file_size_mb: float = Field(
        default=100.0,
        gt=0,
        description="Maximum file size in megabytes",
    )

    max_nodes: int = Field(
        default=50_000,
        gt=0,
        description="Maximum number of plan nodes",
    )

    max_depth: int = Field(
        default=100,
        gt=0,
        description="Maximum tree depth (nesting level)",
    )


DEFAULT_CONFIG = ParserConfig()

STRICT_CONFIG = ParserConfig(
    max_file_size_mb=10.0,
    max_nodes=5_000,
    max_depth=50,
)
