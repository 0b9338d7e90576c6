"""
Configuration for PlanInspector.

The analysis engine itself is pure: it uses the built-in thresholds unless
a caller hands it an AnalyzerConfig. Environment variables and config files
are only read by get_config(), which the CLI uses.

Usage:
    from planinspector.config import get_config, AnalyzerConfig

    # Built-in thresholds
    config = AnalyzerConfig()

    # Load from environment (PLANINSPECTOR_<FIELD>) or PLANINSPECTOR_CONFIG_FILE
    config = get_config()

    # Override a single threshold
    config = AnalyzerConfig(slow_query_ms=500)
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from planinspector.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PLANINSPECTOR_"
CONFIG_FILE_ENV = "PLANINSPECTOR_CONFIG_FILE"


class AnalyzerConfig(BaseModel):
    """
    Thresholds used by the analysis engine.

    Defaults reproduce the engine's documented behavior; changing them is
    supported but every default is part of the behavioral contract.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Sequential scans
    large_seq_scan_rows: int = Field(
        default=10_000,
        ge=0,
        description="Plan rows above which a seq scan is 'large'",
    )
    seq_scan_rows: int = Field(
        default=1_000,
        ge=0,
        description="Plan rows above which a seq scan is worth flagging",
    )
    filtered_scan_rows: int = Field(
        default=1_000,
        ge=0,
        description="Scanned rows (kept + removed) above which a filtered seq scan is critical",
    )

    # Sorts, hashes, bitmaps
    large_sort_rows: int = Field(default=10_000, ge=0, description="Plan rows for a large sort badge")
    large_bitmap_rows: int = Field(default=10_000, ge=0, description="Plan rows for a large bitmap badge")
    memory_sort_kb: int = Field(default=10_000, ge=0, description="In-memory sort size worth reporting (kB)")
    hash_peak_memory_kb: int = Field(default=100_000, ge=0, description="Hash peak memory worth reporting (kB)")
    recheck_rows: int = Field(default=1_000, ge=0, description="Rows removed by index recheck worth reporting")
    min_work_mem_mb: int = Field(default=4, ge=1, description="Floor for suggested work_mem (MB)")

    # Joins and subqueries
    nested_loop_inner_rows: int = Field(default=1_000, ge=0, description="Inner rows for a large nested loop badge")
    loop_threshold: int = Field(default=100, ge=0, description="Loops above which nested loops/subplans are flagged")

    # Row estimates
    estimate_ratio: float = Field(default=10.0, gt=1, description="Actual/estimate ratio considered badly off")
    estimate_min_diff: int = Field(default=1_000, ge=0, description="Absolute row difference required for a recommendation")
    estimate_noise_diff: int = Field(default=100, ge=0, description="Absolute row difference never treated as a problem")
    fanout_ratio: float = Field(default=10.0, gt=1, description="Actual/estimate ratio for a row explosion badge")

    # Index-only scans
    heap_fetch_ratio: float = Field(default=50.0, ge=0, description="Heap fetch percentage worth reporting")
    heap_fetch_warning_ratio: float = Field(default=90.0, ge=0, description="Heap fetch percentage escalated to warning")

    # Timing
    hotspot_ms: float = Field(default=10.0, ge=0, description="Node time above which it is a hotspot")
    planning_time_ms: float = Field(default=5.0, ge=0, description="Planning time worth reporting when it dominates")
    slow_query_ms: float = Field(default=1_000.0, ge=0, description="Execution time for a critical slow query")
    moderate_query_ms: float = Field(default=100.0, ge=0, description="Execution time for a moderately slow query")

    # Buffers
    cache_hit_ratio: float = Field(default=90.0, ge=0, le=100, description="Minimum healthy cache hit percentage")
    cache_min_read_blocks: int = Field(default=10, ge=0, description="Disk reads required before flagging the cache")


DEFAULT_ANALYZER_CONFIG = AnalyzerConfig()


def _parse_env_value(name: str, raw: str, annotation: Any) -> int | float | None:
    """Parse a numeric threshold from the environment, or None if unusable."""
    try:
        if annotation is int:
            return int(raw)
        return float(raw)
    except ValueError:
        logger.warning("Could not parse %s%s=%r, keeping default", ENV_PREFIX, name.upper(), raw)
        return None


def _build_config(values: dict[str, Any]) -> AnalyzerConfig:
    try:
        return AnalyzerConfig(**values)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(x) for x in first["loc"]) or None
        raise ConfigurationError(
            f"Invalid configuration: {first['msg']}",
            config_key=key,
        ) from e


def load_config_from_env() -> AnalyzerConfig:
    """
    Load thresholds from environment variables.

    Each AnalyzerConfig field maps to PLANINSPECTOR_<FIELD_NAME>, e.g.
    PLANINSPECTOR_SLOW_QUERY_MS=500 or PLANINSPECTOR_HOTSPOT_MS=25.
    """
    values: dict[str, Any] = {}
    for name, field in AnalyzerConfig.model_fields.items():
        raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        parsed = _parse_env_value(name, raw, field.annotation)
        if parsed is not None:
            values[name] = parsed
    return _build_config(values)


def load_config_from_file(path: Path) -> AnalyzerConfig:
    """
    Load thresholds from a JSON file.

    Falls back to environment variables when the file does not exist.
    """
    if not path.exists():
        logger.warning("Config file not found: %s, using environment", path)
        return load_config_from_env()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot load config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a JSON object, got {type(data).__name__}"
        )
    return _build_config(data)


@lru_cache(maxsize=1)
def get_config() -> AnalyzerConfig:
    """
    Get the process-wide configuration.

    Loads from:
    1. PLANINSPECTOR_CONFIG_FILE (if set)
    2. Environment variables (default)

    Result is cached for the lifetime of the process.
    """
    config_file = os.environ.get(CONFIG_FILE_ENV)
    if config_file:
        return load_config_from_file(Path(config_file))
    return load_config_from_env()


def reset_config() -> None:
    """Reset the cached configuration (mainly for testing)."""
    get_config.cache_clear()
