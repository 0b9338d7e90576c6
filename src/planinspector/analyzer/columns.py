"""
ColumnExtractor: candidate column names from planner-emitted conditions.

This is a regex heuristic over text PostgreSQL already produced (Filter,
Index Cond, ...), not a SQL parser. Exotic expressions can yield false
positives or miss columns; that is accepted behavior.

Passes, applied in order and merged in first-seen order:
1. Qualified references:       users.email        -> email
2. Column before a comparison: (status = 'x')     -> status
3. Cast expressions:           ((created_at)::date -> created_at
4. BETWEEN / IN / IS:          (age BETWEEN 1 AND 2) -> age
"""

from __future__ import annotations

import re
from typing import Any

MAX_COLUMNS = 5
MIN_COLUMN_LENGTH = 2

NOISE_WORDS = frozenset({
    "true",
    "false",
    "null",
    "text",
    "integer",
    "bigint",
    "timestamp",
    "date",
    "boolean",
    "numeric",
    "float",
    "double",
})

_QUALIFIED = re.compile(r"(\w+)\.(\w+)", re.ASCII)
_COMPARISON = re.compile(r"\((\w+)\s*[=<>!]", re.ASCII)
_CAST = re.compile(r"\(\((\w+)\)::", re.ASCII)
_KEYWORD = re.compile(r"\((\w+)\s+(?:BETWEEN|IN|IS)\b", re.ASCII | re.IGNORECASE)


def _candidates(condition: str) -> list[str]:
    found = [m.group(2) for m in _QUALIFIED.finditer(condition)]
    found.extend(m.group(1) for m in _COMPARISON.finditer(condition))
    found.extend(m.group(1) for m in _CAST.finditer(condition))
    found.extend(m.group(1) for m in _KEYWORD.finditer(condition))
    return found


def extract_columns(condition: Any) -> list[str]:
    """
    Pull up to five likely column names out of a condition string.

    Non-string or absent input yields an empty list.

    Example:
        >>> extract_columns("((status)::text = 'active'::text)")
        ['status']
    """
    if not isinstance(condition, str) or not condition:
        return []

    columns: list[str] = []
    seen: set[str] = set()
    for name in _candidates(condition):
        if name in seen:
            continue
        seen.add(name)
        if name.lower() in NOISE_WORDS or len(name) < MIN_COLUMN_LENGTH:
            continue
        columns.append(name)

    return columns[:MAX_COLUMNS]
