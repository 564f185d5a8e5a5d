"""Header/value normalization for bank-statement rows.

Bank exports disagree on casing, spacing, and decoration of column headers
(``"Withdrawal Amt.*"``, ``"  Value   Date "``). Every parsed row is passed
through :func:`build_norm` so downstream lookups work against a single stable,
lower-cased key space.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_WS_RE = re.compile(r"\s+")


def normalize_key(raw: Any) -> str:
    """Return ``raw`` with asterisks removed, trimmed, lower-cased, single-spaced.

    Non-string input yields ``""``. Idempotent by construction.
    """

    if not isinstance(raw, str):
        return ""
    return _WS_RE.sub(" ", raw.replace("*", "").strip().lower())


def normalize_value(raw: Any) -> Any:
    # Strings lose markup asterisks and surrounding whitespace; other scalars pass through.
    if isinstance(raw, str):
        return raw.replace("*", "").strip()
    return raw


def build_norm(record: Mapping[Any, Any]) -> dict[str, Any]:
    """Map a raw row to a normalized record.

    Later keys win when two raw headers collapse onto the same normalized key.
    Reserved ``__src``/``__srcs`` keys are already in normal form and survive.
    """

    return {normalize_key(k): normalize_value(v) for k, v in record.items()}


__all__ = ["normalize_key", "normalize_value", "build_norm"]
