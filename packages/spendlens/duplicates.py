"""Cross-file de-duplication of statement records.

When several exports covering overlapping periods are loaded, the same
payment shows up once per file, often with differently formatted dates,
amounts and narrations. Records are keyed by::

    (canonical date, amount in minor units, lower-cased canonical merchant)

and only the first occurrence of each key is kept. Later occurrences add
their origin file to the kept record's ``__srcs`` list.

Records with neither a date nor a description have no reliable key and are
passed through untouched, even when they look identical.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from .columns import canonical_date, record_amount, tx_date, tx_description
from .logging_setup import get_logger
from .merchants import canonicalize_merchant
from .models import NormalizedRecord

_logger = get_logger("spendlens.duplicates")

type DedupKey = tuple[str, int, str]

_MINOR_UNITS = Decimal(100)


def minor_units(amount: Decimal | None) -> int:
    """Amount in integer minor units (paise/cents), rounding half up; ``None`` is 0."""

    if amount is None:
        return 0
    return int((amount * _MINOR_UNITS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def dedup_key(record: NormalizedRecord) -> DedupKey | None:
    """Return the de-duplication key for ``record``, or ``None`` when unkeyable."""

    date = tx_date(record)
    desc = tx_description(record)
    if not date and not desc:
        return None
    return (
        canonical_date(date),
        minor_units(record_amount(record)),
        canonicalize_merchant(desc).lower().strip(),
    )


def _initial_srcs(record: NormalizedRecord) -> list[str]:
    existing = record.get("__srcs")
    if existing:
        return list(dict.fromkeys(existing))
    src = record.get("__src")
    return [src] if src else []


def dedupe(records: Iterable[NormalizedRecord]) -> list[NormalizedRecord]:
    """Collapse repeated transactions, keeping first-occurrence order.

    Kept records are shallow copies; inputs are not modified.
    """

    seen: dict[DedupKey, NormalizedRecord] = {}
    result: list[NormalizedRecord] = []
    total = 0
    for record in records:
        total += 1
        key = dedup_key(record)
        if key is None:
            result.append(record)
            continue
        existing = seen.get(key)
        if existing is None:
            entry = dict(record)
            entry["__srcs"] = _initial_srcs(record)
            seen[key] = entry
            result.append(entry)
            continue
        merged = existing["__srcs"]
        for src in _initial_srcs(record):
            if src not in merged:
                merged.append(src)

    _logger.info("ledger:dedupe input=%d output=%d", total, len(result))
    return result


__all__ = ["DedupKey", "minor_units", "dedup_key", "dedupe"]
