"""Semantic field resolution over normalized statement records.

Records keep whatever headers the bank exported; this module is the single
place that knows which header aliases carry the transaction date, narration,
debit/credit amounts and direction. Lookups try each alias exactly (callers
list the most specific first) and then fall back to a prefix match so
suffixed variants such as ``"withdrawal amt. (inr)"`` still resolve.

All parsing helpers are total: unparsable amounts become ``None`` and
unparsable dates are returned as the cleaned source text (or ``""``).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from numbers import Real
from typing import Any

from .models import Direction

# ---------------------------------------------------------------------------
# Header aliases (normalized keys, most specific first)
# ---------------------------------------------------------------------------

DATE_KEYS: tuple[str, ...] = (
    "txn date",
    "transaction date",
    "value date",
    "value dt",
    "date",
    "posting date",
    "book date",
)
DESCRIPTION_KEYS: tuple[str, ...] = (
    "narration",
    "description",
    "desc",
    "remarks",
    "particulars",
    "transaction details",
    "details",
)
# Debit amount lookup also accepts a generic "amount" column (single-amount
# exports that carry a separate DR/CR marker). Known limitation: in the prefix
# pass "dr" also matches a "dr / cr" marker column, so a suffixed generic
# amount such as "amount (inr)" next to one resolves to the marker and parses
# as no amount. An exact "amount" header is found first and is unaffected.
DEBIT_KEYS: tuple[str, ...] = (
    "withdrawal amt.",
    "withdrawal",
    "debit amt.",
    "debit amount",
    "debit",
    "dr amt.",
    "dr",
    "amount",
    "amt",
)
# Debit-only columns used to infer direction when no DR/CR marker exists.
DEBIT_COLUMN_KEYS: tuple[str, ...] = DEBIT_KEYS[:-2]
CREDIT_KEYS: tuple[str, ...] = (
    "deposit amt.",
    "deposit",
    "credit amt.",
    "credit amount",
    "credit",
    "cr amt.",
    "cr",
)
GENERIC_AMOUNT_KEYS: tuple[str, ...] = ("amount", "amt")
DIRECTION_KEYS: tuple[str, ...] = (
    "dr / cr",
    "dr/cr",
    "drcr",
    "cr/dr",
    "txn type",
    "transaction type",
    "type",
)
REFERENCE_KEYS: tuple[str, ...] = (
    "ref no./cheque no.",
    "chq/ref no.",
    "chq / ref no.",
    "reference no.",
    "transaction id",
    "txn id",
)
BALANCE_KEYS: tuple[str, ...] = ("balance", "closing balance", "bal")
MODE_KEYS: tuple[str, ...] = ("transaction type", "type", "mode", "transaction mode")

_DEBIT_TOKENS = frozenset({"DR", "DEBIT"})
_CREDIT_TOKENS = frozenset({"CR", "CREDIT"})

_TRAILING_PUNCT_RE = re.compile(r"[.()]+$")


# ---------------------------------------------------------------------------
# Core lookup
# ---------------------------------------------------------------------------


def resolve(record: Mapping[str, Any], *keys: str) -> Any | None:
    """Return the value of the first alias present in ``record``.

    Pass 1 tries each key verbatim and skips ``None`` values. Pass 2 strips
    trailing ``.``/``(``/``)`` from each key and returns the value of the first
    record key (in record order) that starts with it. Returns ``None`` when
    nothing matches.
    """

    for k in keys:
        v = record.get(k)
        if v is not None:
            return v
    for k in keys:
        base = _TRAILING_PUNCT_RE.sub("", k).strip()
        if not base:
            continue
        for nk in record:
            if nk.startswith("__"):
                continue
            if nk.startswith(base):
                return record[nk]
    return None


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def parse_amount(value: Any) -> Decimal | None:
    """Parse a cell into a finite ``Decimal`` or return ``None``.

    Numbers pass through when finite; strings lose thousands separators and
    are parsed as decimals. Dates, booleans, and anything else yield ``None``.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, Real):
        try:
            d = Decimal(str(value))
        except InvalidOperation:
            return None
        return d if d.is_finite() else None
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        if not cleaned:
            return None
        try:
            d = Decimal(cleaned)
        except InvalidOperation:
            return None
        return d if d.is_finite() else None
    return None


def debit_amount(record: Mapping[str, Any]) -> Any | None:
    return resolve(record, *DEBIT_KEYS)


def credit_amount(record: Mapping[str, Any]) -> Any | None:
    return resolve(record, *CREDIT_KEYS)


def debit_value(record: Mapping[str, Any]) -> Decimal | None:
    return parse_amount(debit_amount(record))


def credit_value(record: Mapping[str, Any]) -> Decimal | None:
    """Parsed credit amount.

    Single-amount exports keep credits in the generic ``amount`` column with a
    CR marker; that column is used when no credit column resolves.
    """

    value = parse_amount(credit_amount(record))
    if value is None and explicit_direction(record) == "credit":
        value = parse_amount(resolve(record, *GENERIC_AMOUNT_KEYS))
    return value


def record_amount(record: Mapping[str, Any]) -> Decimal | None:
    """Return the first parseable of the debit and credit amounts."""

    value = debit_value(record)
    if value is None:
        value = credit_value(record)
    return value


# ---------------------------------------------------------------------------
# Direction
# ---------------------------------------------------------------------------


def direction_indicator(record: Mapping[str, Any]) -> str:
    """Return the upper-cased DR/CR (or transaction-type) marker, or ``""``."""

    for k in DIRECTION_KEYS:
        v = record.get(k)
        if v:
            return str(v).strip().upper()
    return ""


def explicit_direction(record: Mapping[str, Any]) -> Direction | None:
    # Type columns sometimes hold the payment mode ("UPI", "NEFT"); only
    # recognized DR/CR tokens count as an explicit direction.
    token = direction_indicator(record).rstrip(".")
    if token in _DEBIT_TOKENS:
        return "debit"
    if token in _CREDIT_TOKENS:
        return "credit"
    return None


def is_debit(record: Mapping[str, Any]) -> bool:
    explicit = explicit_direction(record)
    if explicit is not None:
        return explicit == "debit"
    value = parse_amount(resolve(record, *DEBIT_COLUMN_KEYS))
    return value is not None and value > 0


def is_credit(record: Mapping[str, Any]) -> bool:
    explicit = explicit_direction(record)
    if explicit is not None:
        return explicit == "credit"
    value = parse_amount(credit_amount(record))
    return value is not None and value > 0


def direction(record: Mapping[str, Any]) -> Direction:
    return "debit" if is_debit(record) else "credit"


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_EXCEL_EPOCH = datetime(1899, 12, 30)

_MONTHS: dict[str, int] = {
    m: i
    for i, m in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}

_ISO_RE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")
_DMY_RE = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{2,4})$")
_DMONY_RE = re.compile(r"^(\d{1,2})[-\s/]([A-Za-z]{3,9})[-\s/,]+(\d{2,4})$")
_TIME_SUFFIX_RE = re.compile(r"[\sT]+\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:\s*[AaPp][Mm])?$")


def _fmt_dmy(d: date) -> str:
    return f"{d.day:02d}/{d.month:02d}/{d.year}"


def excel_serial_to_date(serial: float) -> date | None:
    """Convert an Excel day serial (1899-12-30 epoch) to a calendar date."""

    try:
        return (_EXCEL_EPOCH + timedelta(milliseconds=round(serial * 86400 * 1000))).date()
    except (OverflowError, ValueError):
        return None


def _expand_year(y: str) -> str:
    # Two-digit years are taken as 20YY.
    return "20" + y if len(y) == 2 else y


def canonical_date(value: Any) -> str:
    """Normalize a date string to ``DD/MM/YYYY`` where a known form matches.

    Accepts ISO ``YYYY-MM-DD`` (or ``/``), ``DD-MM-YYYY``, ``DD/MM/YYYY``,
    ``DD.MM.YYYY`` with 2- or 4-digit years, and month-name forms such as
    ``25 Apr 2025`` or ``25-Apr-25``. A trailing time of day is ignored.
    Unrecognized text is returned trimmed; falsy input yields ``""``.
    """

    if not value:
        return ""
    s = str(value).strip()
    s_nt = _TIME_SUFFIX_RE.sub("", s).strip() or s

    m = _ISO_RE.match(s_nt)
    if m:
        return f"{m.group(3).zfill(2)}/{m.group(2).zfill(2)}/{m.group(1)}"
    m = _DMY_RE.match(s_nt)
    if m:
        return f"{m.group(1).zfill(2)}/{m.group(2).zfill(2)}/{_expand_year(m.group(3))}"
    m = _DMONY_RE.match(s_nt)
    if m:
        month = _MONTHS.get(m.group(2)[:3].lower())
        if month is not None:
            return f"{m.group(1).zfill(2)}/{month:02d}/{_expand_year(m.group(3))}"
    return s


def parse_canonical_date(value: str) -> date | None:
    """Parse a ``DD/MM/YYYY`` string into a ``date``; ``None`` when invalid."""

    parts = value.split("/") if value else []
    if len(parts) != 3:
        return None
    try:
        return date(int(parts[2]), int(parts[1]), int(parts[0]))
    except ValueError:
        return None


def tx_date(record: Mapping[str, Any]) -> str:
    """Resolved transaction date as ``DD/MM/YYYY`` (or cleaned text, or ``""``)."""

    raw = resolve(record, *DATE_KEYS)
    if raw is None or isinstance(raw, bool) or raw == "":
        return ""
    if isinstance(raw, datetime | date):
        return _fmt_dmy(raw)
    if isinstance(raw, Real):
        if raw > 1000:
            d = excel_serial_to_date(float(raw))
            return _fmt_dmy(d) if d is not None else ""
        return str(raw)
    return canonical_date(raw)


# ---------------------------------------------------------------------------
# Text fields
# ---------------------------------------------------------------------------


def tx_description(record: Mapping[str, Any]) -> str:
    raw = resolve(record, *DESCRIPTION_KEYS)
    if raw is None or raw == "":
        return ""
    return str(raw).strip()


def _text(record: Mapping[str, Any], keys: tuple[str, ...]) -> str:
    raw = resolve(record, *keys)
    return "" if raw is None else str(raw).strip()


def reference(record: Mapping[str, Any]) -> str:
    return _text(record, REFERENCE_KEYS)


def balance(record: Mapping[str, Any]) -> str:
    return _text(record, BALANCE_KEYS)


def mode(record: Mapping[str, Any]) -> str:
    return _text(record, MODE_KEYS)


def sources(record: Mapping[str, Any]) -> tuple[str, ...]:
    """Origin file names: merged ``__srcs`` when present, else ``__src``."""

    srcs = record.get("__srcs")
    if srcs:
        return tuple(srcs)
    src = record.get("__src")
    return (src,) if src else ()


__all__ = [
    "Direction",
    "DATE_KEYS",
    "DESCRIPTION_KEYS",
    "DEBIT_KEYS",
    "CREDIT_KEYS",
    "DIRECTION_KEYS",
    "resolve",
    "parse_amount",
    "debit_amount",
    "credit_amount",
    "debit_value",
    "credit_value",
    "record_amount",
    "direction_indicator",
    "explicit_direction",
    "is_debit",
    "is_credit",
    "direction",
    "excel_serial_to_date",
    "canonical_date",
    "parse_canonical_date",
    "tx_date",
    "tx_description",
    "reference",
    "balance",
    "mode",
    "sources",
]
