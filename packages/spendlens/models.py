"""Data models and type aliases for ``spendlens``.

Statement rows keep the bank's own headers, so a record is an open mapping
rather than a fixed schema; :mod:`spendlens.columns` resolves semantic fields
on top of it. Everything derived from records (transactions, recurring
groups, statistics) is an immutable value recomputed from the loaded files.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

type NormalizedRecord = dict[str, Any]
"""A statement row keyed by normalized header names.

Reserved keys
-------------
- ``__src``: name of the file the row was read from.
- ``__srcs``: ordered, de-duplicated names of every file the row appeared in
  (populated by the loader and extended during cross-file de-duplication).
"""

type Direction = Literal["debit", "credit"]


# ---------------------------------------------------------------------------
# Per-transaction views
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Category:
    name: str
    emoji: str
    color: str


@dataclass(frozen=True, slots=True)
class Transaction:
    """Derived view of one ledger record.

    ``amount`` is non-negative, or ``None`` when no numeric amount column
    resolves. ``date`` is ``DD/MM/YYYY`` when it could be recognized.
    """

    date: str
    description: str
    display_merchant: str
    amount: Decimal | None
    direction: Direction
    category: Category
    sources: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Occurrence:
    date: str
    amount: Decimal | None
    srcs: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RecurringGroup:
    """Two or more payments to the same canonical merchant."""

    canonical_merchant: str
    representative_raw_description: str
    is_subscription: bool
    occurrences: tuple[Occurrence, ...]
    total: Decimal
    last_date: str

    @property
    def count(self) -> int:
        return len(self.occurrences)

    @property
    def average(self) -> Decimal:
        return self.total / max(self.count, 1)


@dataclass(frozen=True, slots=True)
class CategoryTransaction:
    date: str
    amount: Decimal
    display_name: str
    description: str
    srcs: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CategorySpend:
    name: str
    emoji: str
    color: str
    total: Decimal
    transactions: tuple[CategoryTransaction, ...]


@dataclass(frozen=True, slots=True)
class MerchantSpend:
    name: str
    total: Decimal
    transactions: tuple[Occurrence, ...]


@dataclass(frozen=True, slots=True)
class MonthlySpend:
    month: str
    total: Decimal


@dataclass(frozen=True, slots=True)
class DateRange:
    start: date
    end: date

    @property
    def days(self) -> int:
        # Inclusive of both ends.
        return (self.end - self.start).days + 1

    @property
    def label(self) -> str:
        return f"{self.start:%d %b %Y} - {self.end:%d %b %Y}"


@dataclass(frozen=True, slots=True)
class LargestPayment:
    amount: Decimal
    description: str


@dataclass(frozen=True, slots=True)
class Payment:
    description: str
    display_name: str
    category: Category
    amount: Decimal
    date: str
    reference: str
    balance: str
    type: str
    srcs: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Stats:
    total_debited: Decimal
    total_credited: Decimal
    debit_count: int
    credit_count: int
    average_debit: Decimal
    largest_payment: LargestPayment
    top_merchants: tuple[MerchantSpend, ...]
    monthly_spend: tuple[MonthlySpend, ...]
    category_spend: tuple[CategorySpend, ...]
    date_range: DateRange | None


# ---------------------------------------------------------------------------
# Batch loading
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LoadedFile:
    name: str
    records: tuple[NormalizedRecord, ...]


@dataclass(frozen=True, slots=True)
class FileError:
    name: str
    kind: str
    message: str


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Outcome of loading a batch of statement files.

    ``files`` keeps input order and contains only files that parsed
    completely; ``errors`` holds one entry per rejected or failed file.
    """

    files: tuple[LoadedFile, ...] = ()
    errors: tuple[FileError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


__all__ = [
    "NormalizedRecord",
    "Direction",
    "Category",
    "Transaction",
    "Occurrence",
    "RecurringGroup",
    "CategoryTransaction",
    "CategorySpend",
    "MerchantSpend",
    "MonthlySpend",
    "DateRange",
    "LargestPayment",
    "Payment",
    "Stats",
    "LoadedFile",
    "FileError",
    "LoadResult",
]
