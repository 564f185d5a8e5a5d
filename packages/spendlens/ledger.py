"""Ledger assembly, per-transaction views, and export projections.

The ledger is the concatenation of every loaded file's records in the order
the files were added, de-duplicated when more than one file contributes.
Everything downstream (transactions, stats, recurring groups, exports) is
recomputed from it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .categories import classify
from .columns import (
    credit_value,
    debit_value,
    direction,
    sources,
    tx_date,
    tx_description,
)
from .duplicates import dedupe
from .merchants import canonicalize_merchant
from .models import (
    CategorySpend,
    LoadedFile,
    MonthlySpend,
    NormalizedRecord,
    RecurringGroup,
    Transaction,
)

EXPORT_COLUMNS: tuple[str, ...] = (
    "Date",
    "Description",
    "Merchant",
    "Category",
    "Amount",
    "Type",
    "Source",
)
CATEGORY_COLUMNS: tuple[str, ...] = (
    "Category",
    "Total Spent (₹)",
    "Transactions",
    "Avg per Transaction (₹)",
)
RECURRING_COLUMNS: tuple[str, ...] = (
    "Merchant",
    "Type",
    "Occurrences",
    "Total Paid (₹)",
    "Avg per Occurrence (₹)",
    "Last Date",
)
MONTHLY_COLUMNS: tuple[str, ...] = ("Month", "Total Spent (₹)")

_CENTS = Decimal("0.01")


def _money(value: Decimal | None) -> Decimal:
    return (value or Decimal(0)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def build_ledger(files: Sequence[LoadedFile]) -> list[NormalizedRecord]:
    flat = [record for f in files for record in f.records]
    if len(files) > 1:
        return dedupe(flat)
    return flat


def to_transaction(record: NormalizedRecord) -> Transaction:
    """Derive the :class:`Transaction` view of a ledger record."""

    desc = tx_description(record)
    dir_ = direction(record)
    amount = debit_value(record) if dir_ == "debit" else credit_value(record)
    if amount is not None:
        amount = abs(amount)
    return Transaction(
        date=tx_date(record),
        description=desc,
        display_merchant=canonicalize_merchant(desc),
        amount=amount,
        direction=dir_,
        category=classify(desc, amount),
        sources=sources(record),
    )


def export_rows(ledger: Iterable[NormalizedRecord]) -> list[dict[str, Any]]:
    """Flat transaction rows for CSV/spreadsheet export.

    Amount is rounded to two decimals (missing amounts export as ``0.00``).
    Rows with neither a date nor a description are left out.
    """

    rows: list[dict[str, Any]] = []
    for record in ledger:
        tx = to_transaction(record)
        if not tx.date and not tx.description:
            continue
        rows.append(
            {
                "Date": tx.date,
                "Description": tx.description,
                "Merchant": tx.display_merchant,
                "Category": tx.category.name,
                "Amount": _money(tx.amount),
                "Type": "Debit" if tx.direction == "debit" else "Credit",
                "Source": record.get("__src") or "",
            }
        )
    return rows


def category_rows(spend: Iterable[CategorySpend]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for c in spend:
        count = len(c.transactions)
        rows.append(
            {
                "Category": f"{c.emoji} {c.name}",
                "Total Spent (₹)": _money(c.total),
                "Transactions": count,
                "Avg per Transaction (₹)": _money(c.total / max(count, 1)),
            }
        )
    return rows


def recurring_rows(groups: Iterable[RecurringGroup]) -> list[dict[str, Any]]:
    return [
        {
            "Merchant": g.canonical_merchant,
            "Type": "Subscription / EMI" if g.is_subscription else "Recurring",
            "Occurrences": g.count,
            "Total Paid (₹)": _money(g.total),
            "Avg per Occurrence (₹)": _money(g.average),
            "Last Date": g.last_date,
        }
        for g in groups
    ]


def monthly_rows(monthly: Iterable[MonthlySpend]) -> list[dict[str, Any]]:
    return [{"Month": m.month, "Total Spent (₹)": _money(m.total)} for m in monthly]


__all__ = [
    "EXPORT_COLUMNS",
    "CATEGORY_COLUMNS",
    "RECURRING_COLUMNS",
    "MONTHLY_COLUMNS",
    "build_ledger",
    "to_transaction",
    "export_rows",
    "category_rows",
    "recurring_rows",
    "monthly_rows",
]
