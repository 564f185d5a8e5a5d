"""Summary statistics over a (de-duplicated) ledger.

Contract
--------
- Debits are records where :func:`~spendlens.columns.is_debit` holds and the
  debit amount is positive; credits likewise with the credit amount.
- Overall totals and counts include every resolved debit/credit regardless of
  whether its date parses. Monthly buckets and the date range only use
  records whose date is usable.
- Top merchants group debits by raw narration (``"Unknown"`` when blank) and
  report the canonical merchant name. Ties keep first-seen order.
- Monthly spend keeps the six most recent months, oldest first.
- Category spend classifies each debit with :func:`~spendlens.categories.classify`
  and is sorted by total, largest first.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from .categories import classify
from .columns import (
    balance,
    credit_value,
    debit_value,
    is_credit,
    is_debit,
    mode,
    parse_canonical_date,
    reference,
    sources,
    tx_date,
    tx_description,
)
from .merchants import canonicalize_merchant
from .models import (
    CategorySpend,
    CategoryTransaction,
    DateRange,
    LargestPayment,
    MerchantSpend,
    MonthlySpend,
    NormalizedRecord,
    Occurrence,
    Payment,
    Stats,
)

MONTH_NAMES: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

TOP_MERCHANTS = 5
MONTHS_SHOWN = 6

_ZERO = Decimal(0)


def debit_records(ledger: Iterable[NormalizedRecord]) -> list[tuple[NormalizedRecord, Decimal]]:
    """Debit records paired with their positive debit amount, in ledger order."""

    out: list[tuple[NormalizedRecord, Decimal]] = []
    for record in ledger:
        if not is_debit(record):
            continue
        amount = debit_value(record)
        if amount is not None and amount > 0:
            out.append((record, amount))
    return out


def credit_records(ledger: Iterable[NormalizedRecord]) -> list[tuple[NormalizedRecord, Decimal]]:
    out: list[tuple[NormalizedRecord, Decimal]] = []
    for record in ledger:
        if not is_credit(record):
            continue
        amount = credit_value(record)
        if amount is not None and amount > 0:
            out.append((record, amount))
    return out


def month_label(date_str: str) -> tuple[int, int, str] | None:
    """Return ``(year, month, "Mon YYYY")`` for a ``DD/MM/YYYY`` string."""

    parts = date_str.split("/") if date_str else []
    if len(parts) < 3:
        return None
    try:
        month = int(parts[1])
    except ValueError:
        return None
    year = "20" + parts[2] if len(parts[2]) == 2 else parts[2]
    if not 1 <= month <= 12 or not year.isdigit():
        return None
    return int(year), month, f"{MONTH_NAMES[month - 1]} {year}"


@dataclass
class _MerchantBucket:
    total: Decimal = _ZERO
    transactions: list[Occurrence] = field(default_factory=list)


@dataclass
class _CategoryBucket:
    emoji: str
    color: str
    total: Decimal = _ZERO
    transactions: list[CategoryTransaction] = field(default_factory=list)


def _largest(debits: list[tuple[NormalizedRecord, Decimal]]) -> LargestPayment:
    best = LargestPayment(_ZERO, "")
    for record, amount in debits:
        # Strict comparison: the first of equal amounts wins.
        if amount > best.amount:
            best = LargestPayment(amount, canonicalize_merchant(tx_description(record)))
    return best


def _top_merchants(debits: list[tuple[NormalizedRecord, Decimal]]) -> tuple[MerchantSpend, ...]:
    buckets: dict[str, _MerchantBucket] = {}
    for record, amount in debits:
        name = tx_description(record) or "Unknown"
        bucket = buckets.setdefault(name, _MerchantBucket())
        bucket.total += amount
        bucket.transactions.append(Occurrence(tx_date(record), amount, sources(record)))
    ranked = sorted(buckets.items(), key=lambda kv: kv[1].total, reverse=True)
    return tuple(
        MerchantSpend(canonicalize_merchant(name), b.total, tuple(b.transactions))
        for name, b in ranked[:TOP_MERCHANTS]
    )


def _monthly_spend(debits: list[tuple[NormalizedRecord, Decimal]]) -> tuple[MonthlySpend, ...]:
    totals: dict[tuple[int, int], tuple[str, Decimal]] = {}
    for record, amount in debits:
        parsed = month_label(tx_date(record))
        if parsed is None:
            continue
        year, month, label = parsed
        prev = totals.get((year, month), (label, _ZERO))[1]
        totals[(year, month)] = (label, prev + amount)
    recent = sorted(totals.items())[-MONTHS_SHOWN:]
    return tuple(MonthlySpend(label, total) for _, (label, total) in recent)


def _category_spend(debits: list[tuple[NormalizedRecord, Decimal]]) -> tuple[CategorySpend, ...]:
    buckets: dict[str, _CategoryBucket] = {}
    for record, amount in debits:
        desc = tx_description(record)
        category = classify(desc, amount)
        bucket = buckets.get(category.name)
        if bucket is None:
            bucket = buckets[category.name] = _CategoryBucket(category.emoji, category.color)
        bucket.total += amount
        bucket.transactions.append(
            CategoryTransaction(
                date=tx_date(record),
                amount=amount,
                display_name=canonicalize_merchant(desc),
                description=desc,
                srcs=sources(record),
            )
        )
    ranked = sorted(buckets.items(), key=lambda kv: kv[1].total, reverse=True)
    return tuple(
        CategorySpend(name, b.emoji, b.color, b.total, tuple(b.transactions)) for name, b in ranked
    )


def date_range(ledger: Iterable[NormalizedRecord]) -> DateRange | None:
    dates: list[date] = []
    for record in ledger:
        parsed = parse_canonical_date(tx_date(record))
        if parsed is not None:
            dates.append(parsed)
    if not dates:
        return None
    return DateRange(min(dates), max(dates))


def aggregate(ledger: Iterable[NormalizedRecord]) -> Stats:
    """Compute :class:`~spendlens.models.Stats` for ``ledger``."""

    records = list(ledger)
    debits = debit_records(records)
    credits = credit_records(records)

    total_debited = sum((a for _, a in debits), _ZERO)
    total_credited = sum((a for _, a in credits), _ZERO)

    return Stats(
        total_debited=total_debited,
        total_credited=total_credited,
        debit_count=len(debits),
        credit_count=len(credits),
        average_debit=total_debited / len(debits) if debits else _ZERO,
        largest_payment=_largest(debits),
        top_merchants=_top_merchants(debits),
        monthly_spend=_monthly_spend(debits),
        category_spend=_category_spend(debits),
        date_range=date_range(records),
    )


def largest_payments(ledger: Iterable[NormalizedRecord], limit: int = 5) -> list[Payment]:
    """The ``limit`` largest debits, largest first; equal amounts keep ledger order."""

    ranked = sorted(debit_records(ledger), key=lambda ra: ra[1], reverse=True)
    payments: list[Payment] = []
    for record, amount in ranked[: max(limit, 0)]:
        desc = tx_description(record)
        payments.append(
            Payment(
                description=desc,
                display_name=canonicalize_merchant(desc),
                category=classify(desc, amount),
                amount=amount,
                date=tx_date(record),
                reference=reference(record),
                balance=balance(record),
                type=mode(record),
                srcs=sources(record),
            )
        )
    return payments


__all__ = [
    "MONTH_NAMES",
    "debit_records",
    "credit_records",
    "month_label",
    "date_range",
    "aggregate",
    "largest_payments",
]
