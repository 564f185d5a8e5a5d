"""Recurring-payment and subscription detection.

Transactions are grouped by canonical merchant name, so ``NETFLIX.COM``,
``POS NETFLIX COM 998877`` and ``UPI-NETFLIX@OKSBI`` land in the same group.
A group is reported once it has two or more members. Groups whose merchant
or narration matches :data:`SUBSCRIPTION_PATTERNS` (streaming, SaaS, EMIs,
standing instructions) are flagged as subscriptions.

Members keep ledger order; ``last_date`` is the date of the final member as
given, not the maximum date.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from .columns import record_amount, sources, tx_date, tx_description
from .merchants import canonicalize_merchant
from .models import NormalizedRecord, Occurrence, RecurringGroup

SUBSCRIPTION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"netflix",
        r"spotify",
        r"hotstar",
        r"disney",
        r"prime\s*video",
        r"amazon\s*prime",
        r"youtube\s*premium",
        r"zee5",
        r"sonyliv",
        r"render\.com",
        r"github",
        r"notion",
        r"figma",
        r"openai",
        r"chatgpt",
        r"slack",
        r"\bzoom\b",
        r"google\s*(one|workspace)",
        r"microsoft\s*(365|office)",
        r"dropbox",
        r"net\s*banking\s*si",
        r"standing\s*instruct",
        r"si\s*[-–]\s*monthly",
        r"\bemi\b",
        r"loan\s*(emi|inst)",
    )
)


def is_likely_subscription(text: str | None) -> bool:
    if not text:
        return False
    return any(p.search(text) for p in SUBSCRIPTION_PATTERNS)


@dataclass
class _Bucket:
    first_raw: str
    subscription_raw: str | None = None
    occurrences: list[Occurrence] = field(default_factory=list)


def detect_recurring(ledger: Iterable[NormalizedRecord]) -> list[RecurringGroup]:
    """Group repeated payments by canonical merchant.

    Only records with a description and a positive amount take part. Groups
    are returned in order of their first member.
    """

    buckets: dict[str, _Bucket] = {}
    for record in ledger:
        raw = tx_description(record)
        amount = record_amount(record)
        if not raw or amount is None or amount <= 0:
            continue
        key = canonicalize_merchant(raw)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _Bucket(first_raw=raw)
        if bucket.subscription_raw is None and is_likely_subscription(raw):
            bucket.subscription_raw = raw
        bucket.occurrences.append(Occurrence(tx_date(record), amount, sources(record)))

    groups: list[RecurringGroup] = []
    for key, bucket in buckets.items():
        if len(bucket.occurrences) < 2:
            continue
        representative = bucket.subscription_raw or bucket.first_raw
        occurrences = tuple(bucket.occurrences)
        groups.append(
            RecurringGroup(
                canonical_merchant=key,
                representative_raw_description=representative,
                is_subscription=(
                    bucket.subscription_raw is not None or is_likely_subscription(key)
                ),
                occurrences=occurrences,
                total=sum((o.amount or Decimal(0) for o in occurrences), Decimal(0)),
                last_date=occurrences[-1].date,
            )
        )
    return groups


def estimated_monthly_subscription_spend(groups: Iterable[RecurringGroup]) -> Decimal:
    """Sum of the average payment of every subscription group."""

    return sum((g.average for g in groups if g.is_subscription), Decimal(0))


__all__ = [
    "SUBSCRIPTION_PATTERNS",
    "is_likely_subscription",
    "detect_recurring",
    "estimated_monthly_subscription_spend",
]
