"""Summary/footer row detection shared by the CSV and spreadsheet adapters.

Banks append totals, balances, and disclaimers after the last transaction.
Matching is prefix-based so narrations that merely mention "total" or
"balance" further in are not mistaken for footers.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..columns import tx_description

FOOTER_KEYWORDS: tuple[str, ...] = (
    "statement summary",
    "opening balance",
    "closing balance",
    "generated on",
    "dr count",
    "cr count",
    "total debit",
    "total credit",
    "account summary",
    "note :",
    "note:",
    "disclaimer",
)


def starts_with_footer_keyword(text: str) -> bool:
    t = text.strip().lower()
    return any(t.startswith(kw) for kw in FOOTER_KEYWORDS)


def first_non_empty_cell(cells: Iterable[Any]) -> str:
    for c in cells:
        if c is None:
            continue
        s = str(c).strip()
        if s:
            return s
    return ""


def is_summary_record(record: Mapping[str, Any]) -> bool:
    """True when the description or the first non-empty value starts a footer."""

    if starts_with_footer_keyword(tx_description(record)):
        return True
    values = (v for k, v in record.items() if not k.startswith("__"))
    return starts_with_footer_keyword(first_non_empty_cell(values))


def is_summary_cells(cells: Iterable[Any]) -> bool:
    return starts_with_footer_keyword(first_non_empty_cell(cells))


__all__ = [
    "FOOTER_KEYWORDS",
    "is_summary_record",
    "is_summary_cells",
    "first_non_empty_cell",
    "starts_with_footer_keyword",
]
