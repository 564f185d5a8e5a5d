"""Adapter for spreadsheet (``.xlsx`` / ``.xls``) bank statement exports.

Spreadsheet exports usually carry a bank letterhead, account details and a
blank row or two above the real column header, and a summary block below the
last transaction. The first sheet is therefore read as a raw grid (no assumed
header position) and the header row is discovered heuristically:

- a row qualifies when it has a date-like cell (contains ``date`` or
  ``value``) and an amount-like cell (``amount``, ``withdrawal``,
  ``deposit``, ``debit``, ``credit``), or
- when at least three of :data:`HEADER_KEYWORDS` occur among its cells.

Rows after the header are data until the first footer row. Data rows without
both a resolvable date and a description are dropped as noise.
"""

from __future__ import annotations

import io
import math
from collections.abc import Sequence
from typing import Any

import pandas as pd

from ...columns import tx_date, tx_description
from ...errors import HeaderNotFoundError, UnparsableFileError
from ...keys import build_norm, normalize_key, normalize_value
from ...logging_setup import get_logger
from ...models import NormalizedRecord
from ..footer import is_summary_cells

HEADER_KEYWORDS: tuple[str, ...] = (
    "narration",
    "description",
    "desc",
    "amount",
    "withdrawal",
    "deposit",
    "date",
    "value",
    "transaction",
    "dr",
    "cr",
)
_DATE_HINTS: tuple[str, ...] = ("date", "value")
_AMOUNT_HINTS: tuple[str, ...] = ("amount", "withdrawal", "deposit", "debit", "credit")

_ENGINES: dict[str, str] = {"xlsx": "openpyxl", "xls": "xlrd"}

_logger = get_logger("spendlens.ingest.spreadsheet")


def _header_cell(cell: Any) -> str:
    if cell is None or cell == "" or cell == 0:
        return ""
    return normalize_key(str(cell))


def _is_header_row(row: Sequence[Any]) -> bool:
    cells = [_header_cell(c) for c in row]
    has_date = any(h in c for c in cells for h in _DATE_HINTS)
    has_amount = any(h in c for c in cells for h in _AMOUNT_HINTS)
    if has_date and has_amount:
        return True
    matches = sum(1 for kw in HEADER_KEYWORDS if any(kw in c for c in cells))
    return matches >= 3


def find_header_row(rows: Sequence[Sequence[Any]], *, filename: str | None = None) -> int:
    """Return the index of the first header-like row.

    Raises :class:`HeaderNotFoundError` when no row in the grid qualifies.
    """

    for i, row in enumerate(rows):
        if _is_header_row(row):
            return i
    raise HeaderNotFoundError("Could not find header row in spreadsheet.", filename=filename)


def parse_grid(
    rows: Sequence[Sequence[Any]], *, filename: str | None = None
) -> list[NormalizedRecord]:
    """Convert a raw sheet grid into normalized transaction records."""

    header_idx = find_header_row(rows, filename=filename)
    headers = [normalize_key(h) for h in rows[header_idx]]

    data_rows = list(rows[header_idx + 1 :])
    end = len(data_rows)
    for i, row in enumerate(data_rows):
        if is_summary_cells(row):
            end = i
            break

    records: list[NormalizedRecord] = []
    dropped = 0
    for row in data_rows[:end]:
        obj = {h: normalize_value(row[i] if i < len(row) else "") for i, h in enumerate(headers)}
        norm = build_norm(obj)
        if not tx_date(norm) or not tx_description(norm):
            dropped += 1
            continue
        records.append(norm)

    _logger.debug(
        "ingest:grid_parsed name=%s header_row=%d kept=%d dropped=%d footer_cut=%d",
        filename,
        header_idx,
        len(records),
        dropped,
        len(data_rows) - end,
    )
    return records


def _cell(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def read_first_sheet(data: bytes, *, ext: str, filename: str | None = None) -> list[list[Any]]:
    """Read the first worksheet of a workbook as a list of cell rows."""

    engine = _ENGINES.get(ext.lower())
    try:
        frame = pd.read_excel(
            io.BytesIO(data), sheet_name=0, header=None, dtype=object, engine=engine
        )
    except Exception as e:  # noqa: BLE001 - reader errors vary by engine
        raise UnparsableFileError(f"Failed to read spreadsheet: {e}", filename=filename) from e
    return [[_cell(v) for v in row] for row in frame.itertuples(index=False, name=None)]


def parse_spreadsheet_bytes(
    data: bytes, *, ext: str, filename: str | None = None
) -> list[NormalizedRecord]:
    return parse_grid(read_first_sheet(data, ext=ext, filename=filename), filename=filename)


__all__ = [
    "HEADER_KEYWORDS",
    "find_header_row",
    "parse_grid",
    "read_first_sheet",
    "parse_spreadsheet_bytes",
]
