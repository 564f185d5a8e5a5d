"""Adapter for delimited-text (``.csv``) bank statement exports.

Contract
--------
- Input is UTF-8 text (a leading BOM is tolerated) with the header on the
  first line, comma-delimited, RFC 4180 quoting (embedded commas, quotes and
  newlines inside quoted fields).
- Rows may be shorter or longer than the header: missing cells read as
  ``""`` and surplus cells are dropped.
- Every row is normalized with :func:`spendlens.keys.build_norm`.
- The row sequence is truncated at the first summary/footer row; that row and
  everything after it is discarded so bank totals never reach the ledger.

Failure mode
------------
Undecodable bytes or a malformed CSV stream raise
:class:`~spendlens.errors.UnparsableFileError`.
"""

from __future__ import annotations

import csv
import io

from ...errors import UnparsableFileError
from ...keys import build_norm
from ...logging_setup import get_logger
from ...models import NormalizedRecord
from ..footer import is_summary_record

_logger = get_logger("spendlens.ingest.csv")


def _read_csv_rows(csv_text: str) -> list[dict[str, str]]:
    with io.StringIO(csv_text, newline="") as f:
        reader = csv.DictReader(f, restval="")
        rows: list[dict[str, str]] = []
        for row in reader:
            # DictReader collects surplus cells under a ``None`` key; drop them.
            rows.append({k: (v if v is not None else "") for k, v in row.items() if k is not None})
        return rows


def parse_csv_text(csv_text: str, *, filename: str | None = None) -> list[NormalizedRecord]:
    """Parse CSV text into normalized records, stopping at the first footer row."""

    try:
        rows = _read_csv_rows(csv_text)
    except csv.Error as e:
        raise UnparsableFileError(f"Failed to parse CSV: {e}", filename=filename) from e

    records: list[NormalizedRecord] = []
    for pos, row in enumerate(rows):
        norm = build_norm(row)
        if is_summary_record(norm):
            _logger.debug(
                "ingest:csv_footer name=%s row=%d dropped=%d",
                filename,
                pos,
                len(rows) - pos,
            )
            break
        records.append(norm)
    return records


def parse_csv_bytes(data: bytes, *, filename: str | None = None) -> list[NormalizedRecord]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UnparsableFileError(
            f"File is not valid UTF-8 text: {e.reason}", filename=filename
        ) from e
    return parse_csv_text(text, filename=filename)


__all__ = ["parse_csv_text", "parse_csv_bytes"]
