"""CLI for the ``spendlens`` package.

Command handlers (``cmd_summary``, ``cmd_recurring``, ``cmd_export``) take
statement paths and return a process exit code; the Typer app below wraps
them. Environment variables (``SPENDLENS_*``) are loaded from a local ``.env``
with ``python-dotenv`` before any command runs. Analytics live in the library
modules; this file only loads files, prints, and writes.
"""

from __future__ import annotations

import csv
import json
import sys
from collections.abc import Sequence
from dataclasses import asdict
from decimal import Decimal
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo, OptionInfo

from .ingest.batch import load_statements
from .categories import category_rules_path, load_category_rules
from .ledger import (
    CATEGORY_COLUMNS,
    EXPORT_COLUMNS,
    MONTHLY_COLUMNS,
    RECURRING_COLUMNS,
    build_ledger,
    category_rows,
    export_rows,
    monthly_rows,
    recurring_rows,
)
from .logging_setup import configure_logging
from .models import NormalizedRecord, RecurringGroup, Stats
from .recurring import detect_recurring, estimated_monthly_subscription_spend
from .stats import aggregate, largest_payments


def _money(value: Decimal) -> str:
    return f"₹{value:,.2f}"


def _load_ledger(paths: Sequence[Path]) -> list[NormalizedRecord] | None:
    """Load ``paths`` and build the ledger; ``None`` when no file loaded.

    Per-file failures are reported on stderr and do not stop the others.
    """

    result = load_statements(paths)
    for err in result.errors:
        print(f'Error: "{err.name}": {err.message}', file=sys.stderr)
    if not result.files:
        print("Error: no statement could be loaded.", file=sys.stderr)
        return None
    return build_ledger(result.files)


def _print_stats(stats: Stats, groups: Sequence[RecurringGroup]) -> None:
    print(f"Total debited:  {_money(stats.total_debited)} ({stats.debit_count} payments)")
    print(f"Total credited: {_money(stats.total_credited)} ({stats.credit_count} credits)")
    print(f"Average debit:  {_money(stats.average_debit)}")
    if stats.largest_payment.amount > 0:
        lp = stats.largest_payment
        print(f"Largest debit:  {_money(lp.amount)} {lp.description}")
    if stats.date_range is not None:
        print(f"Period:         {stats.date_range.label} ({stats.date_range.days} days)")

    if stats.category_spend:
        print()
        print("By category:")
        for c in stats.category_spend:
            print(f"  {c.emoji} {c.name:<20} {_money(c.total):>16}  x{len(c.transactions)}")
    if stats.top_merchants:
        print()
        print("Top merchants:")
        for m in stats.top_merchants:
            print(f"  {m.name:<32} {_money(m.total):>16}")
    if stats.monthly_spend:
        print()
        print("Monthly spend:")
        for ms in stats.monthly_spend:
            print(f"  {ms.month:<10} {_money(ms.total):>16}")
    if groups:
        print()
        _print_recurring(groups)


def _print_recurring(groups: Sequence[RecurringGroup]) -> None:
    print("Recurring payments:")
    for g in groups:
        tag = "subscription" if g.is_subscription else "recurring"
        print(
            f"  {g.canonical_merchant:<28} x{g.count:<3} {_money(g.total):>14}"
            f"  last {g.last_date or '-'}  [{tag}]"
        )
    monthly = estimated_monthly_subscription_spend(groups)
    if monthly > 0:
        print(f"Estimated monthly subscriptions: {_money(monthly)}")


def _json_default(value: Any) -> str:
    # Decimal amounts and dates
    return str(value)


def _summary_document(
    stats: Stats, groups: Sequence[RecurringGroup], ledger: Sequence[NormalizedRecord]
) -> dict[str, Any]:
    doc = asdict(stats)
    if stats.date_range is not None:
        doc["date_range"]["days"] = stats.date_range.days
        doc["date_range"]["label"] = stats.date_range.label
    doc["transaction_count"] = len(ledger)
    doc["largest_payments"] = [asdict(p) for p in largest_payments(ledger)]
    doc["recurring"] = [{**asdict(g), "count": g.count, "average": g.average} for g in groups]
    doc["estimated_monthly_subscription_spend"] = estimated_monthly_subscription_spend(groups)
    return doc


def cmd_summary(paths: Sequence[Path], *, as_json: bool = False) -> int:
    ledger = _load_ledger(paths)
    if ledger is None:
        return 1
    stats = aggregate(ledger)
    groups = detect_recurring(ledger)
    if as_json:
        doc = _summary_document(stats, groups, ledger)
        print(json.dumps(doc, indent=2, ensure_ascii=False, default=_json_default))
    else:
        print(f"Transactions:   {len(ledger)}")
        _print_stats(stats, groups)
    return 0


def cmd_recurring(paths: Sequence[Path]) -> int:
    ledger = _load_ledger(paths)
    if ledger is None:
        return 1
    groups = detect_recurring(ledger)
    if not groups:
        print("No recurring payments found.")
        return 0
    _print_recurring(groups)
    return 0


class ExportSheet(StrEnum):
    TRANSACTIONS = "transactions"
    CATEGORIES = "categories"
    RECURRING = "recurring"
    MONTHLY = "monthly"


def _sheet_rows(
    ledger: Sequence[NormalizedRecord], sheet: ExportSheet
) -> tuple[Sequence[str], list[dict[str, Any]]]:
    match sheet:
        case ExportSheet.CATEGORIES:
            return CATEGORY_COLUMNS, category_rows(aggregate(ledger).category_spend)
        case ExportSheet.RECURRING:
            return RECURRING_COLUMNS, recurring_rows(detect_recurring(ledger))
        case ExportSheet.MONTHLY:
            return MONTHLY_COLUMNS, monthly_rows(aggregate(ledger).monthly_spend)
        case _:
            return EXPORT_COLUMNS, export_rows(ledger)


def cmd_export(
    paths: Sequence[Path], output: Path, *, sheet: ExportSheet = ExportSheet.TRANSACTIONS
) -> int:
    """Write one export sheet as UTF-8 CSV with a BOM (Excel-friendly).

    ``transactions`` is the flat ledger; ``categories``, ``recurring`` and
    ``monthly`` are the summary sheets.
    """

    ledger = _load_ledger(paths)
    if ledger is None:
        return 1
    fieldnames, rows = _sheet_rows(ledger, sheet)
    try:
        with output.open("w", encoding="utf-8-sig", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=list(fieldnames))
            writer.writeheader()
            writer.writerows(rows)
    except OSError as e:
        print(f"Error: could not write '{output}': {e}", file=sys.stderr)
        return 1
    print(f"Wrote {len(rows)} {sheet.value} rows to {output}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Analyze bank statement exports (.csv, .xlsx, .xls): spending by category, "
        "recurring payments, and a normalized transaction export."
    ),
)

# Module-level argument/option objects keep calls out of parameter defaults (ruff B008).
FILES_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Statement files to load, in order.",
    dir_okay=False,
    file_okay=True,
    exists=False,  # missing files are reported per file by the loader
)
JSON_OPTION: OptionInfo = typer.Option("--json", help="Emit a JSON document.")
OUTPUT_OPTION: OptionInfo = typer.Option(
    "--output", "-o", help="Destination CSV path.", dir_okay=False
)
SHEET_OPTION: OptionInfo = typer.Option(
    "--sheet", help="Which sheet to export.", case_sensitive=False
)
LOG_LEVEL_OPTION: OptionInfo = typer.Option(
    "--log-level", help="Log level (name or number); overrides SPENDLENS_LOG_LEVEL."
)


@app.command("summary")
def summary_cmd(
    files: Annotated[list[Path], FILES_ARGUMENT],
    as_json: Annotated[bool, JSON_OPTION] = False,
) -> None:
    """Print totals, categories, top merchants, monthly spend and recurring payments."""

    raise typer.Exit(cmd_summary(files, as_json=as_json))


@app.command("recurring")
def recurring_cmd(files: Annotated[list[Path], FILES_ARGUMENT]) -> None:
    """List merchants paid two or more times."""

    raise typer.Exit(cmd_recurring(files))


@app.command("export")
def export_cmd(
    files: Annotated[list[Path], FILES_ARGUMENT],
    output: Annotated[Path, OUTPUT_OPTION] = Path("transactions.csv"),
    sheet: Annotated[ExportSheet, SHEET_OPTION] = ExportSheet.TRANSACTIONS,
) -> None:
    """Export the de-duplicated ledger, or one of its summary sheets, as CSV."""

    raise typer.Exit(cmd_export(files, output, sheet=sheet))


@app.callback()
def _root(log_level: Annotated[str | None, LOG_LEVEL_OPTION] = None) -> None:
    """Load ``.env``, configure logging and check the category rules file."""

    # override=False keeps variables already set in the environment
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)

    rules_path = category_rules_path()
    if rules_path is not None:
        try:
            load_category_rules(rules_path)
        except (OSError, ValueError) as e:
            print(f"Error: invalid category rules file '{rules_path}': {e}", file=sys.stderr)
            raise typer.Exit(2) from e


if __name__ == "__main__":  # pragma: no cover
    app()
