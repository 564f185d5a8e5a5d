from datetime import date, datetime
from decimal import Decimal

import pytest

from spendlens.columns import (
    balance,
    canonical_date,
    credit_value,
    debit_value,
    direction,
    excel_serial_to_date,
    is_credit,
    is_debit,
    parse_amount,
    parse_canonical_date,
    record_amount,
    reference,
    resolve,
    sources,
    tx_date,
    tx_description,
)


def test_resolve_exact_match_respects_priority():
    rec = {"value date": "02/04/2025", "txn date": "01/04/2025"}
    assert resolve(rec, "txn date", "value date") == "01/04/2025"


def test_resolve_prefix_fallback_for_suffixed_headers():
    rec = {"withdrawal amt. (inr)": "500.00"}
    assert resolve(rec, "withdrawal amt.") == "500.00"


def test_resolve_missing_returns_none():
    assert resolve({"foo": "1"}, "date", "txn date") is None


def test_resolve_ignores_reserved_keys_in_prefix_pass():
    assert resolve({"__src": "a.csv"}, "__s") is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1,234.50", Decimal("1234.50")),
        (" 500 ", Decimal("500")),
        (199, Decimal("199")),
        (12.5, Decimal("12.5")),
        ("", None),
        ("abc", None),
        (float("nan"), None),
        (float("inf"), None),
        (True, None),
        (None, None),
    ],
)
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


def test_canonical_date_forms_agree():
    assert canonical_date("2025-04-25") == "25/04/2025"
    assert canonical_date("25/04/2025") == "25/04/2025"
    assert canonical_date("25-04-25") == "25/04/2025"
    assert canonical_date("25.04.2025") == "25/04/2025"


def test_canonical_date_month_names_and_time_suffix():
    assert canonical_date("25 Apr 2025") == "25/04/2025"
    assert canonical_date("5-Apr-25") == "05/04/2025"
    assert canonical_date("25/04/2025 14:32:10") == "25/04/2025"


def test_canonical_date_unknown_and_empty():
    assert canonical_date("yesterday ") == "yesterday"
    assert canonical_date("") == ""
    assert canonical_date(None) == ""


def test_parse_canonical_date():
    assert parse_canonical_date("25/04/2025") == date(2025, 4, 25)
    assert parse_canonical_date("31/02/2025") is None
    assert parse_canonical_date("garbage") is None


def test_excel_serial_dates():
    assert excel_serial_to_date(45772) == date(2025, 4, 25)
    assert tx_date({"date": 45772}) == "25/04/2025"


def test_tx_date_from_datetime_and_text():
    assert tx_date({"txn date": datetime(2025, 4, 1, 10, 30)}) == "01/04/2025"
    assert tx_date({"value date": "2025-04-01"}) == "01/04/2025"
    assert tx_date({"narration": "x"}) == ""


def test_withdrawal_without_direction_column_is_debit():
    rec = {"withdrawal amt.": "500", "deposit amt.": "", "narration": "ATM"}
    assert is_debit(rec)
    assert not is_credit(rec)
    assert direction(rec) == "debit"
    assert debit_value(rec) == Decimal("500")


def test_deposit_without_direction_column_is_credit():
    rec = {"withdrawal amt.": "", "deposit amt.": "2,000.00"}
    assert not is_debit(rec)
    assert is_credit(rec)
    assert credit_value(rec) == Decimal("2000.00")


def test_explicit_direction_is_trusted():
    rec = {"amount": "750", "dr / cr": "cr"}
    assert direction(rec) == "credit"
    assert credit_value(rec) == Decimal("750")
    assert record_amount(rec) == Decimal("750")

    rec = {"amount": "750", "type": "Debit"}
    assert direction(rec) == "debit"
    assert debit_value(rec) == Decimal("750")


def test_dr_alias_prefix_matches_marker_column_before_suffixed_amount():
    rec = {"amount (inr)": "500", "dr / cr": "DR"}
    assert resolve(rec, "dr", "amount") == "DR"
    assert direction(rec) == "debit"
    assert debit_value(rec) is None
    assert record_amount(rec) is None


def test_mode_in_type_column_falls_back_to_inference():
    rec = {"withdrawal": "120", "deposit": "", "type": "UPI"}
    assert direction(rec) == "debit"


def test_text_accessors():
    rec = {
        "narration": "  NEFT-ACME  ",
        "chq/ref no.": "REF123",
        "closing balance": "9,000.00",
        "__src": "a.csv",
    }
    assert tx_description(rec) == "NEFT-ACME"
    assert reference(rec) == "REF123"
    assert balance(rec) == "9,000.00"
    assert sources(rec) == ("a.csv",)
    assert sources({**rec, "__srcs": ["a.csv", "b.csv"]}) == ("a.csv", "b.csv")
