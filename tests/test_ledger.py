from decimal import Decimal

from spendlens.ledger import (
    build_ledger,
    category_rows,
    export_rows,
    monthly_rows,
    recurring_rows,
    to_transaction,
)
from spendlens.models import LoadedFile
from spendlens.recurring import detect_recurring
from spendlens.stats import aggregate


def _rec(d, desc, debit="", credit="", src="a.csv"):
    return {
        "date": d,
        "narration": desc,
        "withdrawal amt.": debit,
        "deposit amt.": credit,
        "__src": src,
        "__srcs": [src],
    }


def test_transaction_view():
    tx = to_transaction(_rec("2025-04-01", "UPI-SWIGGY-SWIGGY8@YBL", debit="450.50"))
    assert tx.date == "01/04/2025"
    assert tx.display_merchant == "Swiggy"
    assert tx.amount == Decimal("450.50")
    assert tx.direction == "debit"
    assert tx.category.name == "Food & Dining"
    assert tx.sources == ("a.csv",)


def test_transaction_without_amount_has_none():
    tx = to_transaction({"date": "01/04/2025", "narration": "MEMO LINE"})
    assert tx.amount is None
    assert tx.direction == "credit"


def test_negative_amounts_are_reported_as_magnitudes():
    tx = to_transaction(
        {"date": "01/04/2025", "narration": "REVERSAL", "amount": "-120", "dr/cr": "DR"}
    )
    assert tx.amount == Decimal("120")


def test_single_file_ledger_is_not_deduplicated():
    rows = (_rec("01/04/2025", "ZOMATO", "300"), _rec("01/04/2025", "ZOMATO", "300"))
    assert len(build_ledger([LoadedFile("a.csv", rows)])) == 2


def test_multi_file_ledger_is_deduplicated_in_file_order():
    a = LoadedFile("a.csv", (_rec("01/04/2025", "ZOMATO", "300"),))
    b = LoadedFile(
        "b.csv",
        (
            _rec("01/04/2025", "ZOMATO", "300", src="b.csv"),
            _rec("02/04/2025", "OLA", "90", src="b.csv"),
        ),
    )
    ledger = build_ledger([a, b])
    assert [r["narration"] for r in ledger] == ["ZOMATO", "OLA"]
    assert ledger[0]["__srcs"] == ["a.csv", "b.csv"]


def test_export_rows():
    ledger = [
        _rec("01/04/2025", "SWIGGY ORDER", debit="450.456"),
        _rec("02/04/2025", "NEFT CR-ACME PAYROLL", credit="50,000"),
        {"date": "", "narration": "", "withdrawal amt.": "5"},
    ]
    rows = export_rows(ledger)
    assert len(rows) == 2
    assert rows[0] == {
        "Date": "01/04/2025",
        "Description": "SWIGGY ORDER",
        "Merchant": "Swiggy",
        "Category": "Food & Dining",
        "Amount": Decimal("450.46"),
        "Type": "Debit",
        "Source": "a.csv",
    }
    assert (rows[1]["Type"], rows[1]["Amount"]) == ("Credit", Decimal("50000.00"))


def test_summary_projections():
    ledger = [
        _rec("03/03/2025", "NETFLIX.COM", debit="199"),
        _rec("03/04/2025", "NETFLIX.COM", debit="199"),
        _rec("05/04/2025", "SWIGGY ORDER", debit="100"),
        _rec("06/04/2025", "SWIGGY ORDER", debit="501"),
    ]
    stats = aggregate(ledger)
    assert category_rows(stats.category_spend)[0] == {
        "Category": "🍔 Food & Dining",
        "Total Spent (₹)": Decimal("601.00"),
        "Transactions": 2,
        "Avg per Transaction (₹)": Decimal("300.50"),
    }
    rec_rows = recurring_rows(detect_recurring(ledger))
    assert [(r["Merchant"], r["Type"]) for r in rec_rows] == [
        ("Netflix", "Subscription / EMI"),
        ("Swiggy", "Recurring"),
    ]
    assert rec_rows[0]["Last Date"] == "03/04/2025"
    assert monthly_rows(stats.monthly_spend) == [
        {"Month": "Mar 2025", "Total Spent (₹)": Decimal("199.00")},
        {"Month": "Apr 2025", "Total Spent (₹)": Decimal("800.00")},
    ]
