from datetime import date
from decimal import Decimal

from spendlens.stats import aggregate, largest_payments, month_label


def _debit(d: str, desc: str, amount: str, **extra) -> dict:
    return {"date": d, "narration": desc, "withdrawal amt.": amount, "deposit amt.": "", **extra}


def _credit(d: str, desc: str, amount: str) -> dict:
    return {"date": d, "narration": desc, "withdrawal amt.": "", "deposit amt.": amount}


LEDGER = [
    _debit("01/04/2025", "SWIGGY ORDER 1", "450"),
    _credit("02/04/2025", "NEFT CR-ACME PAYROLL", "50,000.00"),
    _debit("03/04/2025", "NETFLIX.COM", "199"),
    _debit("05/04/2025", "RENT PAYMENT APRIL", "10000"),
    _debit("06/03/2025", "SWIGGY ORDER 1", "550"),
    _debit("not a date", "ZOMATO", "300"),
    _debit("07/03/2025", "MR RAMESH KUMAR", "10000"),
]


def test_totals_and_counts():
    stats = aggregate(LEDGER)
    assert stats.total_debited == Decimal("21499")
    assert stats.total_credited == Decimal("50000.00")
    assert stats.debit_count == 6
    assert stats.credit_count == 1
    assert stats.average_debit == Decimal("21499") / 6


def test_largest_payment_first_wins_on_ties():
    stats = aggregate(LEDGER)
    assert stats.largest_payment.amount == Decimal("10000")
    assert stats.largest_payment.description == "RENT PAYMENT APRIL"


def test_top_merchants_group_by_raw_description():
    stats = aggregate(LEDGER)
    names = [m.name for m in stats.top_merchants]
    assert names == ["RENT PAYMENT APRIL", "MR RAMESH KUMAR", "Swiggy", "Zomato", "Netflix"]
    swiggy = next(m for m in stats.top_merchants if m.name == "Swiggy")
    assert swiggy.total == Decimal("1000")
    assert len(swiggy.transactions) == 2


def test_monthly_spend_is_chronological_and_skips_bad_dates():
    stats = aggregate(LEDGER)
    assert [(m.month, m.total) for m in stats.monthly_spend] == [
        ("Mar 2025", Decimal("10550")),
        ("Apr 2025", Decimal("10649")),
    ]


def test_monthly_spend_keeps_last_six_months():
    ledger = [_debit(f"01/{m:02d}/2024", f"SHOP {m}", "10") for m in range(1, 13)]
    ledger.append(_debit("01/01/2025", "SHOP NEXT", "10"))
    months = [m.month for m in aggregate(ledger).monthly_spend]
    assert months == ["Aug 2024", "Sep 2024", "Oct 2024", "Nov 2024", "Dec 2024", "Jan 2025"]


def test_category_spend_sorted_by_total():
    stats = aggregate(LEDGER)
    cats = [(c.name, c.total) for c in stats.category_spend]
    assert cats[0] == ("Housing & Rent", Decimal("10000"))
    assert ("Personal Transfer", Decimal("10000")) in cats
    food = next(c for c in stats.category_spend if c.name == "Food & Dining")
    assert food.total == Decimal("1300")
    assert food.emoji == "🍔"
    assert {t.display_name for t in food.transactions} == {"Swiggy", "Zomato"}


def test_date_range_uses_all_parseable_dates():
    rng = aggregate(LEDGER).date_range
    assert rng is not None
    assert (rng.start, rng.end) == (date(2025, 3, 6), date(2025, 4, 5))
    assert rng.days == 31
    assert rng.label == "06 Mar 2025 - 05 Apr 2025"


def test_empty_ledger():
    stats = aggregate([])
    assert stats.total_debited == 0
    assert stats.average_debit == 0
    assert stats.largest_payment.description == ""
    assert stats.date_range is None
    assert stats.top_merchants == ()


def test_month_label():
    assert month_label("05/04/2025") == (2025, 4, "Apr 2025")
    assert month_label("05/13/2025") is None
    assert month_label("garbage") is None


def test_largest_payments_carry_reference_details():
    ledger = [
        _debit("01/04/2025", "SWIGGY ORDER", "450", **{"chq/ref no.": "R1", "balance": "9550"}),
        _debit("05/04/2025", "RENT PAYMENT APRIL", "10000", type="NEFT"),
        _credit("02/04/2025", "SALARY", "50000"),
    ]
    payments = largest_payments(ledger, limit=5)
    assert [p.description for p in payments] == ["RENT PAYMENT APRIL", "SWIGGY ORDER"]
    assert payments[0].category.name == "Housing & Rent"
    assert payments[0].type == "NEFT"
    assert (payments[1].reference, payments[1].balance) == ("R1", "9550")
    assert payments[1].display_name == "Swiggy"
    assert len(largest_payments(ledger, limit=1)) == 1
