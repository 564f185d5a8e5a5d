import json
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from spendlens.categories import (
    DEFAULT_RULES,
    OTHER,
    classify,
    get_category_rules,
    load_category_rules,
    parse_category_rules,
)


@pytest.mark.parametrize(
    ("description", "amount", "expected"),
    [
        ("SWIGGY ORDER #123", 450, "Food & Dining"),
        ("NEFT-SELF-TRANSFER", 2500, "Transfers"),
        ("ABC TRADERS", 4321, "Other"),
        ("RENT PAYMENT", 10000, "Housing & Rent"),
        ("NETFLIX.COM", 199, "Streaming"),
        ("AMAZON PRIME MEMBERSHIP", 1499, "Streaming"),
        ("AMAZON PAY INDIA", 799, "Shopping"),
        ("JIOMART ORDER 7781", 640, "Groceries"),
        ("JIO PREPAID RECHARGE", 299, "Telecom"),
        ("ATM WDL 12345 MG ROAD", 2000, "ATM & Cash"),
        ("BESCOM ELECTRICITY BILL PAY", 1850, "Utilities"),
        ("ACH D- NACH EMI HDB FINANCIAL", 6200, "EMI & Loans"),
        ("BLR MAINTENANCE CHARGES HSG SOC", 3100, "Housing & Rent"),
    ],
)
def test_table_classification(description, amount, expected):
    assert classify(description, amount).name == expected


def test_other_has_default_presentation():
    assert classify("ABC TRADERS", Decimal("4321")) == OTHER
    assert (OTHER.emoji, OTHER.color) == ("❓", "#9e9e9e")
    assert classify("", 10000) == OTHER
    assert classify(None) == OTHER


def test_upi_payee_matched_against_table():
    cat = classify("UPI-ZEPTO MARKETPLACE-ZEPTOONLINE@ybl", 320)
    assert cat.name == "Groceries"


def test_unmatched_upi_payment_is_upi_transfer():
    cat = classify("UPI-RAMESH KUMAR-9876543210@ybl", 10000)
    assert cat.name == "UPI Transfer"
    assert cat.emoji == "📲"


def test_round_amount_heuristics():
    assert classify("TO MR SHARMA HOUSE", 15000).name == "Housing & Rent"
    assert classify("CHQ 004512 CLEARING", 25000).name == "Transfers"
    assert classify("MR RAMESH KUMAR", 20000).name == "Personal Transfer"
    assert classify("MR RAMESH KUMAR", "20,000.00").name == "Personal Transfer"


def test_round_amount_thresholds_are_exact():
    assert classify("MR RAMESH KUMAR", 4500).name == "Other"
    assert classify("MR RAMESH KUMAR", 5250).name == "Other"
    assert classify("MR RAMESH KUMAR", 5000).name == "Personal Transfer"
    assert classify("MR RAMESH KUMAR", None).name == "Other"


def test_classification_is_stable():
    first = classify("POS 4123XXXX9876 PIZZA HUT KORAMANGALA", 640)
    assert first.name == "Food & Dining"
    assert classify("POS 4123XXXX9876 PIZZA HUT KORAMANGALA", 640) == first


def test_table_order_is_preserved():
    names = [r.category.name for r in DEFAULT_RULES]
    assert names[0] == "Streaming"
    assert names[-1] == "Transfers"
    assert all(r.pattern.flags & 2 for r in DEFAULT_RULES)  # re.IGNORECASE


def _write_rules(path: Path, rules: list[dict]) -> Path:
    path.write_text(json.dumps({"rules": rules}), encoding="utf-8")
    return path


def test_external_rule_table(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    rules_path = _write_rules(
        tmp_path / "rules.json",
        [
            {"pattern": r"acme\s*gym", "name": "Fitness", "emoji": "🏋️", "color": "#00aa00"},
            {"pattern": "swiggy", "name": "Takeout"},
        ],
    )
    monkeypatch.setenv("SPENDLENS_CATEGORY_RULES", str(rules_path))
    rules = get_category_rules()
    assert len(rules) == 2
    assert classify("ACME GYM MONTHLY", 1500).name == "Fitness"
    takeout = classify("SWIGGY ORDER", 300)
    assert (takeout.name, takeout.emoji, takeout.color) == ("Takeout", "❓", "#9e9e9e")
    assert classify("NETFLIX.COM", 199).name == "Other"


def test_rule_files_are_cached(tmp_path: Path):
    rules_path = _write_rules(tmp_path / "cached.json", [{"pattern": "x", "name": "X"}])
    first = load_category_rules(str(rules_path))
    assert load_category_rules(str(rules_path)) is first


def test_invalid_rule_files_fail_loudly():
    with pytest.raises(ValidationError):
        parse_category_rules(json.dumps({"rules": [{"pattern": "(unclosed", "name": "X"}]}))
    with pytest.raises(ValidationError):
        parse_category_rules(json.dumps({"rules": [{"pattern": "x", "name": "X", "extra": 1}]}))
    with pytest.raises(ValidationError):
        parse_category_rules(json.dumps({"categories": []}))


def test_explicit_rules_override_environment():
    rules = parse_category_rules(json.dumps({"rules": [{"pattern": "abc", "name": "Alpha"}]}))
    assert classify("ABC TRADERS", 4321, rules=rules).name == "Alpha"
    assert classify("NETFLIX", 199, rules=rules).name == "Other"


def test_missing_rule_file_falls_back_to_builtin_table(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setenv("SPENDLENS_CATEGORY_RULES", str(tmp_path / "nope.json"))
    assert get_category_rules() == DEFAULT_RULES
    assert classify("NETFLIX.COM", 199).name == "Streaming"


def test_malformed_rule_file_falls_back_to_builtin_table(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    bad = tmp_path / "bad.json"
    bad.write_text('{"rules": [{"pattern": "x"', encoding="utf-8")
    monkeypatch.setenv("SPENDLENS_CATEGORY_RULES", str(bad))
    assert classify("SWIGGY ORDER", 300).name == "Food & Dining"
    with pytest.raises(ValidationError):
        load_category_rules(str(bad))
