import pytest

from spendlens.merchants import canonicalize_merchant, upi_payee

RAW_DESCRIPTIONS = [
    "NETFLIX.COM",
    "POS NETFLIX COM 998877",
    "UPI-NETFLIX@OKSBI",
    "UPI-SWIGGY-SWIGGY8@YBL-YESB0YBLUPI-509112345678",
    "rameshkumar-gpay@okaxis",
    "ravi_sharma_12345678@ybl",
    "POS 4123XXXXXXXX9876 CROMA ELECTRONICS",
    "NEFT-HDFC0001234-ACME PAYROLL",
    "IMPS-509812345678-Priya Singh-SBIN0001234",
    "EAW-512345XXXXXX1234-S1AWMU12-MUMBAI-",
    "ACH DR INDIAN CLEARING CORP",
    "123456 LOCAL KIRANA STORE",
    "Axis Foods",
    "UPI-ABCD@OKSBI",
    "UPI-RAMESH KUMAR-9876543210@ybl",
    "NEFT-12 34 SHOP",
    "UPI-RTGS-ACME CORP",
    "ab",
    "",
]


@pytest.mark.parametrize("raw", RAW_DESCRIPTIONS)
def test_canonicalize_is_idempotent(raw):
    once = canonicalize_merchant(raw)
    assert canonicalize_merchant(once) == once


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("NETFLIX.COM", "Netflix"),
        ("POS NETFLIX COM 998877", "Netflix"),
        ("UPI-NETFLIX@OKSBI", "Netflix"),
        ("UPI/SWIGGY/ORDER", "Swiggy"),
        ("Amazon Prime Video", "Amazon Prime"),
        ("amazon.in order", "Amazon"),
    ],
)
def test_merchant_map(raw, expected):
    assert canonicalize_merchant(raw) == expected


def test_upi_handle_is_title_cased():
    assert canonicalize_merchant("rameshkumar-gpay@okaxis") == "Rameshkumar"
    assert canonicalize_merchant("ravi_sharma_12345678@ybl") == "Ravi Sharma"


def test_noise_prefixes_are_stripped():
    assert canonicalize_merchant("ACH DR INDIAN CLEARING CORP") == "INDIAN CLEARING CORP"
    assert canonicalize_merchant("123456 LOCAL KIRANA STORE") == "LOCAL KIRANA STORE"


def test_upi_payee_loses_transaction_type_prefix():
    assert canonicalize_merchant("UPI-ABCD@OKSBI") == "Abcd"
    assert canonicalize_merchant("UPI-RAMESH KUMAR-9876543210@ybl") == "Ramesh Kumar"


def test_stacked_prefixes_are_all_stripped():
    assert canonicalize_merchant("NEFT-12 34 SHOP") == "SHOP"
    assert canonicalize_merchant("UPI-RTGS-ACME CORP") == "ACME CORP"


def test_falsy_and_short_inputs():
    assert canonicalize_merchant("") == "Unknown"
    assert canonicalize_merchant(None) == "Unknown"
    assert canonicalize_merchant("ab") == "ab"


def test_upi_payee_extraction():
    assert upi_payee("UPI-RAMESH KUMAR-9876543210@ybl") == "UPI RAMESH KUMAR"
    assert upi_payee("shop-gpay@okaxis") == "shop"
    assert upi_payee("no handle here") == "no handle here"
