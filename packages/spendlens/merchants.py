"""Merchant display-name canonicalization.

Raw narrations carry a lot of transport noise: UPI handles and bank IFSC
codes, masked card/account numbers, POS/ATM prefixes, and leading reference
ids. :func:`canonicalize_merchant` turns them into a short readable merchant
name. It is total and idempotent, so its output can key de-duplication and
recurring-payment grouping across differently formatted exports of the same
payment.

Resolution order (first hit wins)
---------------------------------
1. :data:`MERCHANT_MAP` matched against the raw string.
2. UPI payee extraction for ``name@handle`` strings.
3. Prefix/noise stripping rules repeated until stable, then first-letter
   capitalization.
4. Fallback to the first 32 characters of the input.
"""

from __future__ import annotations

import re

# (pattern, canonical name); order matters, broader patterns come later.
MERCHANT_MAP: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(p, re.IGNORECASE), name)
    for p, name in (
        (r"netflix", "Netflix"),
        (r"spotify", "Spotify"),
        (r"hotstar|disney", "Disney+ Hotstar"),
        (r"amazon\s*prime|primevideo", "Amazon Prime"),
        (r"youtube\s*premium", "YouTube Premium"),
        (r"zee5", "Zee5"),
        (r"sonyliv", "SonyLIV"),
        (r"render\.com", "Render.com"),
        (r"github", "GitHub"),
        (r"notion", "Notion"),
        (r"figma", "Figma"),
        (r"openai|chatgpt", "OpenAI"),
        (r"slack", "Slack"),
        (r"zoom", "Zoom"),
        (r"google", "Google"),
        (r"microsoft|msft", "Microsoft"),
        (r"dropbox", "Dropbox"),
        (r"apple", "Apple"),
        (r"jio", "Jio"),
        (r"airtel", "Airtel"),
        (r"bsnl", "BSNL"),
        (r"vodafone", "Vodafone"),
        (r"bajaj\s*finance", "Bajaj Finance"),
        (r"hdfc", "HDFC"),
        (r"icici", "ICICI"),
        (r"swiggy", "Swiggy"),
        (r"zomato", "Zomato"),
        (r"amazon", "Amazon"),
        (r"flipkart", "Flipkart"),
        (r"myntra", "Myntra"),
        (r"paytm", "Paytm"),
        (r"phonepe", "PhonePe"),
        (r"razorpay", "Razorpay"),
        (r"ola\b", "Ola"),
        (r"uber", "Uber"),
        (r"irctc", "IRCTC"),
        (r"bookmyshow", "BookMyShow"),
    )
)

# App/PSP suffixes glued to the payee part of a VPA, e.g. "SHOP-GPAY@okaxis".
_UPI_APP_SUFFIX_RE = re.compile(
    r"-(GPAY|PAYTM|YBL|OKAXIS|OKSBI|OKICICI|OKHDFCBANK|YESB|IDFCFIRST|INDUS|FEDERAL"
    r"|AXIS|SBI|HDFC|ICICI|KOTAK)$",
    re.IGNORECASE,
)
_UPI_TRAILING_TOKEN_RE = re.compile(r"[-_][A-Z0-9]{8,}$", re.IGNORECASE)
_UPI_HANDLE_RE = re.compile(r"^([^@]{2,40})@[A-Z0-9]+[-.]?[A-Z0-9]*[-.]?[A-Z0-9]*", re.IGNORECASE)

# Known VPA bank handles; used by the classifier to detect UPI narrations.
UPI_VPA_RE = re.compile(
    r"@(ok(?:axis|sbi|icici|hdfcbank)|ybl|idfcfirst|indus|federal|axisbank|apl|pthdfc"
    r"|ptsbi|ptyes|okbizaxis|okhdfcbank)\b",
    re.IGNORECASE,
)

_NOISE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(GPAY|PHONEPE|PAYTM|BHIM)[\s@-]+", re.IGNORECASE), ""),
    (re.compile(r"^\d+\s+"), ""),
    (re.compile(r"^(UPI|IMPS|NEFT|RTGS|ACH\s*DR|IB\s*BILLPAY\s*DR)[-\s:]+", re.IGNORECASE), ""),
    (re.compile(r"^(EAW|ATW|NWD|IWD)[-\s][^-]+-[^-]+-", re.IGNORECASE), ""),
    (re.compile(r"^POS\s+[\dX\s]*", re.IGNORECASE), ""),
    (re.compile(r"^\d+[-\s]+"), ""),
    (re.compile(r"[-_][\dX]{6,}", re.IGNORECASE), ""),
    (re.compile(r"@[\w.-]+$"), ""),
    # IFSC-style bank codes are upper-case in narrations; title-cased payee
    # names such as "Axis Foods" must survive a second pass.
    (re.compile(r"-?(UTIB|KKBK|SBIN|HDFC|ICIC|YESB|IDFB|INDB|FDRL|AXIS|PYTM)\d*[-\w]*"), ""),
    (re.compile(r"\s{2,}"), " "),
)

_FALLBACK_LEN = 32


def match_merchant_map(text: str) -> str | None:
    for pattern, name in MERCHANT_MAP:
        if pattern.search(text):
            return name
    return None


def upi_payee(raw: str) -> str:
    """Return the payee portion of a UPI narration with handle noise removed.

    Takes the text before the first ``@`` (the whole string when there is
    none), drops app suffixes such as ``-GPAY`` and trailing masked tokens,
    and turns ``-``/``_`` separators into single spaces. Case is preserved.
    """

    name = raw.split("@", 1)[0]
    name = _UPI_APP_SUFFIX_RE.sub("", name)
    name = _UPI_TRAILING_TOKEN_RE.sub("", name)
    name = re.sub(r"[_-]", " ", name)
    return " ".join(name.split())


def _title_words(s: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in s.split())


def _strip_noise(s: str) -> str:
    # Repeat until stable: dropping one prefix can expose another ("UPI-RTGS-...").
    while True:
        cleaned = s
        for pattern, repl in _NOISE_RULES:
            cleaned = pattern.sub(repl, cleaned)
        cleaned = cleaned.strip()
        if cleaned == s:
            return s
        s = cleaned


def canonicalize_merchant(raw: str | None) -> str:
    """Return a human-readable merchant name for a raw narration.

    Never raises. Falsy input yields ``"Unknown"``; text that cleans down to
    two characters or fewer falls back to the first 32 characters of the
    input.
    """

    if not raw:
        return "Unknown"

    mapped = match_merchant_map(raw)
    if mapped is not None:
        return mapped

    s = raw.strip()

    m = _UPI_HANDLE_RE.match(s)
    if m:
        # Title-case before stripping so upper-case-only bank codes stay in names.
        name = _strip_noise(_title_words(upi_payee(m.group(1))))
        if len(name) > 2:
            return match_merchant_map(name) or name

    s = _strip_noise(s)

    if len(s) > 2:
        # Keeps the result stable when canonicalized again.
        return match_merchant_map(s) or s[0].upper() + s[1:]
    return raw[:_FALLBACK_LEN]


__all__ = [
    "MERCHANT_MAP",
    "UPI_VPA_RE",
    "match_merchant_map",
    "upi_payee",
    "canonicalize_merchant",
]
