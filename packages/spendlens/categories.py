"""Spending-category classification for bank narrations.

The classifier is table-driven: an ordered list of ``(regex, category)`` rules
evaluated first-match-wins. Order is significant (specific billers precede the
generic catch-alls further down), so external tables must preserve it too.

Classification pipeline
-----------------------
1. Match the raw narration against the rule table.
2. UPI narrations (a known VPA handle or the token ``UPI``): match the
   extracted payee name; when nothing matches, the payment is a
   ``UPI Transfer``.
3. Match the canonical merchant name (:func:`canonicalize_merchant`).
4. Large round amounts (>= 5000 and a multiple of 500) are housing, transfer,
   or personal-transfer payments depending on keywords in the narration.

Anything else is ``Other``. The result depends only on ``(description,
amount)`` and the rule table, never on other transactions.

External tables
---------------
``SPENDLENS_CATEGORY_RULES`` may point at a JSON document replacing the
built-in table::

    {"rules": [{"pattern": "netflix", "name": "Streaming", "emoji": "📺",
                "color": "#e50914"}, ...]}

Files are validated with pydantic and cached per path. A file that cannot be
loaded is logged and the built-in table is used instead.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from .columns import parse_amount
from .logging_setup import get_logger
from .merchants import UPI_VPA_RE, canonicalize_merchant, upi_payee
from .models import Category

_logger = get_logger("spendlens.categories")

OTHER = Category("Other", "❓", "#9e9e9e")
UPI_TRANSFER = Category("UPI Transfer", "📲", "#0288d1")
HOUSING = Category("Housing & Rent", "🏠", "#795548")
TRANSFERS = Category("Transfers", "🔄", "#607d8b")
PERSONAL_TRANSFER = Category("Personal Transfer", "💸", "#0288d1")

# Round-amount heuristic thresholds.
ROUND_AMOUNT_MIN = Decimal(5000)
ROUND_AMOUNT_STEP = 500


@dataclass(frozen=True, slots=True)
class CategoryRule:
    pattern: re.Pattern[str]
    category: Category


# [pattern, name, emoji, color]
_DEFAULT_TABLE: tuple[tuple[str, str, str, str], ...] = (
    # Streaming
    (r"netflix", "Streaming", "📺", "#e50914"),
    (r"spotify", "Streaming", "📺", "#1db954"),
    (r"hotstar|disney", "Streaming", "📺", "#1a2b6d"),
    (r"zee5", "Streaming", "📺", "#7b2ff7"),
    (r"sonyliv", "Streaming", "📺", "#0066cc"),
    (r"amazon\s*prime|primevideo", "Streaming", "📺", "#ff9900"),
    (r"youtube\s*premium", "Streaming", "📺", "#ff0000"),
    (r"jio\s*cinema|jiocinema", "Streaming", "📺", "#0a6ebd"),
    (r"mxplayer|mx\s*player", "Streaming", "📺", "#ff6b35"),
    (r"apple\s*tv|appletv", "Streaming", "📺", "#555555"),
    # Food & Dining
    (r"swiggy", "Food & Dining", "🍔", "#fc8019"),
    (r"zomato", "Food & Dining", "🍔", "#e23744"),
    (r"dominos?\b", "Food & Dining", "🍔", "#006491"),
    (r"pizza\s*hut", "Food & Dining", "🍔", "#ee3124"),
    (r"mcdonalds?|\bmcd\b", "Food & Dining", "🍔", "#ffbc0d"),
    (r"\bkfc\b", "Food & Dining", "🍔", "#f40027"),
    (r"\bsubway\b", "Food & Dining", "🍔", "#008c15"),
    (r"burger\s*king", "Food & Dining", "🍔", "#f5821f"),
    (r"starbucks|ccd\b|barista|cafe|coffee", "Food & Dining", "☕", "#6f4e37"),
    (r"restaurant|dining|canteen|eatery|food\s*court", "Food & Dining", "🍔", "#e53935"),
    # Groceries
    (r"bigbasket|bb\s*now", "Groceries", "🛒", "#84c225"),
    (r"blinkit|grofers", "Groceries", "🛒", "#f8d100"),
    (r"zepto", "Groceries", "🛒", "#8b5cf6"),
    (r"\bdmart\b|d-mart", "Groceries", "🛒", "#e53935"),
    (r"reliance\s*(fresh|smart)", "Groceries", "🛒", "#1565c0"),
    (r"jiomart", "Groceries", "🛒", "#0a6ebd"),
    (r"more\s*(supermarket|retail)", "Groceries", "🛒", "#e53935"),
    (r"nature\s*basket|godrej\s*nature", "Groceries", "🛒", "#4caf50"),
    (r"grocery|supermarket|hypermarket", "Groceries", "🛒", "#4caf50"),
    # Shopping
    (r"amazon(?!\s*prime)", "Shopping", "🛍️", "#ff9900"),
    (r"flipkart", "Shopping", "🛍️", "#2874f0"),
    (r"myntra", "Shopping", "🛍️", "#ff3f6c"),
    (r"nykaa", "Shopping", "🛍️", "#fc2779"),
    (r"\bajio\b", "Shopping", "🛍️", "#e53935"),
    (r"meesho", "Shopping", "🛍️", "#9b59b6"),
    (r"tata\s*cliq", "Shopping", "🛍️", "#1a1a2e"),
    (r"snapdeal", "Shopping", "🛍️", "#e40000"),
    (r"lenskart", "Shopping", "🛍️", "#ff6b35"),
    (r"firstcry", "Shopping", "🛍️", "#ff6b35"),
    # Travel & Transport
    (r"\buber\b", "Travel", "🚗", "#1a1a1a"),
    (r"\bola\b", "Travel", "🚗", "#5bb300"),
    (r"rapido", "Travel", "🚗", "#ffd700"),
    (r"redbus", "Travel", "🚌", "#d84f20"),
    (r"makemytrip|\bmmt\b", "Travel", "✈️", "#e53935"),
    (r"goibibo", "Travel", "✈️", "#0d9fdd"),
    (r"yatra\.com|yatra\b", "Travel", "✈️", "#e53935"),
    (r"irctc", "Travel", "🚆", "#e91e63"),
    (r"indigo|spicejet|air\s*india|vistara|go\s*first|akasa", "Travel", "✈️", "#1565c0"),
    (r"\boyo\b", "Travel", "🏨", "#ee2e24"),
    (r"airbnb", "Travel", "🏨", "#ff5a5f"),
    (r"hotel|resort|lodge", "Travel", "🏨", "#795548"),
    (r"\bcab\b|taxi", "Travel", "🚗", "#607d8b"),
    # Fuel
    (r"petrol|diesel|\bfuel\b", "Fuel", "⛽", "#795548"),
    (r"bpcl|bharat\s*petro", "Fuel", "⛽", "#ff6b00"),
    (r"hpcl|hindustan\s*petro", "Fuel", "⛽", "#0055a4"),
    (r"iocl|indian\s*oil", "Fuel", "⛽", "#e63329"),
    (r"\bshell\b", "Fuel", "⛽", "#f5d600"),
    (r"nayara", "Fuel", "⛽", "#e91e63"),
    # Health & Medical
    (r"medplus", "Health", "💊", "#00897b"),
    (r"netmeds", "Health", "💊", "#0077c8"),
    (r"1mg|tata\s*1mg", "Health", "💊", "#e53935"),
    (r"practo", "Health", "💊", "#5c6bc0"),
    (r"apollo\s*(pharm|hosp)", "Health", "🏥", "#003d7c"),
    (r"fortis|max\s*hosp|manipal\s*hosp", "Health", "🏥", "#e53935"),
    (r"pharmacy|chemist|medical\s*store|med\s*shop", "Health", "💊", "#e91e63"),
    (r"hospital|clinic|diagnostic|lab\s*test|pathology", "Health", "🏥", "#e91e63"),
    # Education
    (r"udemy", "Education", "📚", "#a435f0"),
    (r"coursera", "Education", "📚", "#0056d2"),
    (r"byju", "Education", "📚", "#6b48ff"),
    (r"unacademy", "Education", "📚", "#08bd80"),
    (r"upgrad", "Education", "📚", "#e53935"),
    (r"skillshare", "Education", "📚", "#002333"),
    (r"school\s*fee|college\s*fee|tuition|exam\s*fee", "Education", "📚", "#1565c0"),
    # Utilities & Bills
    (
        r"electricity|bescom|tneb|msedcl|\bcesc\b|adani\s*elec|tata\s*power",
        "Utilities",
        "💡",
        "#f57c00",
    ),
    (r"water\s*bill|bwssb", "Utilities", "💧", "#0288d1"),
    (r"piped\s*gas|\bmgl\b|\bigl\b|mahanagar\s*gas", "Utilities", "🔥", "#f44336"),
    (r"indane|bharat\s*gas|hp\s*gas|\blpg\b", "Utilities", "🔥", "#ff7043"),
    (r"broadband|internet\s*bill|wi.?fi", "Utilities", "🌐", "#0288d1"),
    (r"bill\s*pay|utility\s*pay", "Utilities", "💡", "#f57c00"),
    # Telecom
    (r"jio(?!mart|cinema)", "Telecom", "📱", "#0a6ebd"),
    (r"airtel", "Telecom", "📱", "#e53935"),
    (r"vodafone|\bvi\b", "Telecom", "📱", "#e40000"),
    (r"\bbsnl\b", "Telecom", "📱", "#003366"),
    (r"mobile\s*bill|postpaid|prepaid\s*recharge|recharge", "Telecom", "📱", "#607d8b"),
    # Insurance
    (r"\blic\b|life\s*insur", "Insurance", "🛡️", "#003d7c"),
    (r"hdfc\s*(ergo|life|insur)", "Insurance", "🛡️", "#004c8c"),
    (r"icici\s*(lombard|pru)", "Insurance", "🛡️", "#f37021"),
    (r"star\s*health|care\s*health|niva\s*bupa", "Insurance", "🛡️", "#e53935"),
    (r"bajaj\s*allianz", "Insurance", "🛡️", "#003d7c"),
    (r"insurance\s*prem|policy\s*prem", "Insurance", "🛡️", "#1565c0"),
    # Investments
    (r"groww", "Investments", "📈", "#00d09c"),
    (r"zerodha|\bkite\b", "Investments", "📈", "#387ed1"),
    (r"upstox", "Investments", "📈", "#7c4dff"),
    (r"kuvera", "Investments", "📈", "#5c6bc0"),
    (r"smallcase", "Investments", "📈", "#2bb793"),
    (r"mutual\s*fund|\bmf\b.*sip|\bsip\b|\bnps\b|\bppf\b|\belss\b", "Investments", "📈", "#1565c0"),
    (r"demat|brokerage|equity|\bnse\b|\bbse\b", "Investments", "📈", "#1565c0"),
    # EMI & Loans
    (r"\bemi\b", "EMI & Loans", "💰", "#6a1b9a"),
    (r"loan\s*(emi|inst|repay)", "EMI & Loans", "💰", "#6a1b9a"),
    (r"bajaj\s*finance", "EMI & Loans", "💰", "#6a1b9a"),
    (r"home\s*loan|car\s*loan|personal\s*loan|education\s*loan", "EMI & Loans", "💰", "#6a1b9a"),
    # ATM & Cash
    (
        r"atm\s*(wd|wdl|cash|with)|cash\s*with|\bnwd\b|\biwd\b|\beaw\b|\batw\b",
        "ATM & Cash",
        "🏧",
        "#455a64",
    ),
    # Wallet & UPI apps (top-ups, wallet debits)
    (r"paytm", "Wallet & UPI", "📲", "#00b9f1"),
    (r"mobikwik", "Wallet & UPI", "📲", "#6739b7"),
    (r"freecharge", "Wallet & UPI", "📲", "#f6c000"),
    (r"\bbhim\b", "Wallet & UPI", "📲", "#00897b"),
    # Credit card payments
    (
        r"credit\s*card\s*(pay|bill|due)|\bcc\s*(pay|bill|due|emi)\b",
        "Credit Card",
        "💳",
        "#c62828",
    ),
    (
        r"(hdfc|icici|sbi|axis|kotak|amex|citi)\s*(cc|credit\s*card|visa|master|rupay)",
        "Credit Card",
        "💳",
        "#c62828",
    ),
    # NACH / ECS / auto-debit mandates
    (r"\bnach\b|\becs\b|\bmandatepay|\bautopay\b|\bauto\s*debit\b", "Auto Debit", "🔁", "#5c6bc0"),
    # Cheque and self transfers
    (
        r"\bself\b|\bown\s*a/c\b|chq\s*paid|cheque\s*paid|\bcheque\b.*issued",
        "Transfers",
        "🔄",
        "#607d8b",
    ),
    (r"\bimps\b", "Transfers", "🔄", "#607d8b"),
    # More EMI patterns
    (r"bajaj.*fin|bajajfinotp|\bbfl\d", "EMI & Loans", "💰", "#6a1b9a"),
    (r"\bnach.*emi\b|\bemi.*nach\b", "EMI & Loans", "💰", "#6a1b9a"),
    # More Food & Dining
    (
        r"caterer|catering|\bdhaba\b|\bdabha\b|tiffin|bhojan|bhojanalay",
        "Food & Dining",
        "🍔",
        "#e53935",
    ),
    (r"\bchai\b|tea\s*(house|stall|shop)|snack\s*bar|fast\s*food", "Food & Dining", "☕", "#6f4e37"),
    (r"bakery|sweet\s*(shop|mart)|mithai|confection", "Food & Dining", "🍰", "#e53935"),
    # More Groceries
    (r"kirana|provision\s*(store|shop)|general\s*store", "Groceries", "🛒", "#4caf50"),
    # Housing & Rent
    (r"\brent\b|\blease\b|\btenancy\b", "Housing & Rent", "🏠", "#795548"),
    (r"\bpg\b.*rent|paying\s*guest", "Housing & Rent", "🏠", "#795548"),
    (
        r"society|maintenance\s*(fee|charg)|hsg\s*soc|housing\s*soc|apartment|flat\s*no",
        "Housing & Rent",
        "🏠",
        "#795548",
    ),
    (
        r"property\s*tax|house\s*tax|municipal\s*tax|\bbrihanmumbai\b|\bnmc\b|\bbmc\b",
        "Housing & Rent",
        "🏠",
        "#795548",
    ),
    (r"stampduty|stamp\s*duty|registration\s*fee|home\s*regist", "Housing & Rent", "🏠", "#795548"),
    # Fees & charges
    (
        r"\bcharge\b|\bfee\b.*bank|bank.*\bfee\b|annual\s*fee|service\s*charge|\bpenalty\b",
        "Bank Charges",
        "🏦",
        "#607d8b",
    ),
    (r"\bgst\b|tax\s*deduct|\btds\b|\btcs\b", "Taxes & Govt", "🏛️", "#546e7a"),
    (
        r"passport|visa\s*fee|\brto\b|\bvahan\b|driving\s*licen|traffic\s*fine|\bechallan\b",
        "Taxes & Govt",
        "🏛️",
        "#546e7a",
    ),
    # Charity & donations
    (
        r"donat|charity|\bngo\b|foundation|trust\s*(fund)?|relief\s*fund|pm\s*(cares|relief)",
        "Donations",
        "🤍",
        "#e91e63",
    ),
    # Transfers (broad, keep near the bottom)
    (r"neft|rtgs", "Transfers", "🔄", "#607d8b"),
    (r"self\s*transfer|own\s*acct", "Transfers", "🔄", "#607d8b"),
    (r"sent\s*to|transfer\s*to|trf\s*to", "Transfers", "🔄", "#607d8b"),
)


def compile_rules(table: Sequence[tuple[str, str, str, str]]) -> tuple[CategoryRule, ...]:
    return tuple(
        CategoryRule(re.compile(p, re.IGNORECASE), Category(name, emoji, color))
        for p, name, emoji, color in table
    )


DEFAULT_RULES: tuple[CategoryRule, ...] = compile_rules(_DEFAULT_TABLE)

_UPI_TOKEN_RE = re.compile(r"\bUPI\b", re.IGNORECASE)
_HOUSING_HINT_RE = re.compile(
    r"flat|room|house|home|hostel|\bpg\b|plot|gala|office\s*rent", re.IGNORECASE
)
_TRANSFER_HINT_RE = re.compile(r"\bchq\b|\bcheque\b|\bimps\b|\bclg\b|clearing", re.IGNORECASE)


# ---------------------------------------------------------------------------
# External rule tables
# ---------------------------------------------------------------------------


class CategoryRuleSpec(BaseModel):
    """One rule of an external category table."""

    model_config = ConfigDict(strict=True, extra="forbid")

    pattern: str
    name: str
    emoji: str = OTHER.emoji
    color: str = OTHER.color

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, v: str) -> str:
        if not v:
            raise ValueError("pattern must be non-empty")
        try:
            re.compile(v, re.IGNORECASE)
        except re.error as e:
            raise ValueError(f"invalid pattern {v!r}: {e}") from e
        return v

    @field_validator("name")
    @classmethod
    def _name_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must be non-empty")
        return v.strip()


class CategoryRulesFile(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    rules: list[CategoryRuleSpec]


def parse_category_rules(text: str) -> tuple[CategoryRule, ...]:
    """Validate a JSON rule document and compile it, preserving order."""

    doc = CategoryRulesFile.model_validate_json(text)
    return compile_rules([(r.pattern, r.name, r.emoji, r.color) for r in doc.rules])


@lru_cache(maxsize=8)
def load_category_rules(path: str) -> tuple[CategoryRule, ...]:
    rules = parse_category_rules(Path(path).read_text(encoding="utf-8"))
    _logger.info("categories:rules_loaded path=%s rules=%d", path, len(rules))
    return rules


def category_rules_path() -> str | None:
    """Resolved ``SPENDLENS_CATEGORY_RULES`` path, or ``None`` when unset."""

    path = os.getenv("SPENDLENS_CATEGORY_RULES")
    if path and path.strip():
        return str(Path(path.strip()).expanduser().resolve())
    return None


@lru_cache(maxsize=8)
def _rules_or_default(path: str) -> tuple[CategoryRule, ...]:
    try:
        return load_category_rules(path)
    except (OSError, ValueError) as e:
        # pydantic.ValidationError is a ValueError
        _logger.warning("categories:rules_invalid path=%s error=%s", path, e)
        return DEFAULT_RULES


def get_category_rules() -> tuple[CategoryRule, ...]:
    """Active rule table: ``SPENDLENS_CATEGORY_RULES`` when set, else the default.

    An unreadable or invalid rules file is logged once and the built-in table
    is used, so classification keeps working; callers that want to fail fast
    call :func:`load_category_rules` themselves.
    """

    path = category_rules_path()
    if path is None:
        return DEFAULT_RULES
    return _rules_or_default(path)


# ---------------------------------------------------------------------------
# Classification passes
# ---------------------------------------------------------------------------


def match_rules(text: str, rules: Sequence[CategoryRule]) -> Category | None:
    if not text:
        return None
    for rule in rules:
        if rule.pattern.search(text):
            return rule.category
    return None


def _by_raw(desc: str, _amount: Decimal | None, rules: Sequence[CategoryRule]) -> Category | None:
    return match_rules(desc, rules)


def _by_upi_payee(
    desc: str, _amount: Decimal | None, rules: Sequence[CategoryRule]
) -> Category | None:
    if not (UPI_VPA_RE.search(desc) or _UPI_TOKEN_RE.search(desc)):
        return None
    return match_rules(upi_payee(desc), rules) or UPI_TRANSFER


def _by_canonical_merchant(
    desc: str, _amount: Decimal | None, rules: Sequence[CategoryRule]
) -> Category | None:
    return match_rules(canonicalize_merchant(desc), rules)


def _by_round_amount(
    desc: str, amount: Decimal | None, _rules: Sequence[CategoryRule]
) -> Category | None:
    if amount is None or amount < ROUND_AMOUNT_MIN:
        return None
    rounded = int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if rounded % ROUND_AMOUNT_STEP != 0:
        return None
    if _HOUSING_HINT_RE.search(desc):
        return HOUSING
    if _TRANSFER_HINT_RE.search(desc):
        return TRANSFERS
    return PERSONAL_TRANSFER


_PASSES: tuple[
    Callable[[str, Decimal | None, Sequence[CategoryRule]], Category | None], ...
] = (
    _by_raw,
    _by_upi_payee,
    _by_canonical_merchant,
    _by_round_amount,
)


def classify(
    raw_description: str | None,
    amount: Any = None,
    *,
    rules: Sequence[CategoryRule] | None = None,
) -> Category:
    """Return the spending category for a narration and amount.

    ``amount`` may be a ``Decimal``, number, numeric string or ``None``.
    Never raises; unmatched input is ``Other``.
    """

    if not raw_description:
        return OTHER
    active = get_category_rules() if rules is None else rules
    amt = parse_amount(amount)
    for step in _PASSES:
        found = step(raw_description, amt, active)
        if found is not None:
            return found
    return OTHER


__all__ = [
    "CategoryRule",
    "CategoryRuleSpec",
    "CategoryRulesFile",
    "DEFAULT_RULES",
    "OTHER",
    "UPI_TRANSFER",
    "compile_rules",
    "parse_category_rules",
    "load_category_rules",
    "category_rules_path",
    "get_category_rules",
    "match_rules",
    "classify",
]
