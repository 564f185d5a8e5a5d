"""Public interface for the ``spendlens`` package.

Bank statement analytics: load CSV/spreadsheet exports, build a normalized
and de-duplicated ledger, then classify, group and summarize spending. There
is no runtime logic here, only symbol re-exports.
"""

from .categories import OTHER, classify, get_category_rules, load_category_rules
from .columns import canonical_date, parse_amount, resolve
from .duplicates import dedupe
from .errors import (
    DuplicateFileError,
    FileTooLargeError,
    HeaderNotFoundError,
    InvalidFileTypeError,
    StatementError,
    UnparsableFileError,
)
from .ingest.batch import load_statements
from .ingest.utils import StatementFile, parse_statement
from .keys import build_norm, normalize_key, normalize_value
from .ledger import build_ledger, export_rows, to_transaction
from .merchants import canonicalize_merchant
from .models import (
    Category,
    CategorySpend,
    DateRange,
    FileError,
    LoadedFile,
    LoadResult,
    NormalizedRecord,
    Payment,
    RecurringGroup,
    Stats,
    Transaction,
)
from .recurring import detect_recurring, estimated_monthly_subscription_spend
from .stats import aggregate, largest_payments

__all__ = [
    # Pipeline
    "normalize_key",
    "normalize_value",
    "build_norm",
    "resolve",
    "parse_amount",
    "canonical_date",
    "canonicalize_merchant",
    "classify",
    "get_category_rules",
    "load_category_rules",
    "dedupe",
    "detect_recurring",
    "estimated_monthly_subscription_spend",
    "aggregate",
    "largest_payments",
    "build_ledger",
    "to_transaction",
    "export_rows",
    # Ingestion
    "StatementFile",
    "parse_statement",
    "load_statements",
    # Models
    "NormalizedRecord",
    "Category",
    "Transaction",
    "RecurringGroup",
    "CategorySpend",
    "DateRange",
    "Payment",
    "Stats",
    "LoadedFile",
    "FileError",
    "LoadResult",
    "OTHER",
    # Errors
    "StatementError",
    "FileTooLargeError",
    "InvalidFileTypeError",
    "HeaderNotFoundError",
    "UnparsableFileError",
    "DuplicateFileError",
]
