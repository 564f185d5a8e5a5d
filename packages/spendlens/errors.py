"""Per-file ingestion errors.

All errors raised while validating or parsing a single statement file derive
from :class:`StatementError`. They are non-fatal to a batch: the batch loader
records one message per failing file and keeps going with the others.
"""

from __future__ import annotations


class StatementError(Exception):
    """Base class for statement ingestion failures."""

    kind: str = "statement_error"

    def __init__(self, message: str, *, filename: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename

    def __str__(self) -> str:
        return self.message


class FileTooLargeError(StatementError):
    kind = "file_too_large"


class InvalidFileTypeError(StatementError):
    kind = "invalid_file_type"


class HeaderNotFoundError(StatementError):
    """No row in the first sheet looks like a transaction header."""

    kind = "header_not_found"


class UnparsableFileError(StatementError):
    kind = "unparsable_file"


class DuplicateFileError(StatementError):
    kind = "duplicate_file"


__all__ = [
    "StatementError",
    "FileTooLargeError",
    "InvalidFileTypeError",
    "HeaderNotFoundError",
    "UnparsableFileError",
    "DuplicateFileError",
]
