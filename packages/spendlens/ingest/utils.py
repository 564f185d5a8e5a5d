"""File-level validation and format dispatch for statement uploads.

A statement file is checked before any byte is parsed:

- size must not exceed :data:`MAX_FILE_BYTES` (20 MB),
- the extension must be ``csv``, ``xlsx`` or ``xls``,
- a declared media type, when present, must be in :data:`ALLOWED_MEDIA_TYPES`.

Files passing validation are routed to the delimited-text or spreadsheet
adapter by extension.
"""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from ..errors import FileTooLargeError, InvalidFileTypeError
from ..models import NormalizedRecord
from .adapters.delimited_csv import parse_csv_bytes
from .adapters.spreadsheet_grid import parse_spreadsheet_bytes

MAX_FILE_MB = 20
MAX_FILE_BYTES = MAX_FILE_MB * 1024 * 1024

ALLOWED_EXTENSIONS: frozenset[str] = frozenset({"csv", "xlsx", "xls"})
ALLOWED_MEDIA_TYPES: frozenset[str] = frozenset(
    {
        "text/csv",
        "text/plain",
        "application/csv",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)

_MEDIA_TYPES_BY_EXT: dict[str, str] = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "xls": "application/vnd.ms-excel",
}


def file_extension(name: str) -> str:
    """Lower-cased text after the last ``.``; the whole name when there is none."""

    return name.rsplit(".", 1)[-1].lower()


def validate_statement_file(name: str, size: int, media_type: str | None = None) -> str:
    """Validate upload metadata and return the file's extension.

    Raises :class:`FileTooLargeError` or :class:`InvalidFileTypeError`.
    """

    if size > MAX_FILE_BYTES:
        raise FileTooLargeError(f"File too large. Max {MAX_FILE_MB} MB.", filename=name)
    ext = file_extension(name)
    if ext not in ALLOWED_EXTENSIONS or (media_type and media_type not in ALLOWED_MEDIA_TYPES):
        raise InvalidFileTypeError(
            "Invalid file type. Only .csv, .xlsx, and .xls are accepted.", filename=name
        )
    return ext


@dataclass(frozen=True, slots=True)
class StatementFile:
    """An in-memory statement upload.

    ``media_type`` is the declared MIME type; ``None`` or ``""`` means the
    client did not declare one.
    """

    name: str
    data: bytes
    media_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | PathLike[str], *, media_type: str | None = None) -> StatementFile:
        """Read ``path`` into memory, refusing oversized files before reading.

        The declared media type defaults to the one implied by the extension.
        """

        p = Path(path)
        size = p.stat().st_size
        if media_type is None:
            media_type = _MEDIA_TYPES_BY_EXT.get(file_extension(p.name))
        validate_statement_file(p.name, size, media_type)
        return cls(name=p.name, data=p.read_bytes(), media_type=media_type)


def parse_statement(file: StatementFile) -> list[NormalizedRecord]:
    """Validate and parse one statement file into normalized records.

    All-or-nothing: either every record is returned or a
    :class:`~spendlens.errors.StatementError` is raised.
    """

    ext = validate_statement_file(file.name, file.size, file.media_type)
    if ext == "csv":
        return parse_csv_bytes(file.data, filename=file.name)
    return parse_spreadsheet_bytes(file.data, ext=ext, filename=file.name)


__all__ = [
    "MAX_FILE_BYTES",
    "ALLOWED_EXTENSIONS",
    "ALLOWED_MEDIA_TYPES",
    "StatementFile",
    "file_extension",
    "validate_statement_file",
    "parse_statement",
]
