"""Batch loading of several statement files.

Each file is validated and parsed independently on a small thread pool; a
failure in one file never affects its siblings. Results are reassembled in
input order so the ledger (and therefore first-occurrence de-duplication)
is deterministic.

Every record of a loaded file is tagged with ``__src`` (the file name) and
``__srcs`` (``[name]``). A file whose name was already loaded earlier in the
batch, or in ``already_loaded``, is rejected as a duplicate.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from os import PathLike
from pathlib import Path

from ..errors import DuplicateFileError, StatementError, UnparsableFileError
from ..logging_setup import get_logger
from ..models import FileError, LoadedFile, LoadResult, NormalizedRecord
from .utils import StatementFile, parse_statement

_logger = get_logger("spendlens.ingest.batch")

type StatementInput = StatementFile | str | PathLike[str]

_DEFAULT_MAX_WORKERS = 4
_MAX_WORKERS_CAP = 16


def resolve_max_workers(n_files: int, requested: int | None = None) -> int:
    """Worker count for parsing ``n_files``.

    Uses ``requested`` or the ``SPENDLENS_MAX_WORKERS`` env var when positive,
    else 4; always capped at 16 and ``n_files``, and at least 1.
    """

    if requested is None:
        env_workers = os.getenv("SPENDLENS_MAX_WORKERS")
        try:
            requested = int(env_workers) if env_workers else None
        except ValueError:
            requested = None
    if requested is not None and requested > 0:
        return max(1, min(requested, n_files, _MAX_WORKERS_CAP))
    return max(1, min(_DEFAULT_MAX_WORKERS, n_files))


def _input_name(item: StatementInput) -> str:
    if isinstance(item, StatementFile):
        return item.name
    return Path(item).name


def _load_one(item: StatementInput) -> list[NormalizedRecord]:
    name = _input_name(item)
    try:
        file = item if isinstance(item, StatementFile) else StatementFile.from_path(item)
    except OSError as e:
        raise UnparsableFileError(f"Could not read file: {e}", filename=name) from e
    records = parse_statement(file)
    for record in records:
        record["__src"] = file.name
        record["__srcs"] = [file.name]
    return records


def load_statements(
    inputs: Iterable[StatementInput],
    *,
    already_loaded: Iterable[str] = (),
    max_workers: int | None = None,
) -> LoadResult:
    """Load statement files into a :class:`~spendlens.models.LoadResult`.

    ``inputs`` are filesystem paths or :class:`StatementFile` objects. Per-file
    failures are collected as :class:`~spendlens.models.FileError` entries;
    this function does not raise for them.
    """

    items = list(inputs)
    seen = set(already_loaded)
    errors_by_idx: dict[int, FileError] = {}
    to_parse: list[int] = []
    for idx, item in enumerate(items):
        name = _input_name(item)
        if name in seen:
            err = DuplicateFileError(f'"{name}" already loaded.', filename=name)
            errors_by_idx[idx] = FileError(name, err.kind, err.message)
            _logger.warning("ingest:file_rejected name=%s error=%s", name, err.kind)
            continue
        seen.add(name)
        to_parse.append(idx)

    results_by_idx: dict[int, list[NormalizedRecord]] = {}
    if to_parse:
        workers = resolve_max_workers(len(to_parse), max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="spendlens-parse") as ex:
            fut_to_idx = {ex.submit(_load_one, items[idx]): idx for idx in to_parse}
            for fut, idx in fut_to_idx.items():
                name = _input_name(items[idx])
                try:
                    results_by_idx[idx] = fut.result()
                except StatementError as e:
                    errors_by_idx[idx] = FileError(name, e.kind, e.message)
                    _logger.warning("ingest:file_rejected name=%s error=%s", name, e.kind)
                except Exception as e:  # noqa: BLE001 - one bad file must not sink the batch
                    errors_by_idx[idx] = FileError(name, UnparsableFileError.kind, str(e))
                    _logger.exception("ingest:file_failed name=%s", name)

    files: list[LoadedFile] = []
    errors: list[FileError] = []
    for idx, item in enumerate(items):
        if idx in results_by_idx:
            name = _input_name(item)
            records = results_by_idx[idx]
            files.append(LoadedFile(name, tuple(records)))
            _logger.info("ingest:file_loaded name=%s rows=%d", name, len(records))
        elif idx in errors_by_idx:
            errors.append(errors_by_idx[idx])
    return LoadResult(files=tuple(files), errors=tuple(errors))


__all__ = ["StatementInput", "resolve_max_workers", "load_statements"]
