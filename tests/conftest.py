"""Pytest configuration for test isolation.

Makes the workspace ``packages/`` directory importable (so ``spendlens``
resolves without an install) and clears every ``SPENDLENS_*`` environment
variable per test, so a developer's shell or ``.env`` cannot change category
tables, worker counts or log levels under the tests.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
# ``packages/`` first so local packages resolve before anything installed.
if str(_PKG_DIR) not in sys.path:
    sys.path.insert(0, str(_PKG_DIR))


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("SPENDLENS_"):
            monkeypatch.delenv(name, raising=False)
