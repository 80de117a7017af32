"""Pytest configuration shared by the ``finance_signals`` tests.

Puts the workspace ``packages/`` directory on ``sys.path`` so the package is
importable without an editable install, and keeps the environment hermetic:
``FINANCE_SIGNALS_TODAY`` from a developer's shell or ``.env`` would otherwise
change what "today" means for the CLI tests.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
# Ensure `packages/` precedes the repo root on sys.path so local packages resolve first.
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test from an empty directory with a fixed environment."""

    monkeypatch.delenv("FINANCE_SIGNALS_TODAY", raising=False)
    # Keep INFO summaries out of CliRunner output, which may merge stderr into stdout.
    monkeypatch.setenv("FINANCE_SIGNALS_LOG_LEVEL", "WARNING")
    monkeypatch.chdir(tmp_path)
