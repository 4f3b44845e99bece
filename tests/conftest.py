"""Pytest configuration for test isolation.

Every test that touches the store gets its own SQLite file under ``tmp_path``.
Settings are reloaded from the patched environment and the cached engine is
reset, so no test sees rows written by another.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

import pytest

import config
import db_engine
from models import Transaction


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point the settings at a per-test database and disable the LLM and seeding."""
    monkeypatch.chdir(tmp_path)  # keeps a developer's .env out of the tests
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{os.fspath(tmp_path / 'test.db')}")
    monkeypatch.setenv("OLLAMA_ENABLED", "false")
    monkeypatch.setenv("SEED_CSV_PATH", os.fspath(tmp_path / "missing.csv"))
    db_engine.reset_engine()
    config.reload_settings()
    yield
    db_engine.reset_engine()


@pytest.fixture
def db():
    """Create the tables in the per-test database."""
    db_engine.init_db()
    return db_engine.get_engine()


def make_tx(
    day: date | None = None,
    amount: float | None = None,
    category: str | None = None,
    merchant: str | None = None,
    notes: str | None = None,
) -> Transaction:
    return Transaction(date=day, amount=amount, category=category, merchant=merchant, notes=notes)
