"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from ragbox.db.connection import Database
from ragbox.db.repository import Repository
from ragbox.db.schema import initialize


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the real ~/.ragbox/config.yaml and LLM_* env vars out of every test."""
    monkeypatch.setattr("ragbox.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global" / "config.yaml")
    for var in ("LLM_HOST", "LLM_MODEL", "RAGBOX_DB", "RAGBOX_GENERATION_BACKEND"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "rag.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)
