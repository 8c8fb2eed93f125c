"""Tests for the forward-only migration runner."""

from __future__ import annotations

from ragbox.db.connection import Database
from ragbox.db.migrations import MIGRATIONS, run_migrations
from ragbox.db.schema import CURRENT_VERSION, initialize, schema_version


def _fresh_conn(tmp_path):
    """Open a new connection without running migrations."""
    db = Database(tmp_path / "test.db")
    return db.connect()


def _table_exists(conn, name: str) -> bool:
    return conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,)
    ).fetchone() is not None


# --- Bootstrap ---

def test_run_migrations_creates_schema_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert _table_exists(conn, "schema_version")
    conn.close()


def test_run_migrations_records_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
    assert version == MIGRATIONS[-1][0]
    conn.close()


def test_v1_creates_documents_and_fts(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert _table_exists(conn, "documents")
    assert _table_exists(conn, "chunks_fts")
    conn.close()


def test_documents_columns(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    cols = [r["name"] for r in conn.execute("PRAGMA table_info(documents)").fetchall()]
    assert cols == ["id", "title", "content", "created_at"]
    conn.close()


def test_chunks_fts_uses_porter_tokenizer(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    sql = conn.execute(
        "SELECT sql FROM sqlite_master WHERE name='chunks_fts'"
    ).fetchone()[0]
    assert "porter" in sql
    assert "doc_id UNINDEXED" in sql
    conn.close()


# --- Idempotency ---

def test_run_migrations_idempotent(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    run_migrations(conn)
    count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert count == len(MIGRATIONS)
    conn.close()


def test_initialize_keeps_existing_data(tmp_path):
    conn = _fresh_conn(tmp_path)
    initialize(conn)
    conn.execute("INSERT INTO documents (title, content) VALUES ('t', 'c')")
    conn.commit()
    initialize(conn)
    assert conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0] == 1
    conn.close()


# --- schema_version() ---

def test_schema_version_fresh_db_is_zero(tmp_path):
    conn = _fresh_conn(tmp_path)
    assert schema_version(conn) == 0
    conn.close()


def test_schema_version_after_initialize(tmp_path):
    conn = _fresh_conn(tmp_path)
    initialize(conn)
    assert schema_version(conn) == CURRENT_VERSION
    conn.close()
