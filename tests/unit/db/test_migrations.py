"""Tests for the forward-only migration runner."""

from __future__ import annotations

from circuitry.db.connection import Database
from circuitry.db.migrations import MIGRATIONS, run_migrations
from circuitry.db.schema import CURRENT_VERSION, initialize


def _fresh_conn(tmp_path):
    """Open a new connection without running migrations."""
    return Database(tmp_path / "test.db").connect()


def _table_exists(conn, name: str) -> bool:
    return conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
    ).fetchone() is not None


def test_run_migrations_creates_tables(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    for table in ("schema_version", "circuits", "content_items"):
        assert _table_exists(conn, table)
    conn.close()


def test_run_migrations_records_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
    assert version == MIGRATIONS[-1][0] == CURRENT_VERSION
    conn.close()


def test_run_migrations_idempotent(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    initialize(conn)
    count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert count == len(MIGRATIONS)
    conn.close()


def test_migration_versions_strictly_increasing():
    versions = [v for v, _ in MIGRATIONS]
    assert versions == sorted(set(versions))


def test_created_at_has_millisecond_precision(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    conn.execute(
        "INSERT INTO circuits (code, name, grade, owner) VALUES ('ABCDEFGH', 'Art', 'K', 't')"
    )
    created_at = conn.execute("SELECT created_at FROM circuits").fetchone()[0]
    assert "." in created_at
    conn.close()


def test_deleting_circuit_cascades_to_content(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    conn.execute(
        "INSERT INTO circuits (code, name, grade, owner) VALUES ('ABCDEFGH', 'Art', 'K', 't')"
    )
    conn.execute(
        "INSERT INTO content_items (circuit_id, title, kind) VALUES (1, 'Notes', 'txt')"
    )
    conn.execute("DELETE FROM circuits WHERE id = 1")
    assert conn.execute("SELECT COUNT(*) FROM content_items").fetchone()[0] == 0
    conn.close()
