"""Tests for the Database connection layer."""

from __future__ import annotations

import sqlite3

from circuitry.db.connection import Database


def test_connect_creates_file(tmp_path):
    db_path = tmp_path / ".circuitry.db"
    conn = Database(db_path).connect()
    conn.close()
    assert db_path.exists()


def test_foreign_keys_enabled(tmp_path):
    conn = Database(tmp_path / ".circuitry.db").connect()
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    conn.close()


def test_wal_mode(tmp_path):
    conn = Database(tmp_path / ".circuitry.db").connect()
    assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
    conn.close()


def test_row_factory(tmp_path):
    conn = Database(tmp_path / ".circuitry.db").connect()
    assert conn.row_factory is sqlite3.Row
    conn.close()


def test_context_manager_closes(tmp_path):
    db = Database(tmp_path / ".circuitry.db")
    with db as conn:
        conn.execute("SELECT 1")
    assert db._conn is None
