"""Forward-only migration runner for Circuitry's database schema."""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

# Timestamps carry milliseconds so uploads within the same second keep their
# order; ties are broken by id.
_V1_SQL = """
CREATE TABLE IF NOT EXISTS circuits (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    code                TEXT NOT NULL UNIQUE,
    name                TEXT NOT NULL,
    grade               TEXT NOT NULL,
    owner               TEXT NOT NULL,
    description         TEXT NOT NULL DEFAULT '',
    teaching_styles     TEXT NOT NULL DEFAULT '["hybrid"]',
    homework_policies   TEXT NOT NULL DEFAULT '["guide"]',
    response_types      TEXT NOT NULL DEFAULT '["detailed"]',
    state_alignment     TEXT NOT NULL DEFAULT 'California',
    archived            INTEGER NOT NULL DEFAULT 0,
    created_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);

CREATE TABLE IF NOT EXISTS content_items (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    circuit_id      INTEGER NOT NULL REFERENCES circuits(id) ON DELETE CASCADE,
    title           TEXT NOT NULL,
    description     TEXT NOT NULL DEFAULT '',
    kind            TEXT NOT NULL,
    category        TEXT NOT NULL DEFAULT 'reference_material',
    content         TEXT NOT NULL DEFAULT '',
    content_url     TEXT NOT NULL DEFAULT '',
    archived        INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_content_items_circuit
    ON content_items (circuit_id, archived, created_at);

CREATE INDEX IF NOT EXISTS idx_circuits_owner
    ON circuits (owner, archived);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
