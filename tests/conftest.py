"""Shared pytest fixtures."""

from __future__ import annotations

import logging

import pytest
import structlog

from circuitry.circuits import create_circuit
from circuitry.db.connection import Database
from circuitry.db.repository import Repository
from circuitry.db.schema import initialize


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".circuitry.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def circuit(repo):
    """Kindergarten circuit with default settings."""
    return create_circuit(repo, name="Earth Science", owner="teacher-1", grade="K")


@pytest.fixture(autouse=True)
def _reset_logging():
    """CLI runs point the root handler at a captured stream; drop it afterwards."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
