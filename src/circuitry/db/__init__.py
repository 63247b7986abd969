"""Circuitry database layer."""

from circuitry.db.connection import Database
from circuitry.db.migrations import MIGRATIONS, run_migrations
from circuitry.db.repository import Repository
from circuitry.db.schema import initialize

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
]
