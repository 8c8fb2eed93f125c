"""ragbox database layer."""

from ragbox.db.connection import Database
from ragbox.db.migrations import MIGRATIONS, run_migrations
from ragbox.db.schema import initialize

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
]
