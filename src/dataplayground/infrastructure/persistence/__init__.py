"""Persistence layer: database manager, models and repositories."""

from dataplayground.infrastructure.persistence.database import (
    Base,
    DatabaseManager,
    get_db_session,
    init_database,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_session",
    "init_database",
]
