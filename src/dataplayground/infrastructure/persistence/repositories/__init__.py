"""Repositories for Data Playground persistence.

Repositories translate between SQLAlchemy rows and domain entities.
"""

from dataplayground.infrastructure.persistence.repositories.collection_repository import (
    CollectionRepository,
)
from dataplayground.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
)

__all__ = [
    "CollectionRepository",
    "UserRepository",
]
