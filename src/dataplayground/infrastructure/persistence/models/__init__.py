"""SQLAlchemy models for Data Playground tables.

All models inherit from the Base class defined in database.py and are
created on application startup outside production.
"""

from dataplayground.infrastructure.persistence.models.collection import CollectionModel
from dataplayground.infrastructure.persistence.models.user import UserModel

__all__ = [
    "CollectionModel",
    "UserModel",
]
