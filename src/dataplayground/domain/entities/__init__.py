"""Domain entities for Data Playground.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from dataplayground.domain.entities.collection import (
    AccessLevel,
    Collection,
    Field,
    FieldType,
    SharedUser,
)
from dataplayground.domain.entities.user import User

__all__ = [
    "AccessLevel",
    "Collection",
    "Field",
    "FieldType",
    "SharedUser",
    "User",
]
