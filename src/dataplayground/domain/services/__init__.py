"""Domain services for Data Playground.

Services contain business logic that doesn't naturally fit within a single entity.
"""

from dataplayground.domain.services.access_resolver import AccessResolver, AccessResult
from dataplayground.domain.services.auth_service import AuthResult, AuthService, ProfileUpdate
from dataplayground.domain.services.collection_service import (
    CollectionPage,
    CollectionService,
    CollectionStats,
    CollectionSummary,
)
from dataplayground.domain.services.collection_validator import CollectionValidator
from dataplayground.domain.services.entry_validator import (
    EntryRules,
    FieldRule,
    SchemaValidator,
)
from dataplayground.domain.services.password_validator import (
    PasswordValidator,
    default_password_validator,
)
from dataplayground.domain.services.sanitizer import sanitize_text

__all__ = [
    "AccessResolver",
    "AccessResult",
    "AuthResult",
    "AuthService",
    "CollectionPage",
    "CollectionService",
    "CollectionStats",
    "CollectionSummary",
    "CollectionValidator",
    "EntryRules",
    "FieldRule",
    "PasswordValidator",
    "ProfileUpdate",
    "SchemaValidator",
    "default_password_validator",
    "sanitize_text",
]
