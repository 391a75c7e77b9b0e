"""API Schemas for request/response validation."""

from dataplayground.infrastructure.api.schemas.auth_schemas import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from dataplayground.infrastructure.api.schemas.collection_schemas import (
    CollectionDetailResponse,
    CollectionEnvelope,
    CollectionListResponse,
    CollectionRequest,
    CollectionSummaryResponse,
    FieldDefinition,
    MessageResponse,
    EntryResponse,
    PaginationResponse,
    ShareListResponse,
    ShareRequest,
    SharedUserResponse,
    StatsEnvelope,
    StatsResponse,
)

__all__ = [
    "AuthResponse",
    "CollectionDetailResponse",
    "CollectionEnvelope",
    "CollectionListResponse",
    "CollectionRequest",
    "CollectionSummaryResponse",
    "EntryResponse",
    "FieldDefinition",
    "LoginRequest",
    "MessageResponse",
    "PaginationResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "RegisterRequest",
    "ShareListResponse",
    "ShareRequest",
    "SharedUserResponse",
    "StatsEnvelope",
    "StatsResponse",
    "UserResponse",
]
