"""Pydantic schemas for collection, sharing and entry endpoints.

Wire names are camelCase; Python attributes are snake_case.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from dataplayground.domain.entities import AccessLevel, FieldType


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FieldDefinition(CamelModel):
    """A field definition in collection requests and responses."""

    name: str = Field(..., description="Field name (unique per collection, ignoring case)")
    type: FieldType = Field(..., description="Field type")


class CollectionRequest(CamelModel):
    """Request body for creating or replacing a collection's name and fields."""

    name: str = Field(..., description="Collection display name")
    fields: list[FieldDefinition] = Field(..., description="Ordered field definitions")


class SharedUserResponse(CamelModel):
    email: str
    access_level: AccessLevel
    user_id: str | None = None


class CollectionSummaryResponse(CamelModel):
    """A collection as listed, without its entries."""

    id: str
    name: str
    fields: list[FieldDefinition]
    entries_count: int
    created_at: datetime
    updated_at: datetime
    is_owner: bool
    access_level: AccessLevel


class CollectionDetailResponse(CollectionSummaryResponse):
    """A single collection with its entries.

    The share list is only included for users with admin access.
    """

    entries: list[dict[str, Any]]
    shared_with: list[SharedUserResponse] | None = None


class PaginationResponse(CamelModel):
    total: int
    page: int
    limit: int
    pages: int
    has_more: bool


class CollectionListResponse(CamelModel):
    success: bool = True
    collections: list[CollectionSummaryResponse]
    pagination: PaginationResponse


class CollectionEnvelope(CamelModel):
    success: bool = True
    message: str | None = None
    collection: CollectionDetailResponse


class StatsResponse(CamelModel):
    total_collections: int
    total_entries: int
    shared_with_me: int
    shared_by_me: int


class StatsEnvelope(CamelModel):
    success: bool = True
    stats: StatsResponse


class ShareRequest(CamelModel):
    """Request body for sharing a collection."""

    email: EmailStr = Field(..., description="Email of the user to share with")
    access_level: AccessLevel = Field(AccessLevel.READ, description="Tier to grant")


class ShareListResponse(CamelModel):
    success: bool = True
    message: str | None = None
    shared_with: list[SharedUserResponse]


class EntryResponse(CamelModel):
    success: bool = True
    message: str
    index: int
    entry: dict[str, Any]


class MessageResponse(CamelModel):
    success: bool = True
    message: str
    deleted_count: int | None = None
