"""Collections API routes.

Provides endpoints for collection CRUD, listing and stats, sharing, and
positional entry operations. Static paths (/stats, /all) are declared
before /{collection_id} so they are not captured by it.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from dataplayground.core.logging import get_logger
from dataplayground.domain.entities import AccessLevel, Collection, SharedUser
from dataplayground.domain.services import AccessResult, CollectionService
from dataplayground.domain.services.access_resolver import REASON_OWNER
from dataplayground.infrastructure.api.dependencies import (
    AppSettings,
    AuthenticatedUser,
    DbSession,
    get_collection_service,
)
from dataplayground.infrastructure.api.schemas import (
    CollectionDetailResponse,
    CollectionEnvelope,
    CollectionListResponse,
    CollectionRequest,
    CollectionSummaryResponse,
    EntryResponse,
    FieldDefinition,
    MessageResponse,
    PaginationResponse,
    ShareListResponse,
    ShareRequest,
    SharedUserResponse,
    StatsEnvelope,
    StatsResponse,
)

logger = get_logger(__name__)

router = APIRouter()

CollectionServiceDep = Annotated[CollectionService, Depends(get_collection_service)]


def _fields(collection: Collection) -> list[FieldDefinition]:
    return [FieldDefinition(name=f.name, type=f.type) for f in collection.fields]


def _shares(shares: list[SharedUser]) -> list[SharedUserResponse]:
    return [
        SharedUserResponse(email=s.email, access_level=s.access_level, user_id=s.user_id)
        for s in shares
    ]


def _detail(result: AccessResult) -> CollectionDetailResponse:
    collection = result.collection
    is_admin = result.access_level is AccessLevel.ADMIN
    return CollectionDetailResponse(
        id=collection.id,
        name=collection.name,
        fields=_fields(collection),
        entries=collection.entries,
        entries_count=collection.entries_count,
        created_at=collection.created_at,
        updated_at=collection.updated_at,
        is_owner=result.is_owner,
        access_level=result.access_level,
        shared_with=_shares(collection.shared_with) if is_admin else None,
    )


@router.get("", response_model=CollectionListResponse)
async def list_collections(
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    settings: AppSettings,
    page: Annotated[int, Query()] = 1,
    limit: Annotated[int | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    sort: Annotated[str | None, Query()] = None,
) -> CollectionListResponse:
    """List owned and shared collections.

    Supports a name search, sorting by createdAt, updatedAt or name
    ("key:asc" or "key:desc"), and page/limit pagination.
    """
    result = await collection_service.list_collections(
        current_user.user_id,
        current_user.email,
        page=page,
        limit=limit if limit is not None else settings.default_page_size,
        search=search,
        sort=sort,
    )
    return CollectionListResponse(
        collections=[
            CollectionSummaryResponse(
                id=item.collection.id,
                name=item.collection.name,
                fields=_fields(item.collection),
                entries_count=item.collection.entries_count,
                created_at=item.collection.created_at,
                updated_at=item.collection.updated_at,
                is_owner=item.is_owner,
                access_level=item.access_level,
            )
            for item in result.items
        ],
        pagination=PaginationResponse(
            total=result.total,
            page=result.page,
            limit=result.limit,
            pages=result.pages,
            has_more=result.has_more,
        ),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CollectionEnvelope,
    responses={
        400: {"description": "Validation error"},
        409: {"description": "Duplicate field names"},
    },
)
async def create_collection(
    request: CollectionRequest,
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> CollectionEnvelope:
    """Create a new collection owned by the current user."""
    collection = await collection_service.create_collection(
        current_user.user_id,
        request.name,
        [f.model_dump() for f in request.fields],
    )
    await session.commit()
    result = AccessResult(
        granted=True,
        collection=collection,
        reason=REASON_OWNER,
        access_level=AccessLevel.ADMIN,
    )
    return CollectionEnvelope(message="Collection created successfully", collection=_detail(result))


@router.get("/stats", response_model=StatsEnvelope)
async def get_stats(
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
) -> StatsEnvelope:
    """Return collection counters for the current user."""
    stats = await collection_service.get_stats(current_user.user_id, current_user.email)
    return StatsEnvelope(
        stats=StatsResponse(
            total_collections=stats.total_collections,
            total_entries=stats.total_entries,
            shared_with_me=stats.shared_with_me,
            shared_by_me=stats.shared_by_me,
        )
    )


@router.delete("/all", response_model=MessageResponse)
async def delete_all_collections(
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> MessageResponse:
    """Delete every collection the current user owns."""
    deleted = await collection_service.delete_all_collections(current_user.user_id)
    await session.commit()
    return MessageResponse(
        message=f"Deleted {deleted} collection{'s' if deleted != 1 else ''}",
        deleted_count=deleted,
    )


@router.get(
    "/{collection_id}",
    response_model=CollectionEnvelope,
    responses={403: {"description": "No access"}, 404: {"description": "Collection not found"}},
)
async def get_collection(
    collection_id: str,
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
) -> CollectionEnvelope:
    """Get a collection with its entries."""
    result = await collection_service.get_collection(collection_id, current_user.user_id)
    return CollectionEnvelope(collection=_detail(result))


@router.put(
    "/{collection_id}",
    response_model=CollectionEnvelope,
    responses={
        400: {"description": "Validation error"},
        403: {"description": "Admin access required"},
        404: {"description": "Collection not found"},
        409: {"description": "Duplicate field names"},
    },
)
async def update_collection(
    collection_id: str,
    request: CollectionRequest,
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> CollectionEnvelope:
    """Replace a collection's name and fields. Entries are kept."""
    result = await collection_service.update_collection(
        collection_id,
        current_user.user_id,
        request.name,
        [f.model_dump() for f in request.fields],
    )
    await session.commit()
    return CollectionEnvelope(message="Collection updated successfully", collection=_detail(result))


@router.delete(
    "/{collection_id}",
    response_model=MessageResponse,
    responses={403: {"description": "Only the owner can delete"}, 404: {"description": "Collection not found"}},
)
async def delete_collection(
    collection_id: str,
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> MessageResponse:
    """Delete a collection with its entries and shares."""
    await collection_service.delete_collection(collection_id, current_user.user_id)
    await session.commit()
    return MessageResponse(message="Collection deleted successfully")


# Sharing


@router.get("/{collection_id}/share", response_model=ShareListResponse)
async def list_shares(
    collection_id: str,
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
) -> ShareListResponse:
    """List the users a collection is shared with."""
    shares = await collection_service.list_shares(collection_id, current_user.user_id)
    return ShareListResponse(shared_with=_shares(shares))


@router.post("/{collection_id}/share", response_model=ShareListResponse)
async def share_collection(
    collection_id: str,
    request: ShareRequest,
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> ShareListResponse:
    """Share a collection with an email, or change that email's tier."""
    await collection_service.share_collection(
        collection_id,
        current_user.user_id,
        request.email,
        request.access_level,
    )
    await session.commit()
    shares = await collection_service.list_shares(collection_id, current_user.user_id)
    return ShareListResponse(
        message=f"Collection shared with {request.email.lower()}",
        shared_with=_shares(shares),
    )


@router.delete("/{collection_id}/share/{email}", response_model=ShareListResponse)
async def unshare_collection(
    collection_id: str,
    email: str,
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> ShareListResponse:
    """Stop sharing a collection with an email."""
    await collection_service.unshare_collection(collection_id, current_user.user_id, email)
    await session.commit()
    shares = await collection_service.list_shares(collection_id, current_user.user_id)
    return ShareListResponse(message="Access removed successfully", shared_with=_shares(shares))


# Entries


@router.post(
    "/{collection_id}/entries",
    status_code=status.HTTP_201_CREATED,
    response_model=EntryResponse,
    responses={400: {"description": "Entry does not match the collection's fields"}},
)
async def add_entry(
    collection_id: str,
    entry: Annotated[Any, Body()],
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> EntryResponse:
    """Append an entry to a collection."""
    index, sanitized = await collection_service.add_entry(
        collection_id, current_user.user_id, entry
    )
    await session.commit()
    return EntryResponse(message="Entry added successfully", index=index, entry=sanitized)


@router.put(
    "/{collection_id}/entries/{index}",
    response_model=EntryResponse,
    responses={404: {"description": "Collection or entry not found"}},
)
async def update_entry(
    collection_id: str,
    index: str,
    entry: Annotated[Any, Body()],
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> EntryResponse:
    """Replace the entry at a position."""
    sanitized = await collection_service.update_entry(
        collection_id, current_user.user_id, index, entry
    )
    await session.commit()
    return EntryResponse(message="Entry updated successfully", index=int(index), entry=sanitized)


@router.delete(
    "/{collection_id}/entries/{index}",
    response_model=MessageResponse,
    responses={404: {"description": "Collection or entry not found"}},
)
async def delete_entry(
    collection_id: str,
    index: str,
    current_user: AuthenticatedUser,
    collection_service: CollectionServiceDep,
    session: DbSession,
) -> MessageResponse:
    """Remove the entry at a position. Later entries shift down by one."""
    await collection_service.delete_entry(collection_id, current_user.user_id, index)
    await session.commit()
    return MessageResponse(message="Entry deleted successfully")
