"""Collection service for business logic.

Every collection-scoped operation resolves access first, then validates
the payload, then writes the whole collection document back. Callers own
the transaction and commit after a successful call.
"""

import math
import re
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from dataplayground.core.logging import get_logger
from dataplayground.domain.entities import AccessLevel, Collection, SharedUser, User
from dataplayground.domain.exceptions import (
    FieldError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from dataplayground.domain.services.access_resolver import (
    REASON_NOT_FOUND,
    AccessResolver,
    AccessResult,
)
from dataplayground.domain.services.collection_validator import CollectionValidator
from dataplayground.domain.services.entry_validator import SchemaValidator
from dataplayground.infrastructure.persistence.repositories import (
    CollectionRepository,
    UserRepository,
)

logger = get_logger(__name__)

SORT_KEYS = {
    "createdAt": lambda c: c.created_at,
    "updatedAt": lambda c: c.updated_at,
    "name": lambda c: c.name.lower(),
}
DEFAULT_SORT = "createdAt:desc"
INDEX_PATTERN = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class CollectionSummary:
    """A collection as seen in a listing by one user."""

    collection: Collection
    is_owner: bool
    access_level: AccessLevel


@dataclass(frozen=True)
class CollectionPage:
    """One page of a user's merged owned and shared collections."""

    items: list[CollectionSummary]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    @property
    def has_more(self) -> bool:
        return self.page < self.pages


@dataclass(frozen=True)
class CollectionStats:
    """Per-user collection counters."""

    total_collections: int
    total_entries: int
    shared_with_me: int
    shared_by_me: int


def parse_sort(sort: str | None) -> tuple[str, bool]:
    """Parse a "<key>:<asc|desc>" sort expression.

    Args:
        sort: Sort expression, or None for the default.

    Returns:
        Tuple of (sort key, descending).

    Raises:
        ValidationError: If the key or direction is unknown.
    """
    key, _, direction = (sort or DEFAULT_SORT).partition(":")
    direction = direction or "asc"
    if key not in SORT_KEYS or direction not in ("asc", "desc"):
        raise ValidationError.single(
            "sort",
            f"Sort must be '<key>:<asc|desc>' with key one of: {', '.join(SORT_KEYS)}",
        )
    return key, direction == "desc"


def parse_entry_index(index: int | str, length: int) -> int:
    """Resolve a positional entry index, raising NotFoundError if out of bounds."""
    if isinstance(index, bool):
        raise NotFoundError("Entry not found")
    if isinstance(index, str):
        if not INDEX_PATTERN.fullmatch(index.strip()):
            raise NotFoundError("Entry not found")
        index = int(index)
    if not 0 <= index < length:
        raise NotFoundError("Entry not found")
    return index


class CollectionService:
    """Service for collection, sharing and entry operations."""

    def __init__(self, session: AsyncSession, max_page_size: int = 100) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            max_page_size: Largest accepted listing page size.
        """
        self.session = session
        self.max_page_size = max_page_size
        self.collections = CollectionRepository(session)
        self.users = UserRepository(session)
        self.resolver = AccessResolver(self.collections)

    async def authorize(
        self, collection_id: str, user_id: str, required: AccessLevel
    ) -> AccessResult:
        """Resolve access and raise unless it is granted.

        Raises:
            NotFoundError: If the collection does not exist.
            ForbiddenError: If the user lacks the required tier.
        """
        result = await self.resolver.resolve(collection_id, user_id, required)
        if result.reason == REASON_NOT_FOUND:
            raise NotFoundError("Collection not found")
        if not result.granted:
            logger.info(
                "Collection access denied",
                collection_id=collection_id,
                user_id=user_id,
                required=required.value,
                reason=result.reason,
            )
            raise ForbiddenError("You do not have permission to perform this action")
        return result

    # Collections

    async def create_collection(
        self, owner_id: str, name: str, fields: list[dict[str, Any]]
    ) -> Collection:
        """Create a collection owned by a user.

        Raises:
            ValidationError: If the name or fields are invalid.
            ConflictError: If field names collide case-insensitively.
        """
        clean_name, clean_fields = CollectionValidator.clean(name, fields)
        collection = Collection(
            id=str(uuid.uuid4()),
            name=clean_name,
            owner_id=owner_id,
            fields=clean_fields,
        )
        await self.collections.create(collection)
        logger.info(
            "Collection created",
            collection_id=collection.id,
            owner_id=owner_id,
            field_count=len(clean_fields),
        )
        return collection

    async def get_collection(self, collection_id: str, user_id: str) -> AccessResult:
        """Load a collection the user may read, with their effective access."""
        return await self.authorize(collection_id, user_id, AccessLevel.READ)

    async def update_collection(
        self,
        collection_id: str,
        user_id: str,
        name: str,
        fields: list[dict[str, Any]],
    ) -> AccessResult:
        """Replace a collection's name and fields.

        Existing entries are kept as they are, even for removed fields.
        """
        result = await self.authorize(collection_id, user_id, AccessLevel.ADMIN)
        clean_name, clean_fields = CollectionValidator.clean(name, fields)

        collection = result.collection
        collection.name = clean_name
        collection.fields = clean_fields
        collection.touch()
        await self.collections.save(collection)
        logger.info("Collection updated", collection_id=collection_id, user_id=user_id)
        return result

    async def delete_collection(self, collection_id: str, user_id: str) -> None:
        """Delete a collection. Only its owner may do this."""
        result = await self.authorize(collection_id, user_id, AccessLevel.ADMIN)
        if not result.is_owner:
            raise ForbiddenError("Only the owner can delete this collection")
        await self.collections.delete(collection_id)
        logger.info("Collection deleted", collection_id=collection_id, user_id=user_id)

    async def delete_all_collections(self, user_id: str) -> int:
        """Delete every collection the user owns.

        Returns:
            Number of deleted collections.
        """
        deleted = await self.collections.delete_by_owner(user_id)
        logger.info("All owned collections deleted", user_id=user_id, count=deleted)
        return deleted

    async def list_collections(
        self,
        user_id: str,
        email: str,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        sort: str | None = None,
    ) -> CollectionPage:
        """List owned and shared collections, filtered, sorted and paginated.

        Args:
            user_id: The requesting user's ID.
            email: The requesting user's email.
            page: 1-based page number.
            limit: Page size.
            search: Case-insensitive substring of the collection name.
            sort: "<key>:<asc|desc>", key one of createdAt, updatedAt, name.

        Raises:
            ValidationError: On an invalid page, limit or sort.
        """
        errors: list[FieldError] = []
        if page < 1:
            errors.append(FieldError(field="page", message="Page must be at least 1"))
        if not 1 <= limit <= self.max_page_size:
            errors.append(
                FieldError(
                    field="limit",
                    message=f"Limit must be between 1 and {self.max_page_size}",
                )
            )
        if errors:
            raise ValidationError(errors)
        sort_key, descending = parse_sort(sort)

        collections = await self.collections.find_accessible(user_id, email)
        if search and search.strip():
            needle = search.strip().lower()
            collections = [c for c in collections if needle in c.name.lower()]

        collections.sort(key=lambda c: c.id)
        collections.sort(key=SORT_KEYS[sort_key], reverse=descending)

        start = (page - 1) * limit
        items = [self._summarize(c, user_id, email) for c in collections[start:start + limit]]
        return CollectionPage(items=items, total=len(collections), page=page, limit=limit)

    async def get_stats(self, user_id: str, email: str) -> CollectionStats:
        """Count owned collections, their entries, and shares in both directions."""
        collections = await self.collections.find_accessible(user_id, email)
        owned = [c for c in collections if c.is_owner(user_id)]
        return CollectionStats(
            total_collections=len(owned),
            total_entries=sum(c.entries_count for c in owned),
            shared_with_me=len(collections) - len(owned),
            shared_by_me=sum(1 for c in owned if c.shared_with),
        )

    @staticmethod
    def _summarize(collection: Collection, user_id: str, email: str) -> CollectionSummary:
        if collection.is_owner(user_id):
            return CollectionSummary(collection, is_owner=True, access_level=AccessLevel.ADMIN)
        share = collection.find_share(user_id) or collection.share_for_email(email)
        return CollectionSummary(collection, is_owner=False, access_level=share.access_level)

    # Sharing

    async def share_collection(
        self,
        collection_id: str,
        user_id: str,
        email: str,
        access_level: AccessLevel,
    ) -> SharedUser:
        """Grant or change a user's access, keyed by lowercase email.

        A second share for the same email replaces its tier.

        Raises:
            ValidationError: If the email belongs to the owner.
        """
        result = await self.authorize(collection_id, user_id, AccessLevel.ADMIN)
        collection = result.collection
        email = email.strip().lower()

        owner = await self.users.get_by_id(collection.owner_id)
        if owner is not None and owner.email == email:
            raise ValidationError.single("email", "Cannot share a collection with its owner")

        target = await self.users.get_by_email(email)
        share = collection.share_for_email(email)
        if share is None:
            share = SharedUser(email=email, access_level=access_level)
            collection.shared_with.append(share)
        else:
            share.access_level = access_level
        if target is not None:
            share.user_id = target.id

        collection.touch()
        await self.collections.save(collection)
        logger.info(
            "Collection shared",
            collection_id=collection_id,
            user_id=user_id,
            access_level=access_level.value,
            registered=target is not None,
        )
        return share

    async def list_shares(self, collection_id: str, user_id: str) -> list[SharedUser]:
        result = await self.authorize(collection_id, user_id, AccessLevel.ADMIN)
        return list(result.collection.shared_with)

    async def unshare_collection(self, collection_id: str, user_id: str, email: str) -> None:
        """Remove the share grant for an email.

        Raises:
            NotFoundError: If the collection has no grant for the email.
        """
        result = await self.authorize(collection_id, user_id, AccessLevel.ADMIN)
        collection = result.collection
        share = collection.share_for_email(email)
        if share is None:
            raise NotFoundError("Shared user not found")

        collection.shared_with.remove(share)
        collection.touch()
        await self.collections.save(collection)
        logger.info("Collection unshared", collection_id=collection_id, user_id=user_id)

    async def link_pending_shares(self, user: User) -> int:
        """Attach a user's ID to share grants recorded for their email.

        Returns:
            Number of collections updated.
        """
        linked = 0
        for collection in await self.collections.find_shared_with_email(user.email):
            share = collection.share_for_email(user.email)
            if share.user_id == user.id:
                continue
            share.user_id = user.id
            await self.collections.save(collection)
            linked += 1
        if linked:
            logger.info("Pending shares linked", user_id=user.id, count=linked)
        return linked

    # Entries

    async def add_entry(
        self, collection_id: str, user_id: str, raw_entry: Any
    ) -> tuple[int, dict[str, Any]]:
        """Validate an entry and append it.

        Returns:
            Tuple of (index of the new entry, sanitized entry).
        """
        result = await self.authorize(collection_id, user_id, AccessLevel.WRITE)
        collection = result.collection
        entry = self._validate_entry(collection, raw_entry)

        collection.entries.append(entry)
        collection.touch()
        await self.collections.save(collection)
        index = len(collection.entries) - 1
        logger.info("Entry added", collection_id=collection_id, user_id=user_id, index=index)
        return index, entry

    async def update_entry(
        self, collection_id: str, user_id: str, index: int | str, raw_entry: Any
    ) -> dict[str, Any]:
        """Validate an entry and replace the one at a position."""
        result = await self.authorize(collection_id, user_id, AccessLevel.WRITE)
        collection = result.collection
        position = parse_entry_index(index, len(collection.entries))
        entry = self._validate_entry(collection, raw_entry)

        collection.entries[position] = entry
        collection.touch()
        await self.collections.save(collection)
        logger.info("Entry updated", collection_id=collection_id, user_id=user_id, index=position)
        return entry

    async def delete_entry(self, collection_id: str, user_id: str, index: int | str) -> None:
        """Remove the entry at a position, shifting later entries down."""
        result = await self.authorize(collection_id, user_id, AccessLevel.WRITE)
        collection = result.collection
        position = parse_entry_index(index, len(collection.entries))

        del collection.entries[position]
        collection.touch()
        await self.collections.save(collection)
        logger.info("Entry deleted", collection_id=collection_id, user_id=user_id, index=position)

    @staticmethod
    def _validate_entry(collection: Collection, raw_entry: Any) -> dict[str, Any]:
        rules = SchemaValidator.build_rules(collection.fields)
        return SchemaValidator.validate_and_sanitize(rules, raw_entry)
