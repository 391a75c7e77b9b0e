"""Repository for collection operations.

Collections are loaded and written as whole documents. Saving replaces the
fields, entries and share list in full; there is no version check, so the
last writer wins.
"""

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import Text, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dataplayground.domain.entities import (
    AccessLevel,
    Collection,
    Field,
    FieldType,
    SharedUser,
)
from dataplayground.infrastructure.persistence.models import CollectionModel


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.isoformat()
    return value


def _decode_date(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value)
    except ValueError:
        return value


def encode_entry(entry: dict[str, Any]) -> dict[str, Any]:
    """Convert an entry to its JSON document form."""
    return {key: _encode_value(value) for key, value in entry.items()}


def decode_entry(document: dict[str, Any], fields: list[Field]) -> dict[str, Any]:
    """Restore date values of an entry document for the current date fields.

    Keys that are no longer declared are kept untouched.
    """
    date_fields = {f.name for f in fields if f.type is FieldType.DATE}
    return {
        key: _decode_date(value) if key in date_fields else value
        for key, value in document.items()
    }


def to_entity(model: CollectionModel) -> Collection:
    """Convert a collection row into a domain entity."""
    fields = [Field(name=f["name"], type=FieldType(f["type"])) for f in model.fields]
    return Collection(
        id=model.id,
        name=model.name,
        owner_id=model.owner_id,
        fields=fields,
        entries=[decode_entry(doc, fields) for doc in model.entries],
        shared_with=[
            SharedUser(
                email=s["email"],
                access_level=AccessLevel(s["accessLevel"]),
                user_id=s.get("userId"),
            )
            for s in model.shared_with
        ],
        created_at=_as_utc(model.created_at),
        updated_at=_as_utc(model.updated_at),
    )


def _apply(model: CollectionModel, collection: Collection) -> None:
    # Fresh lists so the JSON columns are flagged dirty
    model.name = collection.name
    model.fields = [f.to_dict() for f in collection.fields]
    model.entries = [encode_entry(e) for e in collection.entries]
    model.shared_with = [s.to_dict() for s in collection.shared_with]
    model.updated_at = collection.updated_at


class CollectionRepository:
    """Repository for collection database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, collection: Collection) -> Collection:
        """Create a new collection.

        Args:
            collection: The collection entity to persist.

        Returns:
            The persisted collection.
        """
        model = CollectionModel(
            id=collection.id,
            owner_id=collection.owner_id,
            created_at=collection.created_at,
        )
        _apply(model, collection)
        self.session.add(model)
        await self.session.flush()
        return collection

    async def get_by_id(self, collection_id: str) -> Collection | None:
        """Get a collection by ID.

        Args:
            collection_id: The collection ID.

        Returns:
            The collection if found, None otherwise.
        """
        model = await self._get_model(collection_id)
        return to_entity(model) if model is not None else None

    async def save(self, collection: Collection) -> Collection:
        """Write the whole collection document back.

        Args:
            collection: The mutated collection entity.

        Returns:
            The saved collection.

        Raises:
            ValueError: If the collection no longer exists.
        """
        model = await self._get_model(collection.id)
        if model is None:
            raise ValueError(f"Collection {collection.id} does not exist")
        _apply(model, collection)
        await self.session.flush()
        return collection

    async def delete(self, collection_id: str) -> bool:
        """Delete a collection by ID.

        Args:
            collection_id: The collection ID.

        Returns:
            True if a row was deleted.
        """
        result = await self.session.execute(
            delete(CollectionModel).where(CollectionModel.id == collection_id)
        )
        return result.rowcount > 0

    async def delete_by_owner(self, owner_id: str) -> int:
        """Delete every collection a user owns.

        Args:
            owner_id: The owning user's ID.

        Returns:
            Number of deleted collections.
        """
        result = await self.session.execute(
            delete(CollectionModel).where(CollectionModel.owner_id == owner_id)
        )
        return result.rowcount

    async def count_by_owner(self, owner_id: str) -> int:
        """Count the collections a user owns."""
        result = await self.session.execute(
            select(func.count())
            .select_from(CollectionModel)
            .where(CollectionModel.owner_id == owner_id)
        )
        return result.scalar_one()

    async def find_accessible(self, user_id: str, email: str) -> list[Collection]:
        """Get every collection a user owns or has a share grant on.

        The share lookup is a substring prefilter on the JSON text, narrowed
        to exact grant matches in Python.

        Args:
            user_id: The user's ID.
            email: The user's email.

        Returns:
            Owned and shared collections, unordered.
        """
        shared_text = cast(CollectionModel.shared_with, Text)
        result = await self.session.execute(
            select(CollectionModel).where(
                or_(
                    CollectionModel.owner_id == user_id,
                    shared_text.contains(user_id, autoescape=True),
                    shared_text.contains(email.lower(), autoescape=True),
                )
            )
        )
        collections = []
        for model in result.scalars().all():
            collection = to_entity(model)
            if collection.is_owner(user_id) or self._shared_with(collection, user_id, email):
                collections.append(collection)
        return collections

    async def find_shared_with_email(self, email: str) -> list[Collection]:
        """Get collections holding a share grant for this exact email."""
        email = email.lower()
        result = await self.session.execute(
            select(CollectionModel).where(
                cast(CollectionModel.shared_with, Text).contains(email, autoescape=True)
            )
        )
        collections = [to_entity(model) for model in result.scalars().all()]
        return [c for c in collections if c.share_for_email(email) is not None]

    @staticmethod
    def _shared_with(collection: Collection, user_id: str, email: str) -> bool:
        return (
            collection.find_share(user_id) is not None
            or collection.share_for_email(email) is not None
        )

    async def _get_model(self, collection_id: str) -> CollectionModel | None:
        result = await self.session.execute(
            select(CollectionModel).where(CollectionModel.id == collection_id)
        )
        return result.scalar_one_or_none()
