"""Collection entity for user-defined tabular data.

A collection is a named list of typed fields plus the entries that fill
them. Entries have no identity of their own and are addressed by position.
Collections can be shared with other users at read, write or admin tier.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class FieldType(str, Enum):
    """Supported field types for collection fields."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    RATING = "rating"
    TIME = "time"


class AccessLevel(str, Enum):
    """Access tiers a collection can be shared at, ordered read < write < admin."""

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _ACCESS_RANKS[self]

    def satisfies(self, required: "AccessLevel") -> bool:
        """Check whether this tier is at least the required tier."""
        return self.rank >= required.rank


_ACCESS_RANKS = {
    AccessLevel.READ: 1,
    AccessLevel.WRITE: 2,
    AccessLevel.ADMIN: 3,
}


@dataclass(frozen=True)
class Field:
    """A typed column definition of a collection."""

    name: str
    type: FieldType

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "type": self.type.value}


@dataclass
class SharedUser:
    """A share grant embedded in a collection, keyed by lowercase email.

    Attributes:
        email: Lowercased email the collection is shared with.
        access_level: Tier granted to that email.
        user_id: ID of the registered user owning the email, once known.
    """

    email: str
    access_level: AccessLevel
    user_id: str | None = None

    def __post_init__(self) -> None:
        if not self.email:
            raise ValueError("Share email is required")
        self.email = self.email.lower()

    def matches(self, principal: str) -> bool:
        """Check whether this grant belongs to the given user ID or email."""
        if self.user_id is not None and self.user_id == principal:
            return True
        return self.email == principal.lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "accessLevel": self.access_level.value,
            "userId": self.user_id,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Collection:
    """Collection entity representing a user-defined table and its entries.

    Attributes:
        id: Unique identifier (UUID string).
        name: Display name.
        owner_id: ID of the user that created the collection.
        fields: Ordered field definitions.
        entries: Ordered entry records, addressed by index.
        shared_with: Share grants, at most one per email.
        created_at: Timestamp when the collection was created.
        updated_at: Timestamp when the collection was last updated.
    """

    id: str
    name: str
    owner_id: str
    fields: list[Field]
    entries: list[dict[str, Any]] = field(default_factory=list)
    shared_with: list[SharedUser] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        """Validate collection data after initialization."""
        if not self.id:
            raise ValueError("Collection ID is required")
        if not self.name:
            raise ValueError("Collection name is required")
        if not self.owner_id:
            raise ValueError("Collection owner is required")

    @property
    def entries_count(self) -> int:
        return len(self.entries)

    def is_owner(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def find_share(self, principal: str) -> SharedUser | None:
        """Find the share grant matching a user ID or an email, if any."""
        for share in self.shared_with:
            if share.matches(principal):
                return share
        return None

    def share_for_email(self, email: str) -> SharedUser | None:
        """Find the share grant keyed by exactly this email."""
        email = email.lower()
        for share in self.shared_with:
            if share.email == email:
                return share
        return None

    def touch(self) -> None:
        self.updated_at = _utcnow()
