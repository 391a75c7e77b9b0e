"""Collection access resolution.

Decides whether a principal may act on a collection at a required tier.
The owner always has full access. Anyone else needs a matching share
grant whose tier is at least the required one.
"""

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from dataplayground.core.logging import get_logger
from dataplayground.domain.entities import AccessLevel, Collection
from dataplayground.domain.exceptions import LookupFailedError

logger = get_logger(__name__)

REASON_NOT_FOUND = "not found"
REASON_OWNER = "owner"
REASON_SHARED = "shared"
REASON_NO_ACCESS = "no access"
REASON_INSUFFICIENT = "insufficient access"


class CollectionLookup(Protocol):
    async def get_by_id(self, collection_id: str) -> Collection | None: ...


@dataclass(frozen=True)
class AccessResult:
    """Result of access resolution.

    Attributes:
        granted: Whether the operation may proceed.
        collection: The collection, or None when it does not exist.
        reason: One of "not found", "owner", "shared", "no access",
            "insufficient access".
        access_level: The principal's effective tier, when they have one.
    """

    granted: bool
    collection: Collection | None
    reason: str
    access_level: AccessLevel | None = None

    @property
    def is_owner(self) -> bool:
        return self.reason == REASON_OWNER


class AccessResolver:
    """Resolves a principal's access to a collection.

    Share grants match on linked user ID or on lowercase email. Callers may
    pass either identifier as the principal.
    """

    def __init__(self, collections: CollectionLookup) -> None:
        """Initialize the resolver.

        Args:
            collections: Anything that can load a collection by ID.
        """
        self.collections = collections

    async def resolve(
        self,
        collection_id: str,
        principal: str,
        required: AccessLevel = AccessLevel.READ,
    ) -> AccessResult:
        """Resolve access for a principal at a required tier.

        Args:
            collection_id: ID of the collection.
            principal: Requesting user's ID (or email).
            required: Minimum tier the operation needs.

        Returns:
            AccessResult describing the decision.

        Raises:
            LookupFailedError: If the collection could not be loaded.
        """
        try:
            collection = await self.collections.get_by_id(collection_id)
        except SQLAlchemyError as e:
            logger.error(
                "Collection lookup failed",
                collection_id=collection_id,
                error=str(e),
            )
            raise LookupFailedError("Failed to look up collection") from e

        if collection is None:
            return AccessResult(granted=False, collection=None, reason=REASON_NOT_FOUND)

        if collection.is_owner(principal):
            return AccessResult(
                granted=True,
                collection=collection,
                reason=REASON_OWNER,
                access_level=AccessLevel.ADMIN,
            )

        share = collection.find_share(principal)
        if share is None:
            return AccessResult(granted=False, collection=collection, reason=REASON_NO_ACCESS)

        if share.access_level.satisfies(required):
            return AccessResult(
                granted=True,
                collection=collection,
                reason=REASON_SHARED,
                access_level=share.access_level,
            )

        logger.debug(
            "Insufficient collection access",
            collection_id=collection_id,
            has=share.access_level.value,
            required=required.value,
        )
        return AccessResult(
            granted=False,
            collection=collection,
            reason=REASON_INSUFFICIENT,
            access_level=share.access_level,
        )
