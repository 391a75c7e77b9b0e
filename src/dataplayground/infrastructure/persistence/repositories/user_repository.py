"""User repository for database operations."""

from datetime import timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dataplayground.domain.entities import User
from dataplayground.infrastructure.persistence.models import UserModel


def to_entity(model: UserModel) -> User:
    """Convert a user row into a domain entity."""
    created_at = model.created_at
    updated_at = model.updated_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    return User(
        id=model.id,
        username=model.username,
        email=model.email,
        password_hash=model.password_hash,
        created_at=created_at,
        updated_at=updated_at,
    )


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User entity to persist.

        Returns:
            The persisted user.
        """
        self.session.add(
            UserModel(
                id=user.id,
                username=user.username,
                email=user.email,
                password_hash=user.password_hash,
                created_at=user.created_at,
                updated_at=user.updated_at,
            )
        )
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by ID.

        Args:
            user_id: User ID (UUID string).

        Returns:
            User if found, None otherwise.
        """
        model = await self._get_model(user_id)
        return to_entity(model) if model is not None else None

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email, ignoring case.

        Args:
            email: User's email address.

        Returns:
            User if found, None otherwise.
        """
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email.lower())
        )
        model = result.scalar_one_or_none()
        return to_entity(model) if model is not None else None

    async def email_exists(self, email: str, exclude_user_id: str | None = None) -> bool:
        """Check if an email is already registered.

        Args:
            email: Email to check.
            exclude_user_id: User to ignore (the one being updated).

        Returns:
            True if another user has this email.
        """
        query = select(UserModel.id).where(UserModel.email == email.lower())
        if exclude_user_id is not None:
            query = query.where(UserModel.id != exclude_user_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def username_exists(self, username: str, exclude_user_id: str | None = None) -> bool:
        """Check if a username is already taken (case-insensitive).

        Args:
            username: Username to check.
            exclude_user_id: User to ignore (the one being updated).

        Returns:
            True if another user has this username.
        """
        query = select(UserModel.id).where(func.lower(UserModel.username) == username.lower())
        if exclude_user_id is not None:
            query = query.where(UserModel.id != exclude_user_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def save(self, user: User) -> User:
        """Write a user's mutable attributes back.

        Args:
            user: The updated user entity.

        Returns:
            The saved user.

        Raises:
            ValueError: If the user no longer exists.
        """
        model = await self._get_model(user.id)
        if model is None:
            raise ValueError(f"User {user.id} does not exist")
        model.username = user.username
        model.email = user.email
        model.password_hash = user.password_hash
        model.updated_at = user.updated_at
        await self.session.flush()
        return user

    async def _get_model(self, user_id: str) -> UserModel | None:
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id)
        )
        return result.scalar_one_or_none()
