"""Authentication service for registration, login and profile updates.

Callers own the transaction and commit after a successful call.
"""

import hmac
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from dataplayground.core.logging import get_logger
from dataplayground.domain.entities import User
from dataplayground.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    FieldError,
    NotFoundError,
    ValidationError,
)
from dataplayground.domain.services.collection_service import CollectionService
from dataplayground.domain.services.password_validator import (
    PasswordValidator,
    default_password_validator,
)
from dataplayground.domain.services.sanitizer import sanitize_text
from dataplayground.infrastructure.auth import (
    DUMMY_PASSWORD_HASH,
    JWTService,
    hash_password,
    needs_rehash,
    verify_password,
)
from dataplayground.infrastructure.persistence.repositories import UserRepository

logger = get_logger(__name__)

MIN_USERNAME_LENGTH = 3


@dataclass(frozen=True)
class AuthResult:
    """A signed-in user and their access token."""

    token: str
    user: User
    expires_in: int


@dataclass(frozen=True)
class ProfileUpdate:
    """Outcome of a profile update."""

    user: User
    message: str


def _validate_username(username: str, field: str = "username") -> list[FieldError]:
    if len(username) < MIN_USERNAME_LENGTH:
        return [
            FieldError(
                field=field,
                message=f"Username must be at least {MIN_USERNAME_LENGTH} characters",
            )
        ]
    return []


class AuthService:
    """Service for user accounts and access tokens."""

    def __init__(
        self,
        session: AsyncSession,
        jwt_service: JWTService,
        registration_code: str | None = None,
        password_validator: PasswordValidator = default_password_validator,
    ) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            jwt_service: Service used to sign access tokens.
            registration_code: Code new users must supply; None means open registration.
            password_validator: Password policy.
        """
        self.session = session
        self.jwt_service = jwt_service
        self.registration_code = registration_code
        self.password_validator = password_validator
        self.users = UserRepository(session)

    def _issue(self, user: User) -> AuthResult:
        token = self.jwt_service.create_access_token(user_id=user.id, email=user.email)
        return AuthResult(token=token, user=user, expires_in=self.jwt_service.get_expires_in())

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        registration_code: str | None = None,
    ) -> AuthResult:
        """Register a new user and sign them in.

        Share grants already recorded for the email are linked to the new user.

        Raises:
            ValidationError: On a short username or password, or a wrong
                registration code.
            ConflictError: If the username or email is taken.
        """
        username = sanitize_text(username)
        email = email.strip().lower()

        errors = _validate_username(username) + self.password_validator.validate(password)
        if self.registration_code and not hmac.compare_digest(
            (registration_code or "").encode(), self.registration_code.encode()
        ):
            errors.append(FieldError(field="registrationCode", message="Invalid registration code"))
        if errors:
            raise ValidationError(errors)

        if await self.users.email_exists(email):
            raise ConflictError("Email already registered", field="email")
        if await self.users.username_exists(username):
            raise ConflictError("Username already taken", field="username")

        user = User(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=hash_password(password),
        )
        await self.users.create(user)
        await CollectionService(self.session).link_pending_shares(user)

        logger.info("User registered", user_id=user.id, email=user.email)
        return self._issue(user)

    async def login(self, email: str, password: str) -> AuthResult:
        """Verify credentials and issue a token.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong.
        """
        user = await self.users.get_by_email(email.strip())
        if user is None:
            # Same hashing cost as a wrong password
            verify_password(password, DUMMY_PASSWORD_HASH)
            logger.info("Login failed: unknown email")
            raise AuthenticationError("Invalid email or password")

        if not verify_password(password, user.password_hash):
            logger.info("Login failed: wrong password", user_id=user.id)
            raise AuthenticationError("Invalid email or password")

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
            await self.users.save(user)
            logger.info("Password hash upgraded", user_id=user.id)

        logger.info("User logged in", user_id=user.id)
        return self._issue(user)

    async def get_profile(self, user_id: str) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(
        self,
        user_id: str,
        username: str | None = None,
        email: str | None = None,
        current_password: str | None = None,
        new_password: str | None = None,
    ) -> ProfileUpdate:
        """Update username, email and/or password.

        A password change needs both the current and the new password.

        Raises:
            ValidationError: On invalid values or a wrong current password.
            ConflictError: If the new username or email is taken.
        """
        user = await self.get_profile(user_id)

        errors: list[FieldError] = []
        if username is not None:
            username = sanitize_text(username)
            errors += _validate_username(username)
        if email is not None:
            email = email.strip().lower()
        if (current_password is None) != (new_password is None):
            errors.append(
                FieldError(
                    field="newPassword" if new_password is None else "currentPassword",
                    message="Both current and new password are required to change password",
                )
            )
        elif new_password is not None:
            errors += self.password_validator.validate(new_password, field="newPassword")
        if errors:
            raise ValidationError(errors)

        changing_password = current_password is not None and new_password is not None
        if changing_password and not verify_password(current_password, user.password_hash):
            raise ValidationError.single("currentPassword", "Current password is incorrect")

        if email is not None and email != user.email:
            if await self.users.email_exists(email, exclude_user_id=user.id):
                raise ConflictError("Email already in use", field="email")
        else:
            email = None
        if username is not None and username != user.username:
            if await self.users.username_exists(username, exclude_user_id=user.id):
                raise ConflictError("Username already in use", field="username")
        else:
            username = None

        if username is None and email is None and not changing_password:
            return ProfileUpdate(user=user, message="No changes were made to the profile")

        if username is not None:
            user.username = username
        if email is not None:
            user.email = email
        if changing_password:
            user.password_hash = hash_password(new_password)
        user.updated_at = datetime.now(timezone.utc)
        await self.users.save(user)

        if email is not None:
            await CollectionService(self.session).link_pending_shares(user)

        logger.info(
            "Profile updated",
            user_id=user.id,
            username_changed=username is not None,
            email_changed=email is not None,
            password_changed=changing_password,
        )
        if username is None and email is None:
            return ProfileUpdate(user=user, message="Password updated successfully")
        return ProfileUpdate(user=user, message="Profile updated successfully")
