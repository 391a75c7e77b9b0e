"""User entity for authentication and collection ownership."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class User:
    """User entity representing a registered account.

    Attributes:
        id: Unique identifier (UUID string).
        username: Unique display name.
        email: Unique, lowercased email address.
        password_hash: Hashed password (never store plaintext).
        created_at: Timestamp when the user was created.
        updated_at: Timestamp when the user was last updated.
    """

    id: str
    username: str
    email: str
    password_hash: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate user data after initialization."""
        if not self.id:
            raise ValueError("User ID is required")
        if not self.username:
            raise ValueError("Username is required")
        if not self.email:
            raise ValueError("Email is required")
        if not self.password_hash:
            raise ValueError("Password hash is required")
        self.email = self.email.lower()
