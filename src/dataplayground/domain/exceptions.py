"""Domain exceptions for Data Playground.

Every failure a collection or auth operation can report is one of these.
The HTTP layer maps each class to a status code; nothing here knows about HTTP.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single field/message pair of a validation failure."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class DataPlaygroundError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(DataPlaygroundError):
    """Raised when a collection, entry, user or share does not exist."""


class ForbiddenError(DataPlaygroundError):
    """Raised when the principal lacks the access tier an operation requires."""


class ConflictError(DataPlaygroundError):
    """Raised on duplicate field names, usernames or emails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class ValidationError(DataPlaygroundError):
    """Raised when a request payload fails validation.

    Carries one FieldError per violated rule.
    """

    def __init__(self, errors: list[FieldError], message: str = "Validation error") -> None:
        self.errors = list(errors)
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([FieldError(field=field, message=message)])


class EntryValidationError(ValidationError):
    """Raised when an entry payload does not match its collection's fields."""


class AuthenticationError(DataPlaygroundError):
    """Raised when credentials are wrong."""


class InternalError(DataPlaygroundError):
    """Raised for unexpected failures that must not leak details to clients."""


class LookupFailedError(InternalError):
    """Raised when the persistence layer fails while looking up a record.

    Distinct from NotFoundError: the record may exist, the store could not say.
    """
