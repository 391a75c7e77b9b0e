"""Password validation service.

Passwords only have a minimum length requirement. Length is counted on the
raw value; passwords are never trimmed or sanitized.
"""

from dataplayground.domain.exceptions import FieldError


class PasswordValidator:
    """Validates password length."""

    def __init__(self, min_length: int = 8) -> None:
        """Initialize the password validator.

        Args:
            min_length: Minimum password length (default 8).
        """
        self.min_length = min_length

    def validate(self, password: str, field: str = "password") -> list[FieldError]:
        """Validate a password against the policy.

        Args:
            password: The password to validate.
            field: Name of the request field, used in error messages.

        Returns:
            List of validation errors. Empty list if password is valid.
        """
        if len(password) < self.min_length:
            return [
                FieldError(
                    field=field,
                    message=f"Password must be at least {self.min_length} characters",
                )
            ]
        return []

    def is_valid(self, password: str) -> bool:
        return not self.validate(password)


default_password_validator = PasswordValidator()
