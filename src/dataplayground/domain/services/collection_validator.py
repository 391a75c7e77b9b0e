"""Collection validation service for names and field definitions.

Provides validation for collection names and field lists. Field types are
limited to the FieldType enum: text, number, date, rating, time.
"""

from collections.abc import Sequence
from typing import Any

from dataplayground.domain.entities import Field, FieldType
from dataplayground.domain.exceptions import ConflictError, FieldError, ValidationError
from dataplayground.domain.services.sanitizer import sanitize_text

VALID_FIELD_TYPES = frozenset(t.value for t in FieldType)


class CollectionValidator:
    """Validator for collection create and update requests.

    Names are sanitized before they are checked, so a name made only of
    whitespace or NUL characters is treated as missing.
    """

    MAX_NAME_LENGTH = 100
    MAX_FIELD_NAME_LENGTH = 64
    MAX_FIELDS = 50

    @classmethod
    def validate_name(cls, name: str) -> list[FieldError]:
        """Validate an already sanitized collection name.

        Args:
            name: The collection name to validate.

        Returns:
            List of validation errors (empty if valid).
        """
        if not name:
            return [FieldError(field="name", message="Collection name is required")]
        if len(name) > cls.MAX_NAME_LENGTH:
            return [
                FieldError(
                    field="name",
                    message=f"Collection name must be at most {cls.MAX_NAME_LENGTH} characters",
                )
            ]
        return []

    @classmethod
    def validate_fields(cls, fields: Sequence[dict[str, Any]]) -> list[FieldError]:
        """Validate raw field definitions (name already sanitized).

        Args:
            fields: Field definitions with 'name' and 'type' keys.

        Returns:
            List of validation errors (empty if valid).
        """
        errors: list[FieldError] = []

        if not fields:
            errors.append(FieldError(field="fields", message="At least one field is required"))
            return errors

        if len(fields) > cls.MAX_FIELDS:
            errors.append(
                FieldError(field="fields", message=f"At most {cls.MAX_FIELDS} fields are allowed")
            )

        for i, field_def in enumerate(fields):
            name = field_def.get("name")
            field_type = field_def.get("type")

            if not isinstance(name, str) or not name:
                errors.append(FieldError(field=f"fields.{i}.name", message="Field name is required"))
            elif len(name) > cls.MAX_FIELD_NAME_LENGTH:
                errors.append(
                    FieldError(
                        field=f"fields.{i}.name",
                        message=f"Field name must be at most {cls.MAX_FIELD_NAME_LENGTH} characters",
                    )
                )

            if not isinstance(field_type, str) or field_type not in VALID_FIELD_TYPES:
                errors.append(
                    FieldError(
                        field=f"fields.{i}.type",
                        message=f"Invalid field type. Must be one of: {', '.join(sorted(VALID_FIELD_TYPES))}",
                    )
                )

        return errors

    @classmethod
    def check_duplicate_field_names(cls, fields: Sequence[Field]) -> None:
        """Raise ConflictError if two fields share a name, ignoring case."""
        seen: set[str] = set()
        for field in fields:
            key = field.name.lower()
            if key in seen:
                raise ConflictError(f"Duplicate field name: {field.name}", field="fields")
            seen.add(key)

    @classmethod
    def clean(cls, name: str, fields: Sequence[dict[str, Any]]) -> tuple[str, list[Field]]:
        """Sanitize, validate and convert a name and raw field list.

        Args:
            name: Raw collection name.
            fields: Raw field definitions.

        Returns:
            Tuple of (sanitized name, Field list).

        Raises:
            ValidationError: If the name or any field definition is invalid.
            ConflictError: If field names collide case-insensitively.
        """
        clean_name = sanitize_text(name) if isinstance(name, str) else ""
        clean_fields = []
        for field_def in fields:
            field_name = field_def.get("name")
            field_type = field_def.get("type")
            if isinstance(field_name, str):
                field_name = sanitize_text(field_name)
            if isinstance(field_type, FieldType):
                field_type = field_type.value
            clean_fields.append({"name": field_name, "type": field_type})

        errors = cls.validate_name(clean_name) + cls.validate_fields(clean_fields)
        if errors:
            raise ValidationError(errors)

        result = [Field(name=f["name"], type=FieldType(f["type"])) for f in clean_fields]
        cls.check_duplicate_field_names(result)
        return clean_name, result
