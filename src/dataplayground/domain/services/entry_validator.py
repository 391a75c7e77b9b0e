"""Entry validation against a collection's declared fields.

Rules are built once from the current field list into an immutable
EntryRules value, then applied to raw entry payloads. Validation and
sanitization happen in one pass so a payload is either fully accepted
(and coerced) or rejected with every violation listed.

Field types: text, number, date, rating, time.
"""

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, assert_never

from dataplayground.domain.entities import Field, FieldType
from dataplayground.domain.exceptions import EntryValidationError, FieldError
from dataplayground.domain.services.sanitizer import sanitize_text

# 24-hour HH:MM, hour may be a single digit
TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

MIN_RATING = 0
MAX_RATING = 5


@dataclass(frozen=True)
class FieldRule:
    """Validation rule for a single declared field."""

    name: str
    type: FieldType


@dataclass(frozen=True)
class EntryRules:
    """Immutable rule set for one collection's field list, in declared order."""

    rules: tuple[FieldRule, ...]

    @property
    def field_names(self) -> frozenset[str]:
        return frozenset(rule.name for rule in self.rules)


class _Invalid(Exception):
    """Internal signal carrying the message of a failed field check."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class SchemaValidator:
    """Builds entry rules from fields and applies them to raw payloads."""

    @classmethod
    def build_rules(cls, fields: Iterable[Field]) -> EntryRules:
        """Build the rule set for a field list.

        Pure: the same field list always yields an equal rule set.

        Args:
            fields: The collection's current fields.

        Returns:
            EntryRules with one rule per field, keyed by field name.
        """
        return EntryRules(rules=tuple(FieldRule(name=f.name, type=f.type) for f in fields))

    @classmethod
    def validate_and_sanitize(cls, rules: EntryRules, raw_entry: Any) -> dict[str, Any]:
        """Validate a raw entry and return its sanitized form.

        Every declared field must be present and valid, unknown keys are
        rejected, and all violations are collected before raising.

        Args:
            rules: Rule set built by build_rules.
            raw_entry: Decoded request payload.

        Returns:
            The sanitized entry, keys in declared field order.

        Raises:
            EntryValidationError: If the payload violates any rule.
        """
        if not isinstance(raw_entry, dict):
            raise EntryValidationError(
                [FieldError(field="entry", message="Entry must be an object")]
            )

        errors: list[FieldError] = []
        sanitized: dict[str, Any] = {}

        for rule in rules.rules:
            if rule.name not in raw_entry:
                errors.append(FieldError(field=rule.name, message="Required"))
                continue
            try:
                sanitized[rule.name] = cls.check_value(rule.type, raw_entry[rule.name])
            except _Invalid as e:
                errors.append(FieldError(field=rule.name, message=e.message))

        declared = rules.field_names
        for key in raw_entry:
            if key not in declared:
                errors.append(FieldError(field=str(key), message="Unrecognized field"))

        if errors:
            raise EntryValidationError(errors)
        return sanitized

    @classmethod
    def check_value(cls, field_type: FieldType, value: Any) -> Any:
        """Validate one value against its field type and return it sanitized."""
        match field_type:
            case FieldType.TEXT:
                return cls._check_text(value)
            case FieldType.NUMBER:
                return cls._check_number(value)
            case FieldType.DATE:
                return cls._check_date(value)
            case FieldType.RATING:
                return cls._check_rating(value)
            case FieldType.TIME:
                return cls._check_time(value)
            case _:
                assert_never(field_type)

    @staticmethod
    def _check_text(value: Any) -> str:
        if not isinstance(value, str):
            raise _Invalid(f"Expected text value, got {_type_name(value)}")
        return sanitize_text(value)

    @staticmethod
    def _check_number(value: Any) -> int | float:
        if not _is_number(value):
            raise _Invalid(f"Expected number value, got {_type_name(value)}")
        if not math.isfinite(value):
            raise _Invalid("Number must be finite")
        return value

    @staticmethod
    def _check_date(value: Any) -> date | datetime:
        if isinstance(value, datetime | date):
            return value
        if not isinstance(value, str):
            raise _Invalid(f"Expected date string, got {_type_name(value)}")

        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise _Invalid("Invalid date format") from None

    @staticmethod
    def _check_rating(value: Any) -> int | float:
        if not _is_number(value):
            raise _Invalid(f"Expected number value, got {_type_name(value)}")
        if not math.isfinite(value) or not MIN_RATING <= value <= MAX_RATING:
            raise _Invalid(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        return value

    @staticmethod
    def _check_time(value: Any) -> str:
        if not isinstance(value, str):
            raise _Invalid(f"Expected time string, got {_type_name(value)}")
        if not TIME_PATTERN.fullmatch(value):
            raise _Invalid("Time must be in HH:MM format")
        return sanitize_text(value)
