"""Validation records for card scheduling data.

Problems found while reading a card are collected as records rather than
raised, so one bad file never stops a whole deck build.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ValidationErrorType(str, Enum):
    """Kind of problem found in a card's scheduling data."""

    NON_STRING_FIELD_TYPE = "NON_STRING_FIELD_TYPE"
    MALFORMED_ENTRY = "MALFORMED_ENTRY"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    NON_NUMERIC_VALUE = "NON_NUMERIC_VALUE"
    INVALID_VALUE_BOUNDS = "INVALID_VALUE_BOUNDS"
    FLOAT_VALUE_NOT_ALLOWED = "FLOAT_VALUE_NOT_ALLOWED"
    INVALID_STATE_VALUE = "INVALID_STATE_VALUE"
    FILE_SYSTEM_ERROR = "FILE_SYSTEM_ERROR"


@dataclass
class CardValidationError:
    """One validation problem.

    Attributes:
        type: Problem category.
        field: Scheduling field involved, if any.
        value: Offending raw value, if any.
        message: Free-form detail.
        suggestion: How the user can fix it.
        file_path: Vault-relative path of the card.
    """

    type: ValidationErrorType
    field: str | None = None
    value: Any = None
    message: str | None = None
    suggestion: str | None = None
    file_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "field": self.field,
            "value": self.value if self.value is None else str(self.value),
            "message": self.message,
            "suggestion": self.suggestion,
            "file_path": self.file_path,
        }

    def __str__(self) -> str:
        parts = [self.type.value.replace("_", " ").lower()]
        if self.field:
            parts.append(f"field={self.field}")
        if self.value is not None:
            parts.append(f"value={self.value!r}")
        if self.file_path:
            parts.append(f"in {self.file_path}")
        return " ".join(parts)
