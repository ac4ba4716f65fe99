"""
Card loading from markdown frontmatter.

Reads the ``spaced-repetition`` frontmatter list of a markdown file and
validates it field by field. Any problem makes the whole entry invalid.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from flashdeck.cards.card import Card, CardState, Schedule, utc_now
from flashdeck.cards.validation import CardValidationError, ValidationErrorType

logger = logging.getLogger(__name__)

SR_FRONTMATTER_KEY = "spaced-repetition"
QUESTION_FRONTMATTER_KEY = "flashcard-question"

VALID_FIELDS = frozenset(
    {
        "due",
        "last_review",
        "stability",
        "difficulty",
        "state",
        "reps",
        "lapses",
        "scheduled_days",
        "learning_steps",
    }
)

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

_STATE_SUGGESTION = "Use 0=New, 1=Learning, 2=Review, 3=Relearning"

_BOUNDS_SUGGESTIONS = {
    "difficulty": "Must be between 0 and 10",
}


@dataclass(frozen=True)
class _NumberRule:
    validator: Callable[[float], bool]
    allow_float: bool
    required: bool = True


_NUMBER_RULES: dict[str, _NumberRule] = {
    "stability": _NumberRule(lambda n: n >= 0, allow_float=True),
    "difficulty": _NumberRule(lambda n: 0 <= n <= 10, allow_float=True),
    "reps": _NumberRule(lambda n: n >= 0, allow_float=False),
    "lapses": _NumberRule(lambda n: n >= 0, allow_float=False),
    "scheduled_days": _NumberRule(lambda n: n >= 0, allow_float=True),
    "learning_steps": _NumberRule(lambda n: n >= 0, allow_float=False),
}


@dataclass
class ValidationResult:
    """Outcome of parsing scheduling data.

    Attributes:
        errors: Every problem found.
        schedule: Parsed schedule; None when there are errors.
    """

    errors: list[CardValidationError] = field(default_factory=list)
    schedule: Schedule | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class CardLoadResult:
    """Outcome of loading one card file."""

    card: Card | None = None
    errors: list[CardValidationError] = field(default_factory=list)


def split_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from a markdown document.

    Args:
        content: Full file text.

    Returns:
        Tuple of (frontmatter mapping, body). The mapping is empty when
        the document has no frontmatter or it is not a YAML mapping.

    Raises:
        yaml.YAMLError: If the frontmatter block is not valid YAML.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content

    data = yaml.safe_load(match.group(1))
    body = content[match.end() :]
    if not isinstance(data, dict):
        return {}, body
    return data, body


def _parse_timestamp(value: str) -> datetime | None:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_number(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


class CardStorage:
    """Read cards and their scheduling state from markdown files."""

    @staticmethod
    def validate_and_parse(sr_data: Any, now: datetime | None = None) -> ValidationResult:
        """
        Validate and parse a ``spaced-repetition`` frontmatter list.

        Entries look like ``"due=2025-08-26T15:30:00.000Z"``. A missing or
        empty list means a new card.

        Args:
            sr_data: Raw frontmatter value.
            now: Due time for a new card.

        Returns:
            ValidationResult with the schedule or the collected errors.
        """
        if not sr_data or not isinstance(sr_data, list):
            return ValidationResult(schedule=Schedule.new(now))

        errors: list[CardValidationError] = []
        parsed: dict[str, str] = {}

        for entry in sr_data:
            if not isinstance(entry, str):
                errors.append(
                    CardValidationError(
                        type=ValidationErrorType.NON_STRING_FIELD_TYPE,
                        value=entry,
                        message=f"The field type is: {type(entry).__name__}",
                        suggestion="Remove invalid entry",
                    )
                )
                continue

            if "=" not in entry:
                errors.append(
                    CardValidationError(
                        type=ValidationErrorType.MALFORMED_ENTRY,
                        value=entry,
                        suggestion="Should be in format key=value",
                    )
                )
                continue

            key, value = entry.split("=", 1)
            key = key.strip()
            value = value.strip()

            if key not in VALID_FIELDS:
                errors.append(
                    CardValidationError(
                        type=ValidationErrorType.UNKNOWN_FIELD,
                        field=key,
                        value=value,
                        suggestion="Remove unknown entry or check for typos",
                    )
                )
                continue

            parsed[key] = value

        values: dict[str, Any] = {}
        CardStorage._parse_date(parsed, "due", values, errors, required=True)
        CardStorage._parse_date(parsed, "last_review", values, errors, required=False)
        for name, rule in _NUMBER_RULES.items():
            CardStorage._parse_number_field(parsed, name, rule, values, errors)
        CardStorage._parse_state(parsed, values, errors)

        if errors:
            return ValidationResult(errors=errors)
        return ValidationResult(schedule=Schedule(**values))

    @staticmethod
    def _parse_date(
        parsed: dict[str, str],
        name: str,
        values: dict[str, Any],
        errors: list[CardValidationError],
        required: bool,
    ) -> None:
        if name not in parsed:
            if required:
                errors.append(
                    CardValidationError(
                        type=ValidationErrorType.MISSING_REQUIRED_FIELD,
                        field=name,
                        suggestion="Provide valid date in ISO format",
                    )
                )
            return

        timestamp = _parse_timestamp(parsed[name])
        if timestamp is None:
            errors.append(
                CardValidationError(
                    type=ValidationErrorType.INVALID_DATE_FORMAT,
                    field=name,
                    value=parsed[name],
                    suggestion="Use ISO 8601 format (YYYY-MM-DDTHH:mm:ss.sssZ)",
                )
            )
            return

        values[name] = timestamp

    @staticmethod
    def _parse_number_field(
        parsed: dict[str, str],
        name: str,
        rule: _NumberRule,
        values: dict[str, Any],
        errors: list[CardValidationError],
    ) -> None:
        if name not in parsed:
            if rule.required:
                errors.append(
                    CardValidationError(
                        type=ValidationErrorType.MISSING_REQUIRED_FIELD,
                        field=name,
                        suggestion="Provide valid numeric value",
                    )
                )
            return

        raw = parsed[name]
        number = _parse_number(raw)
        if number is None:
            errors.append(
                CardValidationError(
                    type=ValidationErrorType.NON_NUMERIC_VALUE,
                    field=name,
                    value=raw,
                    suggestion="Provide valid number",
                )
            )
            return

        if not rule.validator(number):
            errors.append(
                CardValidationError(
                    type=ValidationErrorType.INVALID_VALUE_BOUNDS,
                    field=name,
                    value=raw,
                    suggestion=_BOUNDS_SUGGESTIONS.get(name, "Must be >= 0"),
                )
            )
            return

        if not rule.allow_float:
            if not number.is_integer():
                errors.append(
                    CardValidationError(
                        type=ValidationErrorType.FLOAT_VALUE_NOT_ALLOWED,
                        field=name,
                        value=raw,
                        suggestion="Use integer values for count fields",
                    )
                )
                return
            values[name] = int(number)
            return

        values[name] = number

    @staticmethod
    def _parse_state(
        parsed: dict[str, str],
        values: dict[str, Any],
        errors: list[CardValidationError],
    ) -> None:
        if "state" not in parsed:
            errors.append(
                CardValidationError(
                    type=ValidationErrorType.MISSING_REQUIRED_FIELD,
                    field="state",
                    suggestion=_STATE_SUGGESTION,
                )
            )
            return

        raw = parsed["state"]
        number = _parse_number(raw)
        if number is None or not number.is_integer() or not 0 <= number <= 3:
            errors.append(
                CardValidationError(
                    type=ValidationErrorType.INVALID_STATE_VALUE,
                    field="state",
                    value=raw,
                    suggestion=_STATE_SUGGESTION,
                )
            )
            return

        values["state"] = CardState(int(number))

    @staticmethod
    def card_from_text(
        rel_path: str, content: str, now: datetime | None = None
    ) -> CardLoadResult:
        """
        Build a card from markdown text.

        The question is the ``flashcard-question`` frontmatter value, or
        the file name without extension.

        Args:
            rel_path: Vault-relative posix path of the file.
            content: File text.
            now: Due time for new cards.

        Returns:
            CardLoadResult with the card, or errors tagged with the path.
        """
        try:
            frontmatter, _ = split_frontmatter(content)
        except yaml.YAMLError as exc:
            logger.warning("Ignoring unparseable frontmatter in %s: %s", rel_path, exc)
            frontmatter = {}

        question = frontmatter.get(QUESTION_FRONTMATTER_KEY) or PurePosixPath(rel_path).stem
        result = CardStorage.validate_and_parse(frontmatter.get(SR_FRONTMATTER_KEY), now=now)

        if not result.is_valid:
            for error in result.errors:
                error.file_path = rel_path
            return CardLoadResult(errors=result.errors)

        card = Card(path=rel_path, question=str(question), schedule=result.schedule or Schedule.new(now))
        return CardLoadResult(card=card)

    @staticmethod
    def load_card(file_path: Path, rel_path: str, now: datetime | None = None) -> CardLoadResult:
        """Read ``file_path`` and build its card.

        Unreadable files become a FILE_SYSTEM_ERROR record.
        """
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read card file %s: %s", file_path, exc)
            return CardLoadResult(
                errors=[
                    CardValidationError(
                        type=ValidationErrorType.FILE_SYSTEM_ERROR,
                        message=f"Failed to read file: {exc}",
                        suggestion="Check that the file exists and is UTF-8 text",
                        file_path=rel_path,
                    )
                ]
            )

        return CardStorage.card_from_text(rel_path, content, now=now or utc_now())
