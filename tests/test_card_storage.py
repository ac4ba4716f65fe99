"""Tests for card parsing and frontmatter validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import yaml

from flashdeck.cards import (
    CardState,
    CardStorage,
    CardValidationError,
    Schedule,
    ValidationErrorType,
    split_frontmatter,
)
from flashdeck.cards.card import as_utc, format_timestamp

NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


# ===================================================================
# Helpers
# ===================================================================


def _valid_entries(**overrides: str) -> list[str]:
    """Complete scheduling entries with optional field overrides."""
    data = {
        "due": "2025-08-26T15:30:00.000Z",
        "stability": "2.5",
        "difficulty": "6.0",
        "state": "2",
        "reps": "5",
        "lapses": "1",
        "scheduled_days": "10",
        "learning_steps": "0",
    }
    data.update(overrides)
    return [f"{key}={value}" for key, value in data.items()]


def _error_types(sr_data: list) -> set[ValidationErrorType]:
    result = CardStorage.validate_and_parse(sr_data, now=NOW)
    return {error.type for error in result.errors}


# ===================================================================
# validate_and_parse - Valid Data
# ===================================================================


class TestValidData:
    """Tests for scheduling data that parses cleanly."""

    def test_complete(self):
        result = CardStorage.validate_and_parse(
            _valid_entries() + ["last_review=2025-08-25T10:00:00.000Z"]
        )
        assert result.is_valid
        schedule = result.schedule
        assert schedule.due == datetime(2025, 8, 26, 15, 30, tzinfo=timezone.utc)
        assert schedule.last_review == datetime(2025, 8, 25, 10, 0, tzinfo=timezone.utc)
        assert schedule.stability == 2.5
        assert schedule.difficulty == 6.0
        assert schedule.state == CardState.REVIEW
        assert schedule.reps == 5
        assert isinstance(schedule.reps, int)
        assert schedule.lapses == 1
        assert schedule.scheduled_days == 10
        assert schedule.learning_steps == 0

    def test_last_review_optional(self):
        result = CardStorage.validate_and_parse(_valid_entries())
        assert result.is_valid
        assert result.schedule.last_review is None

    @pytest.mark.parametrize("sr_data", [None, [], "", {}])
    def test_missing_is_new_card(self, sr_data):
        result = CardStorage.validate_and_parse(sr_data, now=NOW)
        assert result.is_valid
        assert result.schedule.is_new
        assert result.schedule.due == NOW

    @pytest.mark.parametrize(
        "state, expected",
        [
            ("0", CardState.NEW),
            ("1", CardState.LEARNING),
            ("2", CardState.REVIEW),
            ("3", CardState.RELEARNING),
        ],
    )
    def test_states(self, state: str, expected: CardState):
        result = CardStorage.validate_and_parse(_valid_entries(state=state))
        assert result.schedule.state == expected

    @pytest.mark.parametrize(
        "timestamp",
        ["2025-08-26T15:30:00Z", "2025-08-26T15:30:00.000Z", "2025-08-26T15:30:00.123Z"],
    )
    def test_date_formats(self, timestamp: str):
        result = CardStorage.validate_and_parse(_valid_entries(due=timestamp))
        assert result.is_valid
        assert result.schedule.due.tzinfo is not None

    def test_whitespace_is_trimmed(self):
        entries = _valid_entries()
        entries[0] = "  due  =  2025-08-26T15:30:00.000Z  "
        entries[1] = "  stability  =  2.5  "
        result = CardStorage.validate_and_parse(entries)
        assert result.is_valid
        assert result.schedule.stability == 2.5

    def test_float_fields_accept_fractions(self):
        result = CardStorage.validate_and_parse(_valid_entries(scheduled_days="10.5"))
        assert result.schedule.scheduled_days == 10.5

    def test_integral_float_count_accepted(self):
        result = CardStorage.validate_and_parse(_valid_entries(reps="5.0"))
        assert result.schedule.reps == 5

    def test_frontmatter_round_trip(self):
        schedule = CardStorage.validate_and_parse(
            _valid_entries() + ["last_review=2025-08-25T10:00:00.000Z"]
        ).schedule
        reparsed = CardStorage.validate_and_parse(schedule.to_frontmatter()).schedule
        assert reparsed == schedule


# ===================================================================
# validate_and_parse - Invalid Data
# ===================================================================


class TestInvalidData:
    """Tests for scheduling data that must be rejected."""

    @pytest.mark.parametrize("entry", ["invalid", "no-equals-sign"])
    def test_malformed(self, entry: str):
        assert ValidationErrorType.MALFORMED_ENTRY in _error_types([entry])

    @pytest.mark.parametrize("entry", ["=no-key", "key=", "===multiple-equals==="])
    def test_unknown_key(self, entry: str):
        assert ValidationErrorType.UNKNOWN_FIELD in _error_types([entry])

    def test_non_string_entry(self):
        result = CardStorage.validate_and_parse(_valid_entries() + [5])
        assert [e.type for e in result.errors] == [ValidationErrorType.NON_STRING_FIELD_TYPE]
        assert result.errors[0].message == "The field type is: int"

    def test_unknown_fields(self):
        result = CardStorage.validate_and_parse(
            _valid_entries() + ["unknown_field=value", "invalid_prop=123"]
        )
        assert [e.field for e in result.errors] == ["unknown_field", "invalid_prop"]
        assert result.schedule is None

    def test_mixed_errors(self):
        types = _error_types(["invalid_entry", "unknown_field=value", "stability=invalid"])
        assert {
            ValidationErrorType.MALFORMED_ENTRY,
            ValidationErrorType.UNKNOWN_FIELD,
            ValidationErrorType.NON_NUMERIC_VALUE,
        } <= types

    def test_missing_required(self):
        entries = [e for e in _valid_entries() if not e.startswith("due=")]
        result = CardStorage.validate_and_parse(entries)
        assert len(result.errors) == 1
        assert result.errors[0].type == ValidationErrorType.MISSING_REQUIRED_FIELD
        assert result.errors[0].field == "due"

    def test_missing_state(self):
        entries = [e for e in _valid_entries() if not e.startswith("state=")]
        result = CardStorage.validate_and_parse(entries)
        assert result.errors[0].type == ValidationErrorType.MISSING_REQUIRED_FIELD
        assert result.errors[0].field == "state"

    @pytest.mark.parametrize("value", ["invalid-date", "2025-13-40", "not-a-date"])
    def test_invalid_dates(self, value: str):
        result = CardStorage.validate_and_parse(_valid_entries(due=value))
        assert [e.type for e in result.errors] == [ValidationErrorType.INVALID_DATE_FORMAT]

    def test_invalid_last_review(self):
        result = CardStorage.validate_and_parse(_valid_entries() + ["last_review=2025-13-40"])
        assert result.errors[0].field == "last_review"

    @pytest.mark.parametrize(
        "field, value, error_type",
        [
            ("stability", "not_a_number", ValidationErrorType.NON_NUMERIC_VALUE),
            ("stability", "2.5=extra", ValidationErrorType.NON_NUMERIC_VALUE),
            ("stability", "nan", ValidationErrorType.NON_NUMERIC_VALUE),
            ("reps", "invalid", ValidationErrorType.NON_NUMERIC_VALUE),
            ("difficulty", "11", ValidationErrorType.INVALID_VALUE_BOUNDS),
            ("difficulty", "-0.5", ValidationErrorType.INVALID_VALUE_BOUNDS),
            ("reps", "-1", ValidationErrorType.INVALID_VALUE_BOUNDS),
            ("lapses", "-5", ValidationErrorType.INVALID_VALUE_BOUNDS),
            ("scheduled_days", "-1", ValidationErrorType.INVALID_VALUE_BOUNDS),
            ("reps", "1.5", ValidationErrorType.FLOAT_VALUE_NOT_ALLOWED),
            ("learning_steps", "0.5", ValidationErrorType.FLOAT_VALUE_NOT_ALLOWED),
            ("state", "4", ValidationErrorType.INVALID_STATE_VALUE),
            ("state", "1.5", ValidationErrorType.INVALID_STATE_VALUE),
            ("state", "review", ValidationErrorType.INVALID_STATE_VALUE),
        ],
    )
    def test_field_errors(self, field: str, value: str, error_type: ValidationErrorType):
        result = CardStorage.validate_and_parse(_valid_entries(**{field: value}))
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.type == error_type
        assert error.field == field
        assert error.value == value

    def test_bounds_suggestions(self):
        difficulty = CardStorage.validate_and_parse(_valid_entries(difficulty="11")).errors[0]
        reps = CardStorage.validate_and_parse(_valid_entries(reps="-1")).errors[0]
        assert difficulty.suggestion == "Must be between 0 and 10"
        assert reps.suggestion == "Must be >= 0"


class TestCardValidationError:
    def test_to_dict(self):
        error = CardValidationError(
            type=ValidationErrorType.UNKNOWN_FIELD,
            field="foo",
            value=3,
            file_path="a.md",
        )
        assert error.to_dict() == {
            "type": "UNKNOWN_FIELD",
            "field": "foo",
            "value": "3",
            "message": None,
            "suggestion": None,
            "file_path": "a.md",
        }

    def test_str(self):
        error = CardValidationError(type=ValidationErrorType.MALFORMED_ENTRY, value="x")
        assert str(error) == "malformed entry value='x'"


# ===================================================================
# Frontmatter and card files
# ===================================================================


class TestSplitFrontmatter:
    """Tests for YAML frontmatter extraction."""

    def test_mapping(self):
        data, body = split_frontmatter("---\ntitle: Hi\ntags: [a, b]\n---\nBody\n")
        assert data == {"title": "Hi", "tags": ["a", "b"]}
        assert body == "Body\n"

    def test_no_frontmatter(self):
        assert split_frontmatter("# Title\n") == ({}, "# Title\n")

    def test_non_mapping(self):
        data, body = split_frontmatter("---\n- a\n- b\n---\nBody")
        assert data == {}
        assert body == "Body"

    def test_crlf(self):
        data, _ = split_frontmatter("---\r\ntitle: Hi\r\n---\r\nBody")
        assert data == {"title": "Hi"}

    def test_invalid_yaml_raises(self):
        with pytest.raises(yaml.YAMLError):
            split_frontmatter("---\ntitle: [unclosed\n---\n")


class TestCardFromText:
    """Tests for building cards from markdown text."""

    def test_plain_note_is_new_card(self):
        result = CardStorage.card_from_text("Work/limits.md", "# Limits\n", now=NOW)
        assert result.errors == []
        assert result.card.path == "Work/limits.md"
        assert result.card.question == "limits"
        assert result.card.schedule == Schedule.new(NOW)

    def test_question_override(self):
        content = "---\nflashcard-question: What is a limit?\n---\nBody"
        result = CardStorage.card_from_text("limits.md", content, now=NOW)
        assert result.card.question == "What is a limit?"

    def test_schedule_from_frontmatter(self):
        content = "---\nspaced-repetition:\n" + "".join(
            f"  - {entry}\n" for entry in _valid_entries()
        ) + "---\n"
        result = CardStorage.card_from_text("a.md", content)
        assert result.card.schedule.state == CardState.REVIEW
        assert result.card.schedule.reps == 5

    def test_errors_tagged_with_path(self):
        content = "---\nspaced-repetition:\n  - state=9\n---\n"
        result = CardStorage.card_from_text("Work/bad.md", content)
        assert result.card is None
        assert result.errors
        assert all(error.file_path == "Work/bad.md" for error in result.errors)

    def test_unparseable_frontmatter_is_ignored(self, caplog):
        content = "---\ntitle: [unclosed\n---\nBody"
        result = CardStorage.card_from_text("odd.md", content, now=NOW)
        assert result.card is not None
        assert result.card.schedule.is_new
        assert "odd.md" in caplog.text


class TestLoadCard:
    """Tests for reading card files."""

    def test_load(self, tmp_path: Path):
        path = tmp_path / "note.md"
        path.write_text("# Note\n", encoding="utf-8")
        result = CardStorage.load_card(path, "note.md", now=NOW)
        assert result.card.path == "note.md"
        assert result.card.schedule.due == NOW

    def test_missing_file(self, tmp_path: Path):
        result = CardStorage.load_card(tmp_path / "gone.md", "gone.md")
        assert result.card is None
        assert len(result.errors) == 1
        assert result.errors[0].type == ValidationErrorType.FILE_SYSTEM_ERROR
        assert result.errors[0].file_path == "gone.md"

    def test_binary_file(self, tmp_path: Path):
        path = tmp_path / "blob.md"
        path.write_bytes(b"\xff\xfe\x00bad")
        result = CardStorage.load_card(path, "blob.md")
        assert result.errors[0].type == ValidationErrorType.FILE_SYSTEM_ERROR


class TestSchedule:
    def test_format_timestamp(self):
        value = datetime(2025, 8, 26, 15, 30, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-08-26T15:30:00.123Z"

    def test_is_due(self):
        schedule = Schedule(due=NOW, state=CardState.REVIEW)
        assert schedule.is_due(NOW)
        assert not schedule.is_due(datetime(2025, 1, 1, tzinfo=timezone.utc))

    def test_new_card_always_due(self):
        schedule = Schedule(due=datetime(2030, 1, 1, tzinfo=timezone.utc))
        assert schedule.is_due(NOW)

    def test_is_due_naive_now(self):
        schedule = Schedule(due=NOW, state=CardState.REVIEW)
        assert schedule.is_due(datetime(2025, 9, 1, 12, 0))
        assert not schedule.is_due(datetime(2025, 9, 1, 11, 59))

    def test_is_due_naive_due(self):
        schedule = Schedule(due=datetime(2025, 9, 1, 12, 0), state=CardState.REVIEW)
        assert schedule.is_due(NOW)

    def test_as_utc(self):
        assert as_utc(datetime(2025, 9, 1, 12, 0)) == NOW
        offset = timezone(timedelta(hours=2))
        converted = as_utc(datetime(2025, 9, 1, 14, 0, tzinfo=offset))
        assert converted == NOW
        assert converted.tzinfo == timezone.utc
