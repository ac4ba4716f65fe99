"""Card data models.

A card is one markdown file in the vault. Its scheduling state lives in
the file's frontmatter; computing new schedules is out of scope here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Convert to UTC; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision and a ``Z`` suffix."""
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class CardState(IntEnum):
    """Learning state of a card."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


@dataclass
class Schedule:
    """Spaced-repetition state of a card.

    Attributes:
        due: When the card is next due (timezone-aware, UTC).
        stability: Memory stability.
        difficulty: Difficulty between 0 and 10.
        state: Learning state.
        reps: Number of reviews.
        lapses: Number of times the card was forgotten.
        scheduled_days: Interval of the current schedule.
        learning_steps: Current learning step.
        last_review: Time of the last review, if any.
    """

    due: datetime = field(default_factory=utc_now)
    stability: float = 0.0
    difficulty: float = 0.0
    state: CardState = CardState.NEW
    reps: int = 0
    lapses: int = 0
    scheduled_days: float = 0
    learning_steps: int = 0
    last_review: datetime | None = None

    @classmethod
    def new(cls, now: datetime | None = None) -> Schedule:
        """A fresh card, due immediately."""
        return cls(due=now or utc_now())

    @property
    def is_new(self) -> bool:
        return self.state == CardState.NEW

    def is_due(self, now: datetime | None = None) -> bool:
        """New cards are always due; others once ``due`` has passed."""
        if self.is_new:
            return True
        return as_utc(self.due) <= as_utc(now or utc_now())

    def to_frontmatter(self) -> list[str]:
        """Serialize as the ``key=value`` list stored in frontmatter."""
        data = [f"due={format_timestamp(self.due)}"]
        if self.last_review:
            data.append(f"last_review={format_timestamp(self.last_review)}")
        data.extend(
            [
                f"stability={self.stability:g}",
                f"difficulty={self.difficulty:g}",
                f"state={int(self.state)}",
                f"reps={self.reps}",
                f"lapses={self.lapses}",
                f"scheduled_days={self.scheduled_days:g}",
                f"learning_steps={self.learning_steps}",
            ]
        )
        return data

    def to_dict(self) -> dict[str, Any]:
        return {
            "due": format_timestamp(self.due),
            "stability": self.stability,
            "difficulty": self.difficulty,
            "state": self.state.name.lower(),
            "reps": self.reps,
            "lapses": self.lapses,
            "scheduled_days": self.scheduled_days,
            "learning_steps": self.learning_steps,
            "last_review": format_timestamp(self.last_review) if self.last_review else None,
        }


@dataclass
class Card:
    """A flashcard backed by one markdown file.

    Attributes:
        path: Vault-relative posix path; the card's identity.
        question: Prompt shown for the card.
        schedule: Spaced-repetition state.
    """

    path: str
    question: str
    schedule: Schedule = field(default_factory=Schedule)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "question": self.question,
            "schedule": self.schedule.to_dict(),
        }
