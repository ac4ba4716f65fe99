"""Daily review limit.

Counts reviewed cards per calendar day and caps the review queue. The
counter is persisted under ``__daily_state`` in the settings JSON file.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

STATE_KEY = "__daily_state"

T = TypeVar("T")


def utc_today() -> date:
    """Current calendar day in UTC."""
    return datetime.now(timezone.utc).date()


@dataclass
class DailyState:
    """Reviews served on ``last_date`` (ISO date string)."""

    last_date: str = ""
    served: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"last_date": self.last_date, "served": self.served}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DailyState:
        return cls(last_date=str(data.get("last_date", "")), served=int(data.get("served", 0)))


class DailyLimit:
    """Cap the number of cards served per day.

    Args:
        max_per_day: Daily cap; 0 or less means unlimited.
        store_path: JSON file holding the counter.
        today: Date source. Defaults to the UTC calendar day.
    """

    def __init__(
        self,
        max_per_day: int,
        store_path: Path,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.max_per_day = max_per_day
        self.store_path = store_path
        self._today = today or utc_today
        self.state = self._load()

    @property
    def unlimited(self) -> bool:
        return self.max_per_day <= 0

    def _load(self) -> DailyState:
        if not self.store_path.exists():
            return DailyState()
        try:
            with open(self.store_path, encoding="utf-8") as f:
                data = json.load(f)
            return DailyState.from_dict(data.get(STATE_KEY) or {})
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as exc:
            logger.warning("Could not load daily state from %s, starting fresh: %s", self.store_path, exc)
            return DailyState()

    def _save(self) -> None:
        """Merge the counter into the store without touching other keys."""
        existing: dict[str, Any] = {}
        if self.store_path.exists():
            try:
                with open(self.store_path, encoding="utf-8") as f:
                    existing = json.load(f)
            except json.JSONDecodeError as exc:
                logger.warning("Overwriting corrupt store %s: %s", self.store_path, exc)
        existing[STATE_KEY] = self.state.to_dict()
        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.store_path, "w", encoding="utf-8") as f:
            json.dump(existing, f, indent=2)

    def _roll_over(self) -> None:
        today = self._today().isoformat()
        if self.state.last_date != today:
            self.state = DailyState(last_date=today, served=0)
            self._save()

    def is_reached(self) -> bool:
        """Check whether today's cap is used up (resets on a new day)."""
        if self.unlimited:
            return False
        self._roll_over()
        return self.state.served >= self.max_per_day

    @property
    def remaining(self) -> int | None:
        """Slots left today, or None when unlimited."""
        if self.unlimited:
            return None
        self._roll_over()
        return max(self.max_per_day - self.state.served, 0)

    def apply_to(self, cards: Sequence[T]) -> list[T]:
        """Truncate a due queue to the slots left today."""
        if self.unlimited:
            return list(cards)
        if self.is_reached():
            return []
        return list(cards[: self.max_per_day - self.state.served])

    def record_reviewed(self) -> None:
        """Record one reviewed card. Unlimited mode does not track."""
        if self.unlimited:
            return
        self._roll_over()
        self.state.served += 1
        self._save()
