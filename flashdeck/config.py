"""Deck settings.

Settings are stored as a JSON object. Unknown keys already present in the
file (such as the daily review counter) are preserved on save.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILENAME = "flashdeck.json"


@dataclass
class DeckSettings:
    """Configuration for deck building and review."""

    include: list[str] = field(default_factory=list)  # One deck per pattern
    exclude: list[str] = field(default_factory=list)  # Removed from every deck
    max_per_day: int = 0  # 0 = unlimited
    show_badge: bool = True  # Show due count in the UI
    extensions: list[str] = field(default_factory=lambda: [".md"])

    def to_dict(self) -> dict[str, Any]:
        return {
            "include": list(self.include),
            "exclude": list(self.exclude),
            "max_per_day": self.max_per_day,
            "show_badge": self.show_badge,
            "extensions": list(self.extensions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeckSettings:
        return cls(
            include=list(data.get("include", [])),
            exclude=list(data.get("exclude", [])),
            max_per_day=int(data.get("max_per_day", 0)),
            show_badge=bool(data.get("show_badge", True)),
            extensions=list(data.get("extensions", [".md"])),
        )

    @classmethod
    def load(cls, path: Path) -> DeckSettings:
        """Load settings from ``path``; a missing file yields defaults.

        Raises:
            json.JSONDecodeError: If the file is not valid JSON.
        """
        if not path.exists():
            logger.info("No settings file at %s, using defaults", path)
            return cls()
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def save(self, path: Path) -> None:
        """Write settings to ``path``, keeping other keys in the file.

        A corrupt existing file is logged and overwritten.
        """
        existing: dict[str, Any] = {}
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    existing = json.load(f)
            except json.JSONDecodeError as exc:
                logger.warning("Overwriting corrupt settings file %s: %s", path, exc)
        existing.update(self.to_dict())
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(existing, f, indent=2)
