"""
Deck building from a vault directory.

Enumerates the vault, matches files against the include patterns, loads
each matched file as a card and arranges the resulting decks in a forest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from flashdeck.cards.card import Card, utc_now
from flashdeck.cards.storage import CardStorage
from flashdeck.cards.validation import CardValidationError
from flashdeck.config import DeckSettings
from flashdeck.hierarchy.builder import HierarchyBuilder
from flashdeck.hierarchy.tree import DeckForest, DeckNode
from flashdeck.matching import ItemMatcher

logger = logging.getLogger(__name__)


class VaultError(Exception):
    """Raised when the vault itself can not be read."""

    def __init__(self, message: str, source_path: Path | None = None, details: str | None = None):
        self.source_path = source_path
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "source_path": str(self.source_path) if self.source_path else None,
            "details": self.details,
        }


@dataclass
class DeckBuildResult:
    """Outcome of a deck build.

    Attributes:
        forest: The deck forest; None when any card failed validation.
        errors: Validation problems of every matched file.
    """

    forest: DeckForest | None = None
    errors: list[CardValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.forest is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "forest": self.forest.to_dict() if self.forest else None,
            "errors": [error.to_dict() for error in self.errors],
        }


class DeckLibrary:
    """
    Build decks for a vault directory.

    Args:
        root: Vault root directory.
        settings: Include/exclude patterns and file extensions.
    """

    def __init__(self, root: Path, settings: DeckSettings) -> None:
        self.root = Path(root)
        self.settings = settings
        self.matcher = ItemMatcher(
            include=settings.include,
            exclude=settings.exclude,
            extensions=settings.extensions,
        )

    def scan(self) -> list[str]:
        """List vault files as sorted relative posix paths.

        Hidden files and directories (``.obsidian``, ``.git``) are skipped.

        Raises:
            VaultError: If the root is not a directory.
        """
        if not self.root.is_dir():
            raise VaultError(f"Vault directory not found: {self.root}", source_path=self.root)

        paths = []
        for path in self.root.rglob("*"):
            rel = path.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if path.is_file():
                paths.append(rel.as_posix())
        return sorted(paths)

    def build(self, now: datetime | None = None) -> DeckBuildResult:
        """Build the deck forest for the vault.

        Strategy:
        1. Scan the vault and match every include pattern
        2. Load each matched file once; collect validation errors
        3. Create one deck per include pattern
        4. Nest decks with HierarchyBuilder

        Args:
            now: Due time given to new cards.

        Returns:
            DeckBuildResult; the forest is withheld when any card is invalid.
        """
        moment = now or utc_now()
        resolved = self.matcher.resolve(self.scan())

        cards: dict[str, Card] = {}
        errors: list[CardValidationError] = []
        failed: set[str] = set()

        nodes = []
        for pattern, paths in resolved:
            items = []
            for rel_path in paths:
                if rel_path in failed:
                    continue
                if rel_path not in cards:
                    result = CardStorage.load_card(self.root / rel_path, rel_path, now=moment)
                    if result.card is None:
                        failed.add(rel_path)
                        errors.extend(result.errors)
                        continue
                    cards[rel_path] = result.card
                items.append(cards[rel_path])
            nodes.append(DeckNode(pattern=pattern, items=items))

        if errors:
            logger.warning(
                "%d validation errors in %d files under %s; decks withheld",
                len(errors),
                len(failed),
                self.root,
            )
            return DeckBuildResult(errors=errors)

        forest = HierarchyBuilder.build(
            nodes,
            metadata={"root": str(self.root), "card_count": len(cards)},
        )
        logger.info("Built %d decks from %d cards in %s", len(nodes), len(cards), self.root)
        return DeckBuildResult(forest=forest)
