"""
flashdeck - glob-pattern deck hierarchies for markdown flashcards.

Each include pattern becomes a deck; decks are nested by pattern
specificity and by the cards they actually match.
"""

from flashdeck.config import DeckSettings
from flashdeck.daily_limit import DailyLimit
from flashdeck.decks import DeckBuildResult, DeckLibrary, VaultError
from flashdeck.hierarchy import DeckForest, DeckNode, HierarchyBuilder, is_subset
from flashdeck.matching import ItemMatcher, match_pattern

__version__ = "0.1.0"

__all__ = [
    "DeckSettings",
    "DailyLimit",
    "DeckBuildResult",
    "DeckLibrary",
    "VaultError",
    "DeckForest",
    "DeckNode",
    "HierarchyBuilder",
    "is_subset",
    "ItemMatcher",
    "match_pattern",
]
