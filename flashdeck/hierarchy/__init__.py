"""
Hierarchy module - Core of flashdeck's deck organization.

This module orders glob patterns by specificity and builds deck forests
from pattern-matched item sets.
"""

from flashdeck.hierarchy.arena import NodeArena
from flashdeck.hierarchy.builder import HierarchyBuilder, RelationTable
from flashdeck.hierarchy.patterns import PatternRelation, classify_patterns, is_subset
from flashdeck.hierarchy.tree import DeckForest, DeckNode, deck_name, item_key

__all__ = [
    "DeckNode",
    "DeckForest",
    "HierarchyBuilder",
    "RelationTable",
    "NodeArena",
    "PatternRelation",
    "classify_patterns",
    "deck_name",
    "is_subset",
    "item_key",
]
