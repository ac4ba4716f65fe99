"""
Deck hierarchy data structures.

The core data structures for representing the deck forest in flashdeck.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable, Hashable, Iterator
from dataclasses import dataclass, field
from typing import Any

from flashdeck.hierarchy.patterns import CATCHALL_PATTERNS

_WILDCARD_TAIL_RE = re.compile(r"/?\*+.*$")
_EXTENSION_RE = re.compile(r"\.[^.]*$")


def item_key(item: Any) -> Hashable:
    """Stable identity of an item: its ``path`` if it has one, else itself."""
    return getattr(item, "path", item)


def deck_name(pattern: str) -> str:
    """
    Derive a display name from a deck pattern.

    Examples:
    "**" -> "All"
    "Work/Math/**" -> "Math"
    "Work/README.md" -> "README"
    "chapter-*.md" -> "chapter-"
    """
    if pattern in CATCHALL_PATTERNS:
        return "All"

    if "*" in pattern:
        literal_head = _WILDCARD_TAIL_RE.sub("", pattern, count=1)
        parts = [part for part in literal_head.split("/") if part]
        if parts:
            return parts[-1]
        return "All"

    if "/" in pattern:
        parts = [part for part in pattern.split("/") if part]
        if parts:
            return _EXTENSION_RE.sub("", parts[-1])

    return _EXTENSION_RE.sub("", pattern)


@dataclass
class DeckNode:
    """
    A deck in the hierarchy forest.

    Each node groups the items matched by one pattern:
    - The pattern that produced it
    - The matched items (opaque, identified by ``item_key``)
    - Direct specializations as children

    Nodes carry no parent reference. Parent lookups go through
    ``DeckForest.parent_of``.
    """

    pattern: str
    items: list[Any] = field(default_factory=list)
    children: list[DeckNode] = field(default_factory=list)

    @property
    def name(self) -> str:
        """Display name derived from the pattern."""
        return deck_name(self.pattern)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def is_leaf(self) -> bool:
        """Check if this deck has no sub-decks."""
        return len(self.children) == 0

    @property
    def descendant_count(self) -> int:
        """Count all descendants (children, grandchildren, etc.)."""
        count = len(self.children)
        for child in self.children:
            count += child.descendant_count
        return count

    def get_all_descendants(self) -> list[DeckNode]:
        """Get all descendants as a flat list (DFS order)."""
        descendants = []
        for child in self.children:
            descendants.append(child)
            descendants.extend(child.get_all_descendants())
        return descendants

    def get_leaves(self) -> list[DeckNode]:
        """Get all leaf decks under this deck."""
        if self.is_leaf:
            return [self]

        leaves = []
        for child in self.children:
            leaves.extend(child.get_leaves())
        return leaves

    def to_dict(
        self,
        include_children: bool = True,
        serialize_item: Callable[[Any], Any] | None = None,
    ) -> dict[str, Any]:
        """
        Convert to dictionary for JSON export.

        Args:
            include_children: If True, recursively include children
            serialize_item: Converts one item to a JSON value. Defaults to
                the item's ``to_dict()`` when present, else ``item_key``.
        """
        to_value = serialize_item or _default_item_value
        result: dict[str, Any] = {
            "pattern": self.pattern,
            "name": self.name,
            "items": [to_value(item) for item in self.items],
            "item_count": self.item_count,
            "is_leaf": self.is_leaf,
            "child_count": len(self.children),
        }

        if include_children:
            result["children"] = [
                child.to_dict(True, serialize_item) for child in self.children
            ]

        return result

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<DeckNode '{self.pattern}' items={len(self.items)} "
            f"children={len(self.children)}>"
        )


def _default_item_value(item: Any) -> Any:
    if hasattr(item, "to_dict"):
        return item.to_dict()
    return item_key(item)


@dataclass
class DeckForest:
    """
    A complete deck forest.

    Wraps the root decks and provides forest-level operations. A forest is
    a snapshot: builders create a new one on every rebuild.
    """

    roots: list[DeckNode] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def total_nodes(self) -> int:
        """Count all decks in the forest."""
        return len(self.roots) + sum(root.descendant_count for root in self.roots)

    @property
    def max_depth(self) -> int:
        """Get maximum depth of the forest (roots = 0, empty forest = -1)."""
        return max((depth for _, depth in self.walk()), default=-1)

    @property
    def leaf_count(self) -> int:
        return sum(len(root.get_leaves()) for root in self.roots)

    def walk(self) -> Iterator[tuple[DeckNode, int]]:
        """Yield ``(node, depth)`` pairs in pre-order (top-down)."""
        stack = [(root, 0) for root in reversed(self.roots)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            for child in reversed(node.children):
                stack.append((child, depth + 1))

    def post_order(self) -> Iterator[DeckNode]:
        """Yield every deck after all of its descendants (bottom-up)."""

        def visit(node: DeckNode) -> Iterator[DeckNode]:
            for child in node.children:
                yield from visit(child)
            yield node

        for root in self.roots:
            yield from visit(root)

    def get_all_nodes(self) -> list[DeckNode]:
        """Get all decks as a flat list (DFS order)."""
        return [node for node, _ in self.walk()]

    def get_node(self, pattern: str) -> DeckNode | None:
        """Find the first deck with the given pattern."""
        for node, _ in self.walk():
            if node.pattern == pattern:
                return node
        return None

    def parent_of(self, pattern: str) -> DeckNode | None:
        """Find the parent deck of the deck with ``pattern`` (None for roots)."""
        for node, _ in self.walk():
            for child in node.children:
                if child.pattern == pattern:
                    return node
        return None

    def get_statistics(self) -> dict[str, Any]:
        """Get forest statistics for analysis."""
        depths = Counter(depth for _, depth in self.walk())
        return {
            "total_nodes": self.total_nodes,
            "root_count": len(self.roots),
            "leaf_count": self.leaf_count,
            "max_depth": self.max_depth,
            "depth_distribution": dict(depths),
        }

    def to_dict(self, serialize_item: Callable[[Any], Any] | None = None) -> dict[str, Any]:
        """Convert entire forest to dictionary."""
        return {
            "metadata": self.metadata,
            "statistics": self.get_statistics(),
            "roots": [root.to_dict(True, serialize_item) for root in self.roots],
        }

    def render(self, max_depth: int | None = None) -> str:
        """Render the forest as an indented text tree."""
        lines = []
        for node, depth in self.walk():
            if max_depth is not None and depth > max_depth:
                continue
            prefix = "  " * depth
            lines.append(f"{prefix}{node.name} [{node.pattern}] ({len(node.items)} items)")
        return "\n".join(lines)

    def print_tree(self, max_depth: int | None = None) -> None:
        """Print forest structure for debugging."""
        print(self.render(max_depth))

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<DeckForest roots={len(self.roots)} "
            f"nodes={self.total_nodes} "
            f"depth={self.max_depth}>"
        )
