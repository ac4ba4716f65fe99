"""
Deck forest builder.

Builds deck forests from populated deck nodes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import Any

from flashdeck.hierarchy.arena import NodeArena
from flashdeck.hierarchy.patterns import is_subset
from flashdeck.hierarchy.tree import DeckForest, DeckNode, item_key

logger = logging.getLogger(__name__)

KeyFunc = Callable[[Any], Hashable]


def _is_child(
    child_pattern: str,
    child_keys: frozenset[Hashable],
    parent_pattern: str,
    parent_keys: frozenset[Hashable],
) -> bool:
    """Child decision on precomputed item identity sets."""
    # A deck with more items can not be a subset of a deck with fewer
    if len(child_keys) > len(parent_keys):
        return False

    if child_keys and parent_keys:
        if not child_keys <= parent_keys:
            return False
        # Identical item sets: only the patterns can order them
        if child_keys == parent_keys:
            return is_subset(child_pattern, parent_pattern)
        return True

    return is_subset(child_pattern, parent_pattern)


class RelationTable:
    """
    Child relation for every ordered pair of build nodes.

    ``is_child(a, b)`` is True when node ``a`` is a specialization of node
    ``b``. The table is computed once and never changes afterwards.
    """

    def __init__(self, size: int) -> None:
        self.size = size
        self._ancestors: list[set[int]] = [set() for _ in range(size)]

    @classmethod
    def classify(cls, nodes: Sequence[DeckNode], key: KeyFunc = item_key) -> RelationTable:
        """Classify every ordered pair of ``nodes``.

        Args:
            nodes: Build input.
            key: Item identity function.

        Returns:
            RelationTable indexed by position in ``nodes``.
        """
        table = cls(len(nodes))
        key_sets = [frozenset(key(item) for item in node.items) for node in nodes]

        for i, child in enumerate(nodes):
            for j, parent in enumerate(nodes):
                if i == j:
                    continue
                if _is_child(child.pattern, key_sets[i], parent.pattern, key_sets[j]):
                    table._ancestors[i].add(j)

        return table

    def is_child(self, child: int, parent: int) -> bool:
        return parent in self._ancestors[child]

    def ancestors_of(self, node: int) -> set[int]:
        """All nodes ``node`` is a specialization of."""
        return set(self._ancestors[node])

    def root_candidates(self) -> list[int]:
        """Nodes with no recorded ancestor."""
        return [i for i in range(self.size) if not self._ancestors[i]]

    @property
    def relation_count(self) -> int:
        return sum(len(ancestors) for ancestors in self._ancestors)


class HierarchyBuilder:
    """
    Builds deck forests from deck nodes.

    This is the core of flashdeck's organization logic - taking a flat
    set of pattern decks and nesting each one under its most specific
    generalization.
    """

    @staticmethod
    def is_child_of(child: DeckNode, parent: DeckNode, key: KeyFunc = item_key) -> bool:
        """
        Decide whether ``child`` belongs under ``parent``.

        Strategy:
        1. A deck with more items than ``parent`` is never its child
        2. When both decks have items, every child item must be in
           ``parent``; identical item sets fall back to the patterns
        3. When either deck is empty, only the patterns decide

        Args:
            child: Candidate child deck.
            parent: Candidate parent deck.
            key: Item identity function.

        Returns:
            True if ``child`` is a specialization of ``parent``.
        """
        return _is_child(
            child.pattern,
            frozenset(key(item) for item in child.items),
            parent.pattern,
            frozenset(key(item) for item in parent.items),
        )

    @staticmethod
    def build(
        nodes: Iterable[DeckNode],
        metadata: dict[str, Any] | None = None,
        key: KeyFunc = item_key,
    ) -> DeckForest:
        """Build a deck forest from populated deck nodes.

        Strategy:
        1. Classify every ordered pair into a relation table
        2. Fold the table into an arena, one recursive insert per
           (ancestor, node) relation, in canonical node order
        3. Nodes left without a parent become roots
        4. Materialize fresh DeckNode objects from the arena

        The input nodes are never modified.

        Args:
            nodes: Decks to arrange. Their ``children`` are ignored.
            metadata: Optional metadata for the forest.
            key: Item identity function.

        Returns:
            DeckForest with full structure.
        """
        node_list = list(nodes)
        relations = RelationTable.classify(node_list, key)
        order = HierarchyBuilder._canonical_order(node_list, key)
        rank = {node_id: position for position, node_id in enumerate(order)}

        arena = NodeArena(len(node_list))
        for node_id in order:
            for ancestor in sorted(relations.ancestors_of(node_id), key=rank.__getitem__):
                HierarchyBuilder._insert(arena, relations, ancestor, node_id)

        root_ids = sorted(arena.roots(), key=rank.__getitem__)
        expected_roots = set(relations.root_candidates())
        for node_id in root_ids:
            if node_id not in expected_roots:
                logger.debug(
                    "Deck '%s' could not be nested without a cycle; kept at top level",
                    node_list[node_id].pattern,
                )

        def materialize(node_id: int) -> DeckNode:
            source = node_list[node_id]
            children = sorted(arena.children_of(node_id), key=rank.__getitem__)
            return DeckNode(
                pattern=source.pattern,
                items=list(source.items),
                children=[materialize(child) for child in children],
            )

        forest = DeckForest(
            roots=[materialize(node_id) for node_id in root_ids],
            metadata=dict(metadata or {}),
        )
        logger.debug(
            "Built deck forest: %d decks, %d relations, %d roots",
            len(node_list),
            relations.relation_count,
            len(forest.roots),
        )
        return forest

    @staticmethod
    def build_from_patterns(
        decks: Iterable[tuple[str, Iterable[Any]]],
        metadata: dict[str, Any] | None = None,
        key: KeyFunc = item_key,
    ) -> DeckForest:
        """Build a forest from ``(pattern, items)`` pairs."""
        nodes = [DeckNode(pattern=pattern, items=list(items)) for pattern, items in decks]
        return HierarchyBuilder.build(nodes, metadata=metadata, key=key)

    @staticmethod
    def _canonical_order(nodes: Sequence[DeckNode], key: KeyFunc) -> list[int]:
        """Node indices sorted by content, independent of input order."""

        def sort_key(node_id: int) -> tuple[str, tuple[str, ...]]:
            node = nodes[node_id]
            return node.pattern, tuple(sorted(str(key(item)) for item in node.items))

        return sorted(range(len(nodes)), key=sort_key)

    @staticmethod
    def _insert(arena: NodeArena, relations: RelationTable, parent: int, child: int) -> None:
        """Insert ``child`` into the subtree of ``parent``.

        Descends into the first existing child that ``child`` specializes.
        Otherwise adopts the existing children that specialize ``child``
        and attaches ``child`` at this level.

        Args:
            arena: Placement state, updated in place.
            relations: Precomputed child relation.
            parent: Index of an ancestor of ``child``.
            child: Index of the node being placed.
        """
        if arena.parent_of(child) == parent:
            return

        # Would close a cycle
        if parent == child or arena.is_ancestor(child, parent):
            return

        for existing in arena.children_of(parent):
            if relations.is_child(child, existing):
                HierarchyBuilder._insert(arena, relations, existing, child)
                return

        current = arena.parent_of(child)
        if current is not None:
            deeper = arena.is_ancestor(current, parent) or (
                relations.is_child(parent, current) and not arena.is_ancestor(parent, current)
            )
            if not deeper:
                return

        # child sits between parent and these existing children
        for existing in arena.children_of(parent):
            if relations.is_child(existing, child) and not arena.is_ancestor(existing, child):
                arena.attach(child, existing)

        arena.attach(parent, child)
