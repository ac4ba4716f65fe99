"""
Index-addressed node storage for one forest build.

Nodes are referenced by their integer position in the build input. The
arena owns every parent slot and child list, so reparenting is an update
of two entries and cycles can be checked by walking parent indices.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ArenaEntry:
    """Placement of one node.

    Attributes:
        node_id: Position of the node in the build input.
        parent: Index of the parent node, or None while unattached.
        children: Indices of direct children, in attachment order.
    """

    node_id: int
    parent: int | None = None
    children: list[int] = field(default_factory=list)


class NodeArena:
    """Parent/child bookkeeping for ``size`` nodes.

    Every node has at most one parent slot. ``attach`` refuses any
    placement that would make a node its own ancestor.

    Args:
        size: Number of nodes, addressed as ``0 .. size - 1``.
    """

    def __init__(self, size: int) -> None:
        self._entries = [ArenaEntry(node_id=i) for i in range(size)]

    def __len__(self) -> int:
        return len(self._entries)

    def parent_of(self, node: int) -> int | None:
        return self._entries[node].parent

    def children_of(self, node: int) -> tuple[int, ...]:
        """Snapshot of the direct children of ``node``."""
        return tuple(self._entries[node].children)

    def is_ancestor(self, ancestor: int, node: int) -> bool:
        """Check whether ``ancestor`` lies on the parent chain of ``node``.

        Args:
            ancestor: Candidate ancestor index.
            node: Index whose parent chain is walked.

        Returns:
            True if ``ancestor`` is a strict ancestor of ``node``.
        """
        current = self._entries[node].parent
        while current is not None:
            if current == ancestor:
                return True
            current = self._entries[current].parent
        return False

    def attach(self, parent: int, child: int) -> None:
        """Place ``child`` under ``parent``, detaching it from its old slot.

        Raises:
            ValueError: If the placement would create a cycle.
        """
        if parent == child or self.is_ancestor(child, parent):
            raise ValueError(f"Attaching node {child} under {parent} would create a cycle")

        if self._entries[child].parent == parent:
            return

        self.detach(child)
        self._entries[parent].children.append(child)
        self._entries[child].parent = parent

    def detach(self, child: int) -> None:
        """Remove ``child`` from its parent's child list (no-op for roots)."""
        parent = self._entries[child].parent
        if parent is None:
            return
        self._entries[parent].children.remove(child)
        self._entries[child].parent = None

    def roots(self) -> list[int]:
        """Indices of all nodes without a parent slot."""
        return [entry.node_id for entry in self._entries if entry.parent is None]

    def descendants(self, node: int) -> list[int]:
        """All descendants of ``node`` in DFS order."""
        result = []
        for child in self._entries[node].children:
            result.append(child)
            result.extend(self.descendants(child))
        return result
