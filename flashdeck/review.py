"""Review queue aggregation over the deck forest."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from flashdeck.cards.card import Card, as_utc, utc_now
from flashdeck.hierarchy.tree import DeckForest, DeckNode


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _review_order(card: Card) -> tuple[int, datetime]:
    # New cards share one key so the stable sort keeps their input order
    if card.schedule.is_new:
        return 0, _EPOCH
    return 1, card.schedule.due


def due_cards(cards: Iterable[Card], now: datetime | None = None) -> list[Card]:
    """Select due cards: new cards first, then by due date.

    Args:
        cards: Candidate cards.
        now: Reference time; naive values are read as UTC. Defaults to the
            current UTC time.

    Returns:
        Due cards in review order.
    """
    moment = as_utc(now) if now else utc_now()
    due = [card for card in cards if card.schedule.is_due(moment)]
    due.sort(key=_review_order)
    return due


def collect_cards(node: DeckNode) -> list[Card]:
    """All cards of ``node`` and its sub-decks, deduplicated by path."""
    seen: set[str] = set()
    cards: list[Card] = []
    for deck in [node, *node.get_all_descendants()]:
        for card in deck.items:
            if card.path not in seen:
                seen.add(card.path)
                cards.append(card)
    return cards


def deck_due_cards(node: DeckNode, now: datetime | None = None) -> list[Card]:
    """Due cards of a deck including its sub-decks."""
    return due_cards(collect_cards(node), now)


def due_counts(forest: DeckForest, now: datetime | None = None) -> dict[str, int]:
    """Count due cards per deck pattern, computed bottom-up.

    Each deck's due set is its own due cards unioned with its children's
    due sets, so every card is checked once per deck at most.
    """
    moment = as_utc(now) if now else utc_now()
    due_paths: dict[int, set[str]] = {}
    counts: dict[str, int] = {}
    for node in forest.post_order():
        paths = {card.path for card in node.items if card.schedule.is_due(moment)}
        for child in node.children:
            paths |= due_paths[id(child)]
        due_paths[id(node)] = paths
        counts[node.pattern] = len(paths)
    return counts


def capped_counts(counts: Mapping[str, int], remaining: int | None) -> dict[str, int]:
    """Cap per-deck due counts at the reviews left today.

    Args:
        counts: Due counts keyed by deck pattern.
        remaining: Reviews left today, or None when there is no daily limit.

    Returns:
        Counts no larger than ``remaining``.
    """
    if remaining is None:
        return dict(counts)
    return {pattern: min(count, remaining) for pattern, count in counts.items()}
