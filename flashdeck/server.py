"""FastAPI server for flashdeck.

Endpoints are registered on an ``APIRouter`` so a host application can
mount them under a prefix. The standalone ``app`` includes the router
directly::

    uvicorn flashdeck.server:app --reload --port 8430
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from flashdeck.cards.card import as_utc
from flashdeck.config import DEFAULT_SETTINGS_FILENAME, DeckSettings
from flashdeck.daily_limit import DailyLimit
from flashdeck.decks import DeckBuildResult, DeckLibrary, VaultError
from flashdeck.hierarchy import DeckNode, HierarchyBuilder, classify_patterns, is_subset
from flashdeck.review import capped_counts, deck_due_cards, due_counts

logger = logging.getLogger(__name__)

router = APIRouter()

app = FastAPI(
    title="flashdeck API",
    description="Glob-pattern deck hierarchies for markdown flashcards",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Request Models
# ============================================================================


class CompareRequest(BaseModel):
    """Request for comparing two patterns."""

    child: str
    parent: str


class DeckInput(BaseModel):
    """One deck: a pattern and the item keys it matched."""

    pattern: str
    items: list[str] = []


class BuildRequest(BaseModel):
    """Request for building a forest from explicit decks."""

    decks: list[DeckInput]


class VaultRequest(BaseModel):
    """Request for building decks from a vault directory.

    ``store`` is the JSON file holding the daily review counter; it
    defaults to ``flashdeck.json`` in the vault root.
    """

    root: str
    include: list[str]
    exclude: list[str] = []
    extensions: list[str] = [".md"]
    max_per_day: int = 0
    show_badge: bool = True
    store: str | None = None
    now: datetime | None = None


class ReviewQueueRequest(VaultRequest):
    """Request for the review queue of one deck."""

    pattern: str


class RecordReviewRequest(BaseModel):
    """Request for counting one reviewed card against the daily limit."""

    root: str
    max_per_day: int = 0
    store: str | None = None
    now: datetime | None = None


# ============================================================================
# Helpers
# ============================================================================


def _daily_limit(
    root: str, max_per_day: int, store: str | None, now: datetime | None
) -> DailyLimit:
    store_path = Path(store) if store else Path(root) / DEFAULT_SETTINGS_FILENAME
    today = (lambda: now.date()) if now else None
    return DailyLimit(max_per_day, store_path, today=today)


def _build_vault(request: VaultRequest, now: datetime | None) -> DeckBuildResult:
    settings = DeckSettings(
        include=request.include,
        exclude=request.exclude,
        max_per_day=request.max_per_day,
        show_badge=request.show_badge,
        extensions=request.extensions,
    )
    library = DeckLibrary(Path(request.root), settings)
    try:
        return library.build(now=now)
    except VaultError as e:
        logger.warning("Vault request failed: %s", e)
        raise HTTPException(status_code=400, detail=e.to_dict())


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/api/health")
async def health() -> dict[str, Any]:
    """Health check."""
    return {"status": "ok"}


@router.post("/api/patterns/compare")
async def compare_patterns(request: CompareRequest) -> dict[str, Any]:
    """Check whether ``child`` is strictly more specific than ``parent``."""
    return {
        "child": request.child,
        "parent": request.parent,
        "is_subset": is_subset(request.child, request.parent),
        "relation": classify_patterns(request.child, request.parent).value,
    }


@router.post("/api/decks/build")
async def build_decks(request: BuildRequest) -> dict[str, Any]:
    """Arrange explicit decks into a forest."""
    nodes = [DeckNode(pattern=deck.pattern, items=list(deck.items)) for deck in request.decks]
    forest = HierarchyBuilder.build(nodes)
    return forest.to_dict()


@router.post("/api/vault/decks")
async def vault_decks(request: VaultRequest) -> dict[str, Any]:
    """Build the deck forest of a vault with per-deck due counts.

    ``badge_counts`` are the due counts capped at the reviews left today.
    They are None when badges are turned off.
    """
    now = as_utc(request.now) if request.now else None
    result = _build_vault(request, now)

    response = result.to_dict()
    counts = due_counts(result.forest, now) if result.forest else {}
    response["due_counts"] = counts
    if request.show_badge:
        limit = _daily_limit(request.root, request.max_per_day, request.store, now)
        response["badge_counts"] = capped_counts(counts, limit.remaining)
    else:
        response["badge_counts"] = None
    return response


@router.post("/api/decks/review-queue")
async def review_queue(request: ReviewQueueRequest) -> dict[str, Any]:
    """Due cards of one deck and its sub-decks, capped by the daily limit."""
    now = as_utc(request.now) if request.now else None
    result = _build_vault(request, now)
    if result.forest is None:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Vault has invalid cards",
                "errors": [error.to_dict() for error in result.errors],
            },
        )

    node = result.forest.get_node(request.pattern)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Deck not found: {request.pattern}")

    due = deck_due_cards(node, now)
    limit = _daily_limit(request.root, request.max_per_day, request.store, now)
    queue = limit.apply_to(due)
    return {
        "pattern": node.pattern,
        "due_count": len(due),
        "limit_reached": limit.is_reached(),
        "remaining": limit.remaining,
        "cards": [card.to_dict() for card in queue],
    }


@router.post("/api/review/record")
async def record_review(request: RecordReviewRequest) -> dict[str, Any]:
    """Count one reviewed card against today's limit."""
    now = as_utc(request.now) if request.now else None
    limit = _daily_limit(request.root, request.max_per_day, request.store, now)
    limit.record_reviewed()
    return {
        "served": limit.state.served,
        "limit_reached": limit.is_reached(),
        "remaining": limit.remaining,
    }


app.include_router(router)


# ============================================================================
# Main Entry Point
# ============================================================================


def run_server(host: str = "127.0.0.1", port: int = 8430) -> None:
    """Run the flashdeck server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_server()
