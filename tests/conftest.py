"""
Pytest configuration and fixtures for flashdeck tests.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from flashdeck.cards.card import Card, CardState, Schedule

_NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)

REVIEW_FRONTMATTER = """---
flashcard-question: What is a limit?
spaced-repetition:
  - due=2025-08-26T15:30:00.000Z
  - last_review=2025-08-20T10:00:00.000Z
  - stability=2.5
  - difficulty=6.0
  - state=2
  - reps=5
  - lapses=1
  - scheduled_days=6
  - learning_steps=0
---
A limit describes the value a function approaches.
"""

FUTURE_FRONTMATTER = """---
spaced-repetition:
  - due=2025-12-01T00:00:00.000Z
  - stability=15.7
  - difficulty=6.2
  - state=2
  - reps=3
  - lapses=0
  - scheduled_days=90
  - learning_steps=0
---
Not due for a while.
"""


def _write_file(root: Path, rel_path: str, content: str = "# Note\n") -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def now() -> datetime:
    return _NOW


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """Create a small vault.

    Layout:
        README.md                  new card
        chapter-1.md               new card
        Work/README.md             due review card
        Work/Math/limits.md        review card due in December
        Work/Math/Exam/final.md    new card
        Work/diagram.png           not a card
        .obsidian/workspace.md     hidden
    """
    root = tmp_path / "vault"
    _write_file(root, "README.md")
    _write_file(root, "chapter-1.md")
    _write_file(root, "Work/README.md", REVIEW_FRONTMATTER)
    _write_file(root, "Work/Math/limits.md", FUTURE_FRONTMATTER)
    _write_file(root, "Work/Math/Exam/final.md")
    _write_file(root, "Work/diagram.png", "binary")
    _write_file(root, ".obsidian/workspace.md")
    return root


def _make_card(path: str, due: datetime | None = None, state: CardState = CardState.NEW) -> Card:
    schedule = Schedule(due=due or _NOW, state=state)
    return Card(path=path, question=Path(path).stem, schedule=schedule)


@pytest.fixture
def sample_cards() -> list[Card]:
    """Two new cards, one overdue review card and one future review card."""
    return [
        _make_card("future.md", datetime(2025, 12, 1, tzinfo=timezone.utc), CardState.REVIEW),
        _make_card("new-a.md"),
        _make_card("overdue.md", datetime(2025, 8, 1, tzinfo=timezone.utc), CardState.REVIEW),
        _make_card("new-b.md"),
    ]


@pytest.fixture
def make_card() -> Callable[..., Card]:
    """Factory for in-memory cards, due at the ``now`` fixture by default."""
    return _make_card


@pytest.fixture
def write_file() -> Callable[..., Path]:
    """Writer for vault files relative to a root directory."""
    return _write_file
