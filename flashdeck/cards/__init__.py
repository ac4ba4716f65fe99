"""
Cards module - markdown files with spaced-repetition frontmatter.
"""

from flashdeck.cards.card import Card, CardState, Schedule
from flashdeck.cards.storage import CardLoadResult, CardStorage, ValidationResult, split_frontmatter
from flashdeck.cards.validation import CardValidationError, ValidationErrorType

__all__ = [
    "Card",
    "CardState",
    "Schedule",
    "CardStorage",
    "CardLoadResult",
    "ValidationResult",
    "split_frontmatter",
    "CardValidationError",
    "ValidationErrorType",
]
