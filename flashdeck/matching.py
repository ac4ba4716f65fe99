"""Glob matching of vault-relative paths against deck patterns.

Paths and patterns are ``/``-separated. ``*`` never crosses a separator;
a ``**`` segment matches any number of directories, including none,
except in last position where it needs at least one entry below it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from fnmatch import fnmatchcase
from pathlib import PurePosixPath

GLOBSTAR = "**"


def match_pattern(path: str, pattern: str) -> bool:
    """Match a relative path against a glob pattern respecting depth."""
    return _match_parts(path.split("/"), pattern.split("/"))


def _match_parts(path_parts: list[str], pattern_parts: list[str]) -> bool:
    """Recursively match path segments against pattern segments."""
    if not pattern_parts:
        return not path_parts
    if not path_parts:
        return False

    if pattern_parts[0] == GLOBSTAR:
        # '**' consumes zero or more leading segments
        for i in range(len(path_parts) + 1):
            if _match_parts(path_parts[i:], pattern_parts[1:]):
                return True
        return False

    if fnmatchcase(path_parts[0], pattern_parts[0]):
        return _match_parts(path_parts[1:], pattern_parts[1:])

    return False


class ItemMatcher:
    """Resolve include/exclude patterns to sets of matching paths.

    Args:
        include: Deck patterns; each one becomes a deck.
        exclude: Patterns removing paths from every deck.
        extensions: Allowed file suffixes (lowercase, with dot). Empty
            means every file is eligible.
    """

    def __init__(
        self,
        include: Sequence[str],
        exclude: Sequence[str] = (),
        extensions: Sequence[str] = (".md",),
    ) -> None:
        self.include = list(include)
        self.exclude = list(exclude)
        self.extensions = {ext.lower() for ext in extensions}

    def is_eligible(self, path: str) -> bool:
        """Check the extension filter and the exclude patterns."""
        if self.extensions and PurePosixPath(path).suffix.lower() not in self.extensions:
            return False
        return not any(match_pattern(path, pattern) for pattern in self.exclude)

    def filter(self, paths: Iterable[str], patterns: Sequence[str]) -> list[str]:
        """Keep eligible paths matching at least one of ``patterns``.

        Args:
            paths: Candidate vault-relative paths.
            patterns: Include patterns to test.

        Returns:
            Matching paths in input order.
        """
        if not patterns:
            return []
        return [
            path
            for path in paths
            if self.is_eligible(path) and any(match_pattern(path, p) for p in patterns)
        ]

    def resolve(self, paths: Iterable[str]) -> list[tuple[str, list[str]]]:
        """Match every include pattern against ``paths``.

        Returns:
            One ``(pattern, matched_paths)`` pair per include pattern, in
            include order.
        """
        path_list = list(paths)
        return [(pattern, self.filter(path_list, [pattern])) for pattern in self.include]
