"""
Pattern specificity comparison.

Decides whether one glob pattern is a strict specialization of another.
This is the ordering relation the deck hierarchy is built on.
"""

from __future__ import annotations

import re
from enum import Enum

# Catch-all patterns, ordered from most to least general
FULL_CATCHALL = "**"
ALL_FILES = "**/*"
SUBDIRS_ONLY = "*/**"
SINGLE_LEVEL = "*"

CATCHALL_PATTERNS = frozenset({FULL_CATCHALL, ALL_FILES, SUBDIRS_ONLY, SINGLE_LEVEL})

_RECURSIVE_SUFFIX = "/**"

# "*.md", "Work/*.md", "**.md" -> "md"
_EXT_WILDCARD_RE = re.compile(r"\*\.(\w+)$")
# "chapter-*.md" -> "chapter"
_PREFIX_WILDCARD_RE = re.compile(r"^(\w+)-\*")
# "**.md"
_GLOBAL_EXT_RE = re.compile(r"^\*\*\.(\w+)$")
# "*.md"
_ROOT_EXT_RE = re.compile(r"^\*\.(\w+)$")
# "README.md"
_EXACT_FILE_RE = re.compile(r"^([^/]+)\.(\w+)$")
# "Work/README.md"
_NESTED_FILE_RE = re.compile(r"^.+/([^/]+)\.(\w+)$")
# "chapter-*.md"
_PREFIXED_FILE_RE = re.compile(r"^(.+)-\*\.(\w+)$")


class PatternRelation(str, Enum):
    """How a pattern relates to another one."""

    CHILD = "child"
    PARENT = "parent"
    UNRELATED = "unrelated"


def is_subset(child: str, parent: str) -> bool:
    """Check whether ``child`` is a strict specialization of ``parent``.

    True when every path ``child`` could match is also matched by
    ``parent`` and the two patterns are not identical. Ambiguous pairs
    resolve to False.

    Examples:
    "Work/Math/**" in "Work/**" -> True
    "README.md" in "*.md" -> True
    "Workshop/**" in "Work/**" -> False
    "**" in "**" -> False

    Args:
        child: Candidate specialization.
        parent: Candidate generalization.

    Returns:
        True if ``child`` nests under ``parent``.
    """
    if child == parent:
        return False

    if not child or not parent:
        return False

    if _is_directory_child(child, parent):
        return True

    if _are_incompatible(child, parent):
        return False

    return _is_more_specific(child, parent)


def classify_patterns(first: str, second: str) -> PatternRelation:
    """Classify ``first`` relative to ``second`` using both directions.

    Returns:
        CHILD if ``first`` nests under ``second``, PARENT for the
        reverse, UNRELATED when neither direction holds.
    """
    if is_subset(first, second):
        return PatternRelation.CHILD
    if is_subset(second, first):
        return PatternRelation.PARENT
    return PatternRelation.UNRELATED


def _is_directory_child(child: str, parent: str) -> bool:
    """Path prefix check for patterns like Work/Math/** vs Work/**."""
    if "/" not in child or not parent.endswith(_RECURSIVE_SUFFIX):
        return False

    child_dir = child.split(_RECURSIVE_SUFFIX)[0]
    parent_dir = parent[: -len(_RECURSIVE_SUFFIX)]

    return child_dir.startswith(parent_dir + "/") and child_dir != parent_dir


def _last_segment(pattern: str) -> str:
    return pattern.rsplit("/", 1)[-1]


def _are_incompatible(child: str, parent: str) -> bool:
    """Detect pairs that can never nest, whatever their wildcards.

    Args:
        child: Candidate specialization.
        parent: Candidate generalization.

    Returns:
        True if the patterns have conflicting literal parts.
    """
    # Different file extensions like *.md vs *.js
    child_ext = _EXT_WILDCARD_RE.search(child)
    parent_ext = _EXT_WILDCARD_RE.search(parent)
    if child_ext and parent_ext and child_ext.group(1) != parent_ext.group(1):
        return True

    # Different filename prefixes like chapter-* vs notes-*
    child_prefix = _PREFIX_WILDCARD_RE.match(_last_segment(child))
    parent_prefix = _PREFIX_WILDCARD_RE.match(_last_segment(parent))
    if child_prefix and parent_prefix and child_prefix.group(1) != parent_prefix.group(1):
        return True

    # Literal segments at the same position must be equal. Substrings
    # (Workshop vs Work, Mathematics vs Math) count as a mismatch.
    for child_part, parent_part in zip(child.split("/"), parent.split("/")):
        if "*" in child_part or "*" in parent_part:
            continue
        if child_part != parent_part:
            return True

    return False


def _is_more_specific(child: str, parent: str) -> bool:
    """Apply wildcard-class ordering and filename refinement rules."""
    if parent == FULL_CATCHALL:
        return child != FULL_CATCHALL

    if parent == SINGLE_LEVEL:
        return "/" not in child and child != SINGLE_LEVEL and "**" not in child

    if parent == ALL_FILES:
        return child != FULL_CATCHALL

    if parent == SUBDIRS_ONLY:
        return "/" in child and child not in (SINGLE_LEVEL, FULL_CATCHALL, ALL_FILES)

    if _refines_filename(child, parent):
        return True

    # Work/** contains Work/**/*, Work/**/notes.md, ...
    if parent.endswith(_RECURSIVE_SUFFIX):
        return child.startswith(parent[: -len(_RECURSIVE_SUFFIX)] + "/")

    return False


def _refines_filename(child: str, parent: str) -> bool:
    """Filename specificity: README.md and chapter-*.md under *.md.

    A parent rooted at a literal directory (Work/*.md, Work/**.md)
    applies the same rules to the part of ``child`` below that directory.

    Args:
        child: Candidate specialization.
        parent: Generic file pattern.

    Returns:
        True if ``child`` names a subset of the files ``parent`` matches.
    """
    if "/" in parent:
        parent_dir, _, parent_file = parent.rpartition("/")
        if "*" in parent_dir or not child.startswith(parent_dir + "/"):
            return False
        return _refines_filename(child[len(parent_dir) + 1 :], parent_file)

    # **.md contains *.md, README.md and Work/README.md
    global_match = _GLOBAL_EXT_RE.match(parent)
    if global_match:
        ext = global_match.group(1)
        root_match = _ROOT_EXT_RE.match(child)
        if root_match and root_match.group(1) == ext:
            return True
        if "*" not in child:
            file_match = _EXACT_FILE_RE.match(child) or _NESTED_FILE_RE.match(child)
            if file_match and file_match.group(2) == ext:
                return True

    if "/" in child:
        return False

    parent_match = _ROOT_EXT_RE.match(parent)
    if not parent_match:
        return False
    ext = parent_match.group(1)

    prefixed_match = _PREFIXED_FILE_RE.match(child)
    if prefixed_match:
        return prefixed_match.group(2) == ext

    if "*" not in child:
        exact_match = _EXACT_FILE_RE.match(child)
        if exact_match:
            return exact_match.group(2) == ext

    return False
