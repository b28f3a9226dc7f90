"""
Unlock policy for a lecture's subtopics.

The unlocked index is a "furthest reached" pointer: the position right after
the highest-index mastered subtopic, clamped to the last subtopic. Earlier
gaps in mastery are ignored.
"""

from typing import Any, Mapping, Sequence


def _is_mastered(subtopic: Any) -> bool:
    if isinstance(subtopic, Mapping):
        return bool(subtopic.get("mastered", False))
    return bool(getattr(subtopic, "mastered", False))


def last_mastered_index(subtopics: Sequence[Any]) -> int:
    """Highest index whose subtopic is mastered, or -1."""
    last = -1
    for i, subtopic in enumerate(subtopics):
        if _is_mastered(subtopic):
            last = i
    return last


def derive_unlocked_index(subtopics: Sequence[Any]) -> int:
    """
    Index of the subtopic the learner is unlocked into.

    Args:
        subtopics: Subtopics in display order; anything exposing `mastered`
            (attribute or mapping key)

    Returns:
        min(last_mastered + 1, max(0, len - 1)). An empty sequence yields 0,
        which the caller must not dereference.
    """
    return min(last_mastered_index(subtopics) + 1, max(0, len(subtopics) - 1))
