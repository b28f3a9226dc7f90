"""
Display identity override for the current user.

Holds what the UI shows for "you" (name, username, avatar) after a profile
edit, before the session is refreshed. It is an owned object: create one per
client/session and call reset() on sign-out.
"""

from typing import Any, Dict, Optional

_FIELDS = ("id", "name", "username", "image")


class DisplayIdentity:
    """Mutable snapshot of `{id, name, username, image}`."""

    def __init__(
        self,
        id: Optional[str] = None,
        name: Optional[str] = None,
        username: Optional[str] = None,
        image: Optional[str] = None,
    ):
        self.id = id
        self.name = name
        self.username = username
        self.image = image

    def set(self, **partial: Any) -> None:
        """Merge known fields; unknown keys raise ValueError."""
        unknown = set(partial) - set(_FIELDS)
        if unknown:
            raise ValueError(f"Unknown identity fields: {', '.join(sorted(unknown))}")
        for key, value in partial.items():
            setattr(self, key, value)

    def reset(self) -> None:
        for key in _FIELDS:
            setattr(self, key, None)

    def snapshot(self) -> Dict[str, Optional[str]]:
        return {key: getattr(self, key) for key in _FIELDS}

    def label(self, fallback: str = "You") -> str:
        """Text shown for self references: name, then username, then fallback."""
        return self.name or self.username or fallback

    def __repr__(self) -> str:
        return f"<DisplayIdentity {self.snapshot()}>"
