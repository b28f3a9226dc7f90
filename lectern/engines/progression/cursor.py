"""
Per-lecture navigation cursor.
"""

from typing import Any, Dict, Sequence

from lectern.engines.progression.unlock import derive_unlocked_index


class LectureCursor:
    """
    `{current_index, unlocked_index}` for one lecture view.

    Owned by whoever renders the lecture; reset() returns it to the values it
    was created with.
    """

    def __init__(self, current_index: int = 0, unlocked_index: int = 0):
        self._initial = (current_index, unlocked_index)
        self.current_index = current_index
        self.unlocked_index = unlocked_index

    @classmethod
    def from_subtopics(cls, subtopics: Sequence[Any]) -> "LectureCursor":
        """Start at the unlocked subtopic."""
        unlocked = derive_unlocked_index(subtopics)
        return cls(current_index=unlocked, unlocked_index=unlocked)

    def set_current_index(self, index: int) -> None:
        self.current_index = index

    def set_unlocked_index(self, index: int) -> None:
        self.unlocked_index = index

    def select_index(self, index: int) -> bool:
        """Move to `index` if it is not past the unlocked subtopic."""
        if index <= self.unlocked_index:
            self.current_index = index
            return True
        return False

    def unlock_next(self, total: int) -> bool:
        """Unlock and move to the next subtopic, if there is one."""
        if self.unlocked_index < total - 1:
            self.unlocked_index += 1
            self.current_index = self.unlocked_index
            return True
        return False

    def reset(self) -> None:
        self.current_index, self.unlocked_index = self._initial

    def snapshot(self) -> Dict[str, int]:
        return {"current_index": self.current_index, "unlocked_index": self.unlocked_index}
