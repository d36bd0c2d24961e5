"""
Undo history of committed image snapshots.

Entries are encoded image bytes.  Committing while not at the end of the
sequence discards everything after the current index before appending, so
entries past the index stay reachable by ``redo()`` only until the next
commit.
"""


class History:
    """Truncate-then-append stack of encoded snapshots with a current index."""

    def __init__(self):
        self._entries: list[bytes] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> bytes | None:
        if self._index < 0:
            return None
        return self._entries[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._index < len(self._entries) - 1

    def reset(self, entry: bytes) -> None:
        """Replace the whole history with a single entry."""
        self._entries = [entry]
        self._index = 0

    def clear(self) -> None:
        self._entries = []
        self._index = -1

    def commit(self, entry: bytes) -> None:
        """Drop entries after the current index, then append ``entry``."""
        del self._entries[self._index + 1:]
        self._entries.append(entry)
        self._index = len(self._entries) - 1

    def undo(self) -> bytes | None:
        """Step back one entry and return it, or None at the start."""
        if not self.can_undo:
            return None
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> bytes | None:
        """Step forward one entry and return it, or None at the end."""
        if not self.can_redo:
            return None
        self._index += 1
        return self._entries[self._index]

    def seek(self, index: int) -> bytes:
        """Move the current index to an existing entry and return it."""
        if not 0 <= index < len(self._entries):
            raise IndexError(f"history index {index} out of range (0..{len(self._entries) - 1})")
        self._index = index
        return self._entries[index]
