"""Undo journal behind the ledgers' snapshot/restore.

While at least one checkpoint is open, every write records the previous
value of the key it touches. Rolling back replays those records in reverse,
so a checkpoint costs as much as the change it guards rather than a copy of
the whole state. Checkpoints nest: a call's checkpoint can sit inside a
batch's, and the journal is dropped once the outermost one is committed.
"""

from typing import Any, Hashable, List, MutableMapping, Tuple

_MISSING = object()


class Journal:
    """Records undo entries for writes made under an open checkpoint."""

    def __init__(self):
        self._entries: List[Tuple[MutableMapping, Hashable, Any]] = []
        self._depth = 0

    @property
    def depth(self) -> int:
        """Number of checkpoints currently open."""
        return self._depth

    def set(self, mapping: MutableMapping, key: Hashable, value: Any) -> None:
        """Write ``mapping[key] = value``, journaling the old value if needed."""
        if self._depth:
            self._entries.append((mapping, key, mapping.get(key, _MISSING)))
        mapping[key] = value

    def checkpoint(self) -> int:
        """Open a checkpoint and return its mark."""
        self._depth += 1
        return len(self._entries)

    def rollback(self, mark: int) -> None:
        """Undo every write made since ``mark`` and close that checkpoint."""
        if mark > len(self._entries):
            raise ValueError(f"Unknown checkpoint {mark}")
        while len(self._entries) > mark:
            mapping, key, old = self._entries.pop()
            if old is _MISSING:
                del mapping[key]
            else:
                mapping[key] = old
        self._close()

    def commit(self) -> None:
        """Close the innermost checkpoint, keeping its writes."""
        self._close()

    def _close(self) -> None:
        if not self._depth:
            raise RuntimeError("No open checkpoint")
        self._depth -= 1
        if not self._depth:
            self._entries.clear()
