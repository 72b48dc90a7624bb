"""Entry store: the authoritative array of (key, value) records.

Entries live at stable integer positions so that the hash index can refer
to them by index. A free position holds ``None`` and can be reused by a
later insert. Growing produces a new, larger store with every existing
entry kept at its original position.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional


@dataclass
class Entry:
    """A live key and its value.

    A value of None is legal: the key is present, its value is absent.
    """
    key: str
    value: Any = None


class EntryStore:
    """Fixed-capacity sequence of entries and free positions."""

    def __init__(self, capacity: int, entries: Optional[list[Optional[Entry]]] = None):
        """Create a store of the given capacity.

        Args:
            capacity (int): Number of positions.
            entries (list | None): Existing entries to adopt. The list is
                padded with free positions up to ``capacity``.
        """
        slots = list(entries) if entries is not None else []
        slots.extend([None] * (capacity - len(slots)))
        self._entries: list[Optional[Entry]] = slots

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> Optional[Entry]:
        return self._entries[index]

    def find_free_slot(self, start: int) -> int:
        """Return the first free position at or after ``start``, wrapping.

        Args:
            start (int): Position to start scanning from. The dictionary
                passes its live-entry count: after churn, low positions are
                the likeliest to be occupied.

        Returns:
            int: Index of a free position.

        Raises:
            RuntimeError: If every position is occupied. Callers grow the
                store before it fills up, so this signals a broken invariant.
        """
        capacity = len(self._entries)
        for offset in range(capacity):
            index = (start + offset) % capacity
            if self._entries[index] is None:
                return index
        raise RuntimeError("entry store has no free position left")

    def put(self, index: int, key: str, value: Any) -> Entry:
        entry = Entry(key, value)
        self._entries[index] = entry
        return entry

    def release(self, index: int) -> Entry:
        """Free a position and return the entry that occupied it."""
        entry = self._entries[index]
        if entry is None:
            raise KeyError(index)
        self._entries[index] = None
        return entry

    def live_indices(self) -> Iterator[int]:
        """Yield the positions of live entries in ascending order."""
        for index, entry in enumerate(self._entries):
            if entry is not None:
                yield index

    def grown(self, new_capacity: int) -> EntryStore:
        """Return a larger copy of this store.

        Existing entries keep their positions; the added positions are
        free. This store is left untouched.

        Args:
            new_capacity (int): Capacity of the new store; must not be
                smaller than the current one.

        Returns:
            EntryStore: The new store.
        """
        if new_capacity < len(self._entries):
            raise ValueError("an entry store can only grow")
        return EntryStore(new_capacity, self._entries)
