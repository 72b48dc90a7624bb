"""Open-addressed hash index over a dictionary's entry store.

The index is a fixed-size table of slots, each of which is in one of
three states:

- ``EMPTY_SLOT``: never used since the last rebuild; terminates a probe.
- ``TOMBSTONE``: used once, then vacated by a deletion; probes continue
  past it.
- ``OccupiedSlot``: a cached hash plus a non-owning index into the
  entry store.

The index is never authoritative on its own: a hit is only reported when
the referenced entry's key equals the probed key. Collisions are resolved
by linear probing with wraparound. Tombstones are never reused by
``insert``; they disappear only when the whole index is rebuilt.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional, Union

from mixinforge import SingletonMixin

from .exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from .entry_store import EntryStore


class SlotFlag(SingletonMixin):
    """Base class for value-less slot states.

    Note:
        Subclasses are singletons; constructing one repeatedly returns the
        same instance, so slot states are compared with ``is``.
    """

    def __repr__(self) -> str:
        return self.__class__.__name__


class EmptySlotFlag(SlotFlag):
    """State of a slot that has not held an entry since the last rebuild."""
    pass


class TombstoneFlag(SlotFlag):
    """State of a slot whose entry was deleted.

    A tombstone keeps probe chains that pass through the slot intact:
    lookups for other keys continue scanning instead of stopping early.
    """
    pass


EMPTY_SLOT = EmptySlotFlag()
TOMBSTONE = TombstoneFlag()


@dataclass(frozen=True)
class OccupiedSlot:
    """A live slot: the key's hash and the position of its entry.

    Attributes:
        hash (int): Hash of the entry's key, cached for cheap comparison.
        entry_index (int): Index into the entry store. Not an ownership
            relation; it is recomputed on every rebuild.
    """
    hash: int
    entry_index: int


Slot = Union[EmptySlotFlag, TombstoneFlag, OccupiedSlot]


# Share of slots (occupied plus tombstones) that triggers a same-size rebuild.
MAX_INDEX_LOAD = 5 / 6


def index_size_for(capacity: int) -> int:
    """Return the hash index size for an entry store of given capacity.

    Args:
        capacity (int): Number of entries in the entry store.

    Returns:
        int: ``ceil(capacity * 1.5)``, never less than 1.
    """
    return max(1, capacity + (capacity + 1) // 2)


class HashIndex:
    """Fixed-size open-addressed table of slots.

    Attributes:
        occupied_count (int): Number of occupied slots.
        tombstone_count (int): Number of tombstones left behind by deletions.
    """

    def __init__(self, size: int):
        """Create an index with every slot empty.

        Args:
            size (int): Number of slots; must be positive.

        Raises:
            InvalidArgumentError: If size is not positive.
        """
        if size < 1:
            raise InvalidArgumentError("size", "hash index size must be positive")
        self._slots: list[Slot] = [EMPTY_SLOT] * size
        self.occupied_count: int = 0
        self.tombstone_count: int = 0

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def empty_count(self) -> int:
        """Number of slots that would terminate a probe."""
        return len(self._slots) - self.occupied_count - self.tombstone_count

    @property
    def needs_rebuild(self) -> bool:
        """Whether tombstones have pushed the load past MAX_INDEX_LOAD.

        Live entries alone never exceed two thirds of the slots, so the
        rebuild only fires once tombstones hold at least a sixth of them.
        """
        used = self.occupied_count + self.tombstone_count
        return (self.empty_count <= 1
                or (self.tombstone_count > 0
                    and used >= len(self._slots) * MAX_INDEX_LOAD))

    def slot(self, position: int) -> Slot:
        """Return the slot stored at a position."""
        return self._slots[position]

    def _probe(self, hash_value: int) -> Iterator[int]:
        size = len(self._slots)
        start = hash_value % size
        for offset in range(size):
            yield (start + offset) % size

    def locate(self, key: str, hash_value: int,
               entries: EntryStore) -> Optional[int]:
        """Find the slot holding a key.

        Args:
            key (str): Key to look for.
            hash_value (int): Hash of the key.
            entries (EntryStore): Store the occupied slots point into.

        Returns:
            int | None: Position of the matching occupied slot, or None if
            the probe reached an empty slot (or wrapped all the way round)
            without a match.
        """
        for position in self._probe(hash_value):
            slot = self._slots[position]
            if slot is EMPTY_SLOT:
                return None
            if slot is TOMBSTONE:
                continue
            if slot.hash == hash_value:
                entry = entries[slot.entry_index]
                if entry is not None and entry.key == key:
                    return position
        return None

    def insert(self, hash_value: int, entry_index: int) -> int:
        """Register an entry in the first empty slot of its probe chain.

        Tombstones are skipped, never overwritten.

        Args:
            hash_value (int): Hash of the entry's key.
            entry_index (int): Position of the entry in the entry store.

        Returns:
            int: Position of the slot that was filled.

        Raises:
            RuntimeError: If no empty slot is left. Callers rebuild the
                index before it fills up, so this signals a broken invariant.
        """
        for position in self._probe(hash_value):
            if self._slots[position] is EMPTY_SLOT:
                self._slots[position] = OccupiedSlot(hash_value, entry_index)
                self.occupied_count += 1
                return position
        raise RuntimeError("hash index has no empty slot left")

    def mark_deleted(self, position: int) -> OccupiedSlot:
        """Turn an occupied slot into a tombstone.

        Args:
            position (int): Position returned by ``locate``.

        Returns:
            OccupiedSlot: The slot that was vacated.

        Raises:
            KeyError: If the slot at ``position`` is not occupied.
        """
        slot = self._slots[position]
        if not isinstance(slot, OccupiedSlot):
            raise KeyError(position)
        self._slots[position] = TOMBSTONE
        self.occupied_count -= 1
        self.tombstone_count += 1
        return slot
