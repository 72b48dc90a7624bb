"""In-memory string-keyed dictionary backing a configuration-file library.

IniDict maps string keys to values whose kind is fixed per dictionary by a
value policy: either strings (the default) or nested IniDict instances
owned by the parent, which lets configuration data form a tree.

Two structures cooperate inside every IniDict:

- an EntryStore, the authoritative array of (key, value) records;
- a HashIndex, a larger open-addressed table of (hash, entry position)
  slots used to find entries quickly.

The entry store grows by doubling when an insert finds it full; every
growth rebuilds the hash index from scratch, which is also the only time
tombstones left by deletions are reclaimed.

IniDict is single-owner and single-threaded. Callers that share one
across threads must serialize access themselves.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import ItemsView, KeysView, MutableMapping, ValuesView
from typing import Any, Iterator, Optional, TextIO

from mixinforge import SingletonMixin
from parameterizable import ParameterizableClass, sort_dict_by_keys

from .entry_store import EntryStore
from .exceptions import (AllocationFailureError, InvalidArgumentError,
                         PolicyViolationError)
from .hash_index import HashIndex, index_size_for
from .hashing import UINT32_MASK, HashFunction, dictionary_hash
from .value_policy import STRING_VALUES, ValuePolicy, get_value_policy

logger = logging.getLogger(__name__)

MIN_CAPACITY = 128
"""Smallest number of entries a dictionary allocates."""

UNDEF_TEXT = "UNDEF"
"""Text written by dump() in place of an absent value."""

EMPTY_DUMP_LINE = "empty dictionary"
INVALID_DUMP_LINE = "invalid dictionary"


class KeyNotFoundFlag(SingletonMixin):
    """Sentinel for "no such key", usable as the default of IniDict.get().

    Because None is a legal stored value, ``d.get(key)`` cannot tell a
    missing key from a key whose value is absent. Passing KEY_NOT_FOUND as
    the default can.

    Examples:
        >>> if d.get("section:key", KEY_NOT_FOUND) is KEY_NOT_FOUND:
        ...     print("not configured")

    Note:
        This is a singleton class; constructing it repeatedly returns the
        same instance.
    """

    def __repr__(self) -> str:
        return "KEY_NOT_FOUND"


KEY_NOT_FOUND = KeyNotFoundFlag()

_NO_DEFAULT = object()


class _EntryKeysView(KeysView):
    def __iter__(self):
        return self._mapping._generic_iter({"keys"})


class _EntryValuesView(ValuesView):
    def __iter__(self):
        return self._mapping._generic_iter({"values"})


class _EntryItemsView(ItemsView):
    def __iter__(self):
        return self._mapping._generic_iter({"keys", "values"})


class IniDict(MutableMapping, ParameterizableClass):
    """Open-addressed hash dictionary with a per-instance value policy.

    Keys are strings, treated as opaque: a configuration layer may build
    composite keys such as ``"section:key"``, but IniDict attaches no
    meaning to them. Iteration follows entry store order, which is
    neither insertion order nor alphabetical order once keys have been
    deleted and their positions reused.

    A key may be present with an absent (None) value; that is different
    from the key being missing. ``get(key, default)`` returns None in the
    first case and ``default`` in the second.

    Attributes (can't be changed after the first insert):
        value_policy (ValuePolicy): STRING_VALUES or NESTED_DICT_VALUES.
        hash_function (Callable[[str], int] | None): Hash used for the
            index; None means the built-in SuperFastHash.
    """

    def __init__(self,
                 size_hint: int = 0,
                 value_policy: ValuePolicy | str = STRING_VALUES,
                 hash_function: Optional[HashFunction] = None,
                 *args, **kwargs):
        """Create an empty dictionary.

        Args:
            size_hint (int): Expected number of entries. Pass 0 if unknown;
                capacity never drops below MIN_CAPACITY.
            value_policy (ValuePolicy | str): Policy instance or its name,
                "string" (default) or "dict".
            hash_function (Callable[[str], int] | None): Replacement hash
                function. Its result is truncated to 32 bits.
            *args: Ignored, reserved for subclasses.
            **kwargs: Ignored, reserved for subclasses.

        Raises:
            InvalidArgumentError: If size_hint is negative or not an int.
            AllocationFailureError: If the initial arrays cannot be allocated.
        """
        if isinstance(size_hint, bool) or not isinstance(size_hint, int):
            raise InvalidArgumentError("size_hint", "size_hint must be an int")
        if size_hint < 0:
            raise InvalidArgumentError("size_hint", "size_hint must be non-negative")
        if hash_function is not None and not callable(hash_function):
            raise TypeError("hash_function must be callable or None")

        self._size_hint = size_hint
        self._value_policy = get_value_policy(value_policy)
        self._hash_function = hash_function
        self._owner: Optional[IniDict] = None
        self._count = 0
        self._used = False
        self._destroyed = False
        self._version = 0

        capacity = max(size_hint, MIN_CAPACITY)
        try:
            self._entries = EntryStore(capacity)
            self._index = HashIndex(index_size_for(capacity))
        except MemoryError as exc:
            logger.warning("Cannot allocate a dictionary of %d entries", capacity)
            raise AllocationFailureError(capacity) from exc

        ParameterizableClass.__init__(self)


    def get_params(self) -> dict[str, Any]:
        """Return configuration parameters of this dictionary.

        Returns:
            dict: A sorted dictionary of parameters used to reconstruct an
                empty dictionary with the same configuration.
        """
        params = dict(
            size_hint=self._size_hint,
            value_policy=self._value_policy.name,
            hash_function=self._hash_function,
        )
        return sort_dict_by_keys(params)


    def __repr__(self) -> str:
        params = self.get_params()
        params_str = ', '.join(f'{k}={v!r}' for k, v in params.items())
        return f'{self.__class__.__name__}({params_str})'


    @property
    def value_policy(self) -> ValuePolicy:
        return self._value_policy

    @property
    def hash_function(self) -> Optional[HashFunction]:
        return self._hash_function

    @property
    def capacity(self) -> int:
        """Number of positions in the entry store."""
        return len(self._entries)

    @property
    def count(self) -> int:
        """Number of live entries; same as len()."""
        return self._count

    @property
    def index_size(self) -> int:
        """Number of slots in the hash index."""
        return len(self._index)

    @property
    def tombstone_count(self) -> int:
        """Number of deleted slots waiting for the next index rebuild."""
        return self._index.tombstone_count

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def owner(self) -> Optional[IniDict]:
        """The dictionary whose entry owns this one, if any."""
        return self._owner


    def set_policy(self, value_policy: ValuePolicy | str) -> None:
        """Bind the value policy.

        Must be called before the dictionary stores its first entry.
        Re-binding the current policy is always allowed.

        Args:
            value_policy (ValuePolicy | str): Policy instance or its name.

        Raises:
            PolicyViolationError: If the dictionary has already been used
                with a different policy.
        """
        policy = get_value_policy(value_policy)
        if policy is self._value_policy:
            return
        if self._used or self._destroyed:
            raise PolicyViolationError(
                self._value_policy.name,
                "the value policy must be set before the first insert")
        self._value_policy = policy


    def _hash(self, key: str) -> int:
        if self._hash_function is None:
            return dictionary_hash(key)
        return self._hash_function(key) & UINT32_MASK


    def _locate(self, key: str) -> Optional[int]:
        """Return the entry position holding key, or None."""
        position = self._index.locate(key, self._hash(key), self._entries)
        if position is None:
            return None
        return self._index.slot(position).entry_index


    def _build_index(self, entries: EntryStore) -> HashIndex:
        """Build a fresh index over every live entry, recomputing hashes.

        Raises:
            AllocationFailureError: If the index cannot be allocated.
        """
        try:
            index = HashIndex(index_size_for(len(entries)))
        except MemoryError as exc:
            logger.warning("Cannot allocate a hash index for %d entries",
                           len(entries))
            raise AllocationFailureError(len(entries)) from exc
        for position in entries.live_indices():
            index.insert(self._hash(entries[position].key), position)
        return index


    def _grow(self) -> None:
        """Double the capacity and rebuild the index.

        Nothing is committed until the new store and index both exist,
        so a failure leaves the dictionary as it was.
        """
        old_capacity = len(self._entries)
        new_capacity = old_capacity * 2
        try:
            entries = self._entries.grown(new_capacity)
        except MemoryError as exc:
            logger.warning("Cannot grow dictionary from %d to %d entries",
                           old_capacity, new_capacity)
            raise AllocationFailureError(new_capacity) from exc
        index = self._build_index(entries)
        self._entries = entries
        self._index = index
        self._version += 1
        logger.debug("Grew dictionary from %d to %d entries (%d index slots)",
                     old_capacity, new_capacity, len(index))


    def _make_room(self) -> None:
        """Ensure one more key can be inserted."""
        if self._count == len(self._entries):
            self._grow()
        elif self._index.needs_rebuild:
            # Churn without growth has filled the index with tombstones.
            self._index = self._build_index(self._entries)
            self._version += 1
            logger.debug("Rebuilt hash index of %d slots to drop tombstones",
                         len(self._index))


    def get(self, key: Optional[str], default: Any = None) -> Any:
        """Return the value for key, or default if the key is missing.

        A present key whose value is None returns None, not default.

        Args:
            key (str | None): Key to look up. None returns default.
            default (Any): Returned when the key is missing.

        Returns:
            Any: The stored value or default. Under the nested policy the
            returned child is still owned by this dictionary and is only
            valid while its entry is left unmodified.
        """
        if not isinstance(key, str) or self._destroyed:
            return default
        position = self._locate(key)
        if position is None:
            return default
        return self._entries[position].value


    def get_path(self, *keys: str, default: Any = None) -> Any:
        """Follow a chain of keys through nested dictionaries.

        Args:
            *keys (str): Keys to look up, outermost first.
            default (Any): Returned when any key along the path is missing
                or an intermediate value is not a dictionary.

        Returns:
            Any: The value found at the end of the path, or default.
        """
        node: Any = self
        for key in keys:
            if not isinstance(node, IniDict):
                return default
            node = node.get(key, KEY_NOT_FOUND)
            if node is KEY_NOT_FOUND:
                return default
        return node


    def __getitem__(self, key: str) -> Any:
        """Return the value for key.

        Raises:
            KeyError: If the key is missing.
        """
        value = self.get(key, KEY_NOT_FOUND)
        if value is KEY_NOT_FOUND:
            raise KeyError(key)
        return value


    def __contains__(self, key: object) -> bool:
        return self.get(key, KEY_NOT_FOUND) is not KEY_NOT_FOUND


    def set(self, key: str, value: Any = None) -> None:
        """Insert a key or replace its value.

        Args:
            key (str): Key to set.
            value (Any): Value to store, or None for a present key with an
                absent value. Must satisfy the value policy; under the
                nested policy ownership of the child passes to this
                dictionary.

        Raises:
            InvalidArgumentError: If key is None or the dictionary has been
                destroyed.
            TypeError: If key is not a str or value violates the policy.
            PolicyViolationError: If a child dictionary cannot be adopted.
            AllocationFailureError: If growth fails; the dictionary is left
                unchanged.
        """
        if key is None:
            raise InvalidArgumentError("key", "key must not be None")
        if not isinstance(key, str):
            raise TypeError(f"Key must be a str, but it is {type(key)} instead.")
        if self._destroyed:
            raise InvalidArgumentError("self", "dictionary has been destroyed")

        position = self._locate(key)
        if position is not None:
            entry = self._entries[position]
            if value is entry.value:
                return
            new_value = self._value_policy.adopt(self, value)
            old_value = entry.value
            entry.value = new_value
            self._value_policy.release(old_value)
            return

        self._make_room()
        new_value = self._value_policy.adopt(self, value)
        position = self._entries.find_free_slot(self._count)
        self._entries.put(position, key, new_value)
        self._index.insert(self._hash(key), position)
        self._count += 1
        self._used = True
        self._version += 1


    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)


    def _remove(self, key: Any, release: bool) -> tuple[bool, Any]:
        if not isinstance(key, str) or self._destroyed:
            return False, None
        slot_position = self._index.locate(key, self._hash(key), self._entries)
        if slot_position is None:
            return False, None
        slot = self._index.mark_deleted(slot_position)
        entry = self._entries.release(slot.entry_index)
        self._count -= 1
        self._version += 1
        if release:
            self._value_policy.release(entry.value)
        elif isinstance(entry.value, IniDict):
            entry.value._owner = None
        return True, entry.value


    def unset(self, key: Optional[str]) -> None:
        """Remove key if present; do nothing otherwise.

        The value is released per policy: under the nested policy the
        child dictionary is destroyed.
        """
        self._remove(key, release=True)


    def discard(self, key: Optional[str]) -> bool:
        """Remove key if present.

        This method is absent in the original dict API.

        Returns:
            bool: True if the key existed and was removed; False otherwise.
        """
        removed, _ = self._remove(key, release=True)
        return removed


    def __delitem__(self, key: str) -> None:
        """Remove key.

        Raises:
            KeyError: If the key is missing.
        """
        removed, _ = self._remove(key, release=True)
        if not removed:
            raise KeyError(key)


    def pop(self, key: str, default: Any = _NO_DEFAULT) -> Any:
        """Remove key and return its value without releasing it.

        Under the nested policy the child dictionary is detached rather
        than destroyed: ownership passes to the caller.

        Raises:
            KeyError: If the key is missing and no default was given.
        """
        removed, value = self._remove(key, release=False)
        if removed:
            return value
        if default is _NO_DEFAULT:
            raise KeyError(key)
        return default


    def popitem(self) -> tuple[str, Any]:
        """Remove and return the first (key, value) pair in entry order.

        Raises:
            KeyError: If the dictionary is empty.
        """
        for position in self._entries.live_indices():
            key = self._entries[position].key
            return key, self.pop(key)
        raise KeyError("popitem(): dictionary is empty")


    def clear(self) -> None:
        """Remove every entry, releasing values; capacity is kept."""
        if self._destroyed:
            return
        for position in list(self._entries.live_indices()):
            entry = self._entries.release(position)
            self._value_policy.release(entry.value)
        self._count = 0
        self._index = HashIndex(index_size_for(len(self._entries)))
        self._version += 1


    def _forget_child(self, child: IniDict) -> None:
        """Clear the entry value that refers to child."""
        for position in self._entries.live_indices():
            entry = self._entries[position]
            if entry.value is child:
                entry.value = None
                return


    def destroy(self) -> None:
        """Release everything the dictionary owns.

        Under the nested policy every child dictionary is destroyed,
        recursively. A dictionary that is itself owned by a parent entry is
        detached from it first; that entry keeps its key with an absent
        value. Afterwards get() returns defaults, unset() does nothing and
        set() raises InvalidArgumentError. Destroying twice is a no-op.
        """
        if self._destroyed:
            return
        if self._owner is not None:
            self._owner._forget_child(self)
            self._owner = None
        released = 0
        for position in list(self._entries.live_indices()):
            entry = self._entries.release(position)
            self._value_policy.release(entry.value)
            released += 1
        if released and self._value_policy is not STRING_VALUES:
            logger.debug("Destroyed dictionary with %d %s values",
                         released, self._value_policy.name)
        self._entries = EntryStore(0)
        self._index = HashIndex(1)
        self._count = 0
        self._destroyed = True
        self._version += 1


    def __len__(self) -> int:
        return self._count


    def _generic_iter(self, result_type: set[str]) -> Iterator[Any]:
        """Underlying implementation for keys/values/items iterators.

        Walks the entry store in position order, skipping free positions.

        Args:
            result_type (set[str]): {"keys"}, {"values"} or
                {"keys", "values"}.

        Returns:
            Iterator: A generator over keys, values or (key, value) pairs.

        Raises:
            TypeError: If result_type is not a set.
            ValueError: If result_type is empty or has unsupported labels.
            RuntimeError: (from the generator) if the dictionary is
                structurally modified while iterating.
        """
        if not isinstance(result_type, set):
            raise TypeError("result_type must be a set of strings")
        allowed = {"keys", "values"}
        if not result_type or not result_type <= allowed:
            raise ValueError("result_type can only contain 'keys', 'values'")

        def check(version: int) -> None:
            if self._version != version:
                raise RuntimeError("IniDict changed size during iteration")

        def walk(entries: EntryStore, version: int):
            for position in entries.live_indices():
                check(version)
                entry = entries[position]
                if result_type == {"keys"}:
                    yield entry.key
                elif result_type == {"values"}:
                    yield entry.value
                else:
                    yield entry.key, entry.value
            check(version)

        return walk(self._entries, self._version)


    def __iter__(self) -> Iterator[str]:
        return self._generic_iter({"keys"})

    def keys(self) -> KeysView:
        return _EntryKeysView(self)

    def values(self) -> ValuesView:
        return _EntryValuesView(self)

    def items(self) -> ItemsView:
        return _EntryItemsView(self)


    def dump(self, sink: Optional[TextIO] = None) -> int:
        """Write one ``key = value`` line per entry, in entry store order.

        Absent values are written as UNDEF. An empty dictionary writes the
        single line ``empty dictionary``. Section grouping and headers are
        left to the caller.

        Args:
            sink (TextIO | None): Object with a ``write`` method; defaults
                to sys.stdout.

        Returns:
            int: Number of entry lines written.

        Raises:
            PolicyViolationError: If values are not strings. The line
                ``invalid dictionary`` is written first.
        """
        if sink is None:
            sink = sys.stdout
        if self._count < 1:
            sink.write(EMPTY_DUMP_LINE + "\n")
            return 0
        try:
            self._value_policy.check_dump()
        except PolicyViolationError:
            logger.warning("Refusing to dump a dictionary of %s values",
                           self._value_policy.name)
            sink.write(INVALID_DUMP_LINE + "\n")
            raise
        written = 0
        for key, value in self._generic_iter({"keys", "values"}):
            sink.write(f"{key} = {UNDEF_TEXT if value is None else value}\n")
            written += 1
        return written
