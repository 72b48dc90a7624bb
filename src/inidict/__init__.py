"""String-keyed hash dictionaries for configuration data.

This package provides the associative container that backs an INI-style
configuration library: an open-addressed hash table with lazy deletion,
doubling growth, and a per-dictionary value ownership policy that allows
either string values or nested, parent-owned dictionaries.

Classes:
    IniDict: The dictionary. A MutableMapping from str keys to values
        governed by its value policy.
    EntryStore, Entry: The authoritative array of (key, value) records.
    HashIndex, OccupiedSlot: The open-addressed lookup table over the
        entry store.
    ValuePolicy, StringValuePolicy, NestedDictPolicy: Value ownership
        policies.

Functions:
    dictionary_hash(): Hash a key (SuperFastHash over UTF-8).
    superfasthash(): Hash a byte string.
    get_value_policy(): Resolve a policy instance or name.

Constants:
    STRING_VALUES, NESTED_DICT_VALUES: The two value policies.
    EMPTY_SLOT, TOMBSTONE: Non-occupied hash index slot states.
    MAX_INDEX_LOAD: Hash index load that triggers a same-size rebuild.
    KEY_NOT_FOUND: Sentinel default for IniDict.get().
"""
from ._version_info import __version__
from .exceptions import (InvalidArgumentError, AllocationFailureError,
                         PolicyViolationError)
from .hashing import superfasthash, dictionary_hash
from .hash_index import (HashIndex, OccupiedSlot, EMPTY_SLOT, TOMBSTONE,
                         MAX_INDEX_LOAD, index_size_for)
from .entry_store import EntryStore, Entry
from .value_policy import (ValuePolicy, StringValuePolicy, NestedDictPolicy,
                           STRING_VALUES, NESTED_DICT_VALUES, get_value_policy)
from .dictionary import IniDict, KEY_NOT_FOUND, MIN_CAPACITY
