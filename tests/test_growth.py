import logging

import pytest

import inidict.dictionary as dictionary_module
from inidict import AllocationFailureError, EntryStore, IniDict, index_size_for


def fill(d, n, prefix="k"):
    for i in range(n):
        d[f"{prefix}{i}"] = str(i)


def test_capacity_plus_one_keys_triggers_growth():
    d = IniDict()
    capacity = d.capacity
    fill(d, capacity)
    assert d.capacity == capacity

    d[f"k{capacity}"] = str(capacity)

    assert d.capacity == 2 * capacity
    assert d.index_size == index_size_for(2 * capacity)
    assert len(d) == capacity + 1
    for i in range(capacity + 1):
        assert d[f"k{i}"] == str(i)


def test_three_hundred_keys_in_one_section():
    d = IniDict(0)
    d.set("sec1", "x")
    for i in range(300):
        d.set(f"sec1:key{i}", "1")

    assert d.capacity > 128
    assert len(d) == 301
    assert d.get("sec1") == "x"
    for i in range(300):
        assert d.get(f"sec1:key{i}") == "1"


def test_growth_rebuild_drops_tombstones():
    d = IniDict()
    fill(d, 128)
    for i in range(0, 128, 2):
        d.unset(f"k{i}")
    assert d.tombstone_count == 64
    fill(d, 200, prefix="new")
    assert d.capacity == 512
    assert d.tombstone_count == 0
    assert len(d) == 64 + 200
    for i in range(1, 128, 2):
        assert d[f"k{i}"] == str(i)


def test_free_positions_are_reused_without_growth():
    d = IniDict()
    fill(d, 128)
    d.unset("k0")
    d["new"] = "x"
    assert d.capacity == 128
    assert next(iter(d)) == "new"


def test_free_slot_search_starts_at_count():
    d = IniDict()
    d["a"] = "1"
    d["b"] = "2"
    d["c"] = "3"
    d.unset("a")
    d["d"] = "4"
    assert list(d) == ["b", "c", "d"]


def test_growth_is_logged(caplog):
    caplog.set_level(logging.DEBUG, logger="inidict.dictionary")
    d = IniDict()
    fill(d, 129)
    assert "Grew dictionary from 128 to 256 entries" in caplog.text


def test_failed_index_allocation_leaves_dictionary_unchanged(monkeypatch):
    d = IniDict()
    fill(d, 128)

    def no_memory(size):
        raise MemoryError

    with monkeypatch.context() as m:
        m.setattr(dictionary_module, "HashIndex", no_memory)
        with pytest.raises(AllocationFailureError) as exc_info:
            d["one-too-many"] = "x"

    assert exc_info.value.capacity == 256
    assert isinstance(exc_info.value.__cause__, MemoryError)
    assert d.capacity == 128
    assert len(d) == 128
    assert "one-too-many" not in d
    for i in range(128):
        assert d[f"k{i}"] == str(i)

    d["one-too-many"] = "x"
    assert d.capacity == 256
    assert d["one-too-many"] == "x"


def test_failed_entry_store_growth_leaves_dictionary_unchanged(monkeypatch, caplog):
    d = IniDict()
    fill(d, 128)

    def no_memory(self, new_capacity):
        raise MemoryError

    monkeypatch.setattr(EntryStore, "grown", no_memory)
    with pytest.raises(AllocationFailureError):
        d["one-too-many"] = "x"
    assert "Cannot grow dictionary from 128 to 256 entries" in caplog.text
    assert d.capacity == 128
    assert len(d) == 128
    assert d["k127"] == "127"


def test_failed_creation_raises_allocation_failure(monkeypatch):
    def no_memory(capacity):
        raise MemoryError

    monkeypatch.setattr(dictionary_module, "EntryStore", no_memory)
    with pytest.raises(AllocationFailureError) as exc_info:
        IniDict(1000)
    assert exc_info.value.capacity == 1000
