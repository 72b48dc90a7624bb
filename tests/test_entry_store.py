import pytest

from inidict import Entry, EntryStore


def test_new_store_is_free():
    store = EntryStore(4)
    assert len(store) == 4
    assert list(store.live_indices()) == []
    assert store[3] is None


def test_put_and_release():
    store = EntryStore(4)
    entry = store.put(2, "k", "v")
    assert store[2] is entry
    assert entry == Entry("k", "v")
    assert list(store.live_indices()) == [2]

    assert store.release(2) == Entry("k", "v")
    assert store[2] is None
    with pytest.raises(KeyError):
        store.release(2)


def test_find_free_slot_starts_at_given_position_and_wraps():
    store = EntryStore(4)
    store.put(2, "a", None)
    store.put(3, "b", None)
    assert store.find_free_slot(2) == 0
    assert store.find_free_slot(1) == 1


def test_find_free_slot_on_full_store():
    store = EntryStore(2)
    store.put(0, "a", None)
    store.put(1, "b", None)
    with pytest.raises(RuntimeError):
        store.find_free_slot(0)


def test_grown_keeps_positions_and_leaves_original_untouched():
    store = EntryStore(2)
    store.put(0, "a", "1")
    store.put(1, "b", "2")

    bigger = store.grown(4)

    assert len(bigger) == 4
    assert len(store) == 2
    assert bigger[0].key == "a" and bigger[1].key == "b"
    assert bigger[2] is None and bigger[3] is None
    assert bigger.find_free_slot(2) == 2


def test_cannot_shrink():
    with pytest.raises(ValueError):
        EntryStore(4).grown(2)
