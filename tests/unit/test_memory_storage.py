"""
Test suite for the in-memory storage backend
"""

import pytest

from redisrecords.storage.memory_storage import MemoryStorage


@pytest.fixture
def store():
    return MemoryStorage()


def test_hash_commands(store):
    """Test hset, hget, hgetall and hdel"""
    store.hset("book:1", {"name": "Dune", "year": 1965})

    assert store.hgetall("book:1") == {"name": "Dune", "year": "1965"}
    assert store.hget("book:1", "name") == "Dune"
    assert store.hget("book:1", "missing") is None
    assert store.hgetall("book:2") == {}

    store.hdel("book:1", "year")
    assert store.hgetall("book:1") == {"name": "Dune"}


def test_empty_hash_disappears(store):
    """Test that deleting the last field removes the hash"""
    store.hset("book:1", {"name": "Dune"})
    store.hdel("book:1", "name")

    assert not store.exists("book:1")
    assert store.size() == 0


def test_set_commands(store):
    """Test sadd, srem, smembers and sismember"""
    store.sadd("s", "1", "2", "2")

    assert store.smembers("s") == {"1", "2"}
    assert store.sismember("s", "1")
    assert not store.sismember("s", "3")

    store.srem("s", "1", "2")
    assert not store.exists("s")
    assert store.smembers("s") == set()


def test_set_algebra(store):
    """Test sinter, sunion and sdiff, including missing keys"""
    store.sadd("a", "1", "2", "3")
    store.sadd("b", "2", "3", "4")

    assert store.sinter("a", "b") == {"2", "3"}
    assert store.sinter("a", "missing") == set()
    assert store.sunion("a", "b") == {"1", "2", "3", "4"}
    assert store.sdiff("a", "b") == {"1"}
    assert store.sdiff("a", "missing") == {"1", "2", "3"}


def test_incr(store):
    """Test that counters start at zero and increment by one"""
    assert store.incr("book:id:serial") == 1
    assert store.incr("book:id:serial") == 2
    assert store.exists("book:id:serial")


def test_delete_any_type(store):
    """Test that delete removes hashes, sets and counters"""
    store.hset("h", {"f": "v"})
    store.sadd("s", "m")
    store.incr("c")

    store.delete("h", "s", "c", "missing")
    assert store.size() == 0


def test_sort_numeric_members(store):
    """Test numeric sort of the members themselves"""
    store.sadd("ids", "10", "9", "100")

    assert store.sort("ids") == ["9", "10", "100"]
    assert store.sort("ids", desc=True) == ["100", "10", "9"]
    assert store.sort("ids", start=1, num=1) == ["10"]


def test_sort_numeric_rejects_text(store):
    """Test that numeric sort fails on text weights like Redis does"""
    store.sadd("names", "b", "a")
    with pytest.raises(ValueError):
        store.sort("names")
    assert store.sort("names", alpha=True) == ["a", "b"]


def test_sort_by_hash_field(store):
    """Test BY {prefix}*->{field} patterns"""
    store.sadd("book:id:all", "1", "2", "3")
    store.hset("book:1", {"name": "Ubik"})
    store.hset("book:2", {"name": "Dune"})
    store.hset("book:3", {"name": "Emma"})

    assert store.sort("book:id:all", by="book:*->name", alpha=True) == ["2", "3", "1"]
    assert store.sort("book:id:all", by="book:*->name", alpha=True, desc=True, start=0, num=2) == ["1", "3"]


def test_sort_nosort_keeps_order(store):
    """Test that BY nosort only applies LIMIT"""
    store.sadd("ids", "3", "1", "2")

    assert store.sort("ids", by="nosort") == ["3", "1", "2"]
    assert store.sort("ids", by="nosort", start=1, num=-1) == ["1", "2"]


def test_sort_missing_key(store):
    """Test that sorting a missing set gives an empty list"""
    assert store.sort("missing") == []


def test_batch_applies_on_exit(store):
    """Test that an atomic batch writes nothing until the block ends"""
    with store.batch() as batch:
        batch.sadd("s", "1")
        batch.hset("h", {"f": "v"})
        assert not store.exists("s")

    assert store.smembers("s") == {"1"}
    assert store.hgetall("h") == {"f": "v"}


def test_batch_discarded_on_error(store):
    """Test that a failing block leaves the store untouched"""
    with pytest.raises(RuntimeError):
        with store.batch() as batch:
            batch.sadd("s", "1")
            raise RuntimeError("boom")

    assert not store.exists("s")


def test_non_atomic_batch_writes_through(store):
    """Test that atomic=False issues commands immediately"""
    with store.batch(atomic=False) as batch:
        batch.sadd("s", "1")
        assert store.sismember("s", "1")


def test_flush(store):
    """Test that flush clears everything"""
    store.sadd("s", "1")
    store.hset("h", {"f": "v"})
    store.flush()

    assert store.size() == 0
