"""
Test suite for the Redis storage backend

The redis client is replaced by a mock; these tests check the commands that
reach it and the error translation around them.
"""

from unittest.mock import MagicMock, patch

import pytest
import redis

from redisrecords.exceptions import StorageIOError
from redisrecords.storage.redis_storage import RedisBatch, RedisStorage


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return RedisStorage(client=client)


@patch('redisrecords.storage.redis_storage.redis.Redis')
def test_connects_with_decoded_responses(mock_redis):
    """Test connection parameters and the initial ping"""
    storage = RedisStorage(host="redis.local", port=6380, db=2, password="secret")

    mock_redis.assert_called_once_with(
        host="redis.local", port=6380, db=2, decode_responses=True, password="secret"
    )
    storage.redis_client.ping.assert_called_once()


@patch('redisrecords.storage.redis_storage.redis.from_url')
def test_connects_from_url(mock_from_url):
    """Test that a URL takes precedence over host/port"""
    RedisStorage(url="redis://cache:6379/1")

    mock_from_url.assert_called_once_with("redis://cache:6379/1", decode_responses=True)


@patch('redisrecords.storage.redis_storage.redis.Redis')
def test_failed_ping_raises_storage_error(mock_redis):
    """Test that connection errors surface as StorageIOError"""
    mock_redis.return_value.ping.side_effect = redis.exceptions.ConnectionError("refused")

    with pytest.raises(StorageIOError):
        RedisStorage()


def test_injected_client_skips_ping(client):
    """Test that a ready-made client is used as is"""
    RedisStorage(client=client)
    client.ping.assert_not_called()


@patch('redisrecords.storage.redis_storage.REDIS_AVAILABLE', False)
def test_injected_client_still_needs_redis(client):
    """Test that redis-py is required even when a client is passed in"""
    with pytest.raises(ImportError):
        RedisStorage(client=client)


def test_hash_commands(store, client):
    """Test hash commands and their return values"""
    client.hgetall.return_value = {"name": "Dune"}
    client.hget.return_value = "Dune"

    assert store.hgetall("book:1") == {"name": "Dune"}
    assert store.hget("book:1", "name") == "Dune"
    store.hset("book:1", {"name": "Dune"})
    client.hset.assert_called_once_with("book:1", mapping={"name": "Dune"})
    store.hdel("book:1", "name", "year")
    client.hdel.assert_called_once_with("book:1", "name", "year")


def test_empty_writes_are_skipped(store, client):
    """Test that commands with nothing to write never reach Redis"""
    store.hset("book:1", {})
    store.hdel("book:1")
    store.sadd("s")
    store.srem("s")
    store.delete()

    client.hset.assert_not_called()
    client.hdel.assert_not_called()
    client.sadd.assert_not_called()
    client.srem.assert_not_called()
    client.delete.assert_not_called()


def test_set_commands(store, client):
    """Test that set replies come back as python sets"""
    client.smembers.return_value = {"1", "2"}
    client.sinter.return_value = {"1"}
    client.sunion.return_value = {"1", "2", "3"}
    client.sdiff.return_value = set()
    client.sismember.return_value = 1

    assert store.smembers("a") == {"1", "2"}
    assert store.sinter("a", "b") == {"1"}
    assert store.sunion("a", "b") == {"1", "2", "3"}
    assert store.sdiff("a", "b") == set()
    assert store.sismember("a", "1") is True
    client.sinter.assert_called_once_with("a", "b")


def test_set_algebra_without_keys(store, client):
    """Test that set algebra with no keys returns an empty set locally"""
    assert store.sinter() == set()
    client.sinter.assert_not_called()


def test_incr_returns_int(store, client):
    """Test counter increments"""
    client.incr.return_value = 3
    assert store.incr("book:id:serial") == 3


def test_sort_passes_arguments(store, client):
    """Test that SORT options map onto redis-py keywords"""
    client.sort.return_value = ["2", "1"]

    result = store.sort("book:id:all", by="book:*->name", start=0, num=10, desc=True, alpha=True)

    assert result == ["2", "1"]
    client.sort.assert_called_once_with(
        "book:id:all", start=0, num=10, by="book:*->name", desc=True, alpha=True
    )


def test_command_error_translated(store, client):
    """Test that redis errors become StorageIOError"""
    client.smembers.side_effect = redis.exceptions.ConnectionError("gone")

    with pytest.raises(StorageIOError) as excinfo:
        store.smembers("a")
    assert isinstance(excinfo.value.__cause__, redis.exceptions.ConnectionError)


def test_pipeline_is_transactional(store, client):
    """Test that batches run as MULTI/EXEC"""
    with store.batch() as batch:
        assert isinstance(batch, RedisBatch)
        batch.sadd("s", "1")
        batch.hset("h", {"f": "v"})

    client.pipeline.assert_called_once_with(transaction=True)
    pipe = client.pipeline.return_value
    pipe.sadd.assert_called_once_with("s", "1")
    pipe.hset.assert_called_once_with("h", mapping={"f": "v"})
    pipe.execute.assert_called_once()
    pipe.reset.assert_called_once()


def test_failed_exec_raises_storage_error(store, client):
    """Test that a failed EXEC surfaces as StorageIOError"""
    client.pipeline.return_value.execute.side_effect = redis.exceptions.ResponseError("EXECABORT")

    with pytest.raises(StorageIOError):
        with store.batch() as batch:
            batch.sadd("s", "1")


def test_non_atomic_batch_uses_client(store, client):
    """Test that atomic=False sends commands directly"""
    with store.batch(atomic=False) as batch:
        batch.sadd("s", "1")

    client.sadd.assert_called_once_with("s", "1")
    client.pipeline.assert_not_called()


def test_flush_and_close(store, client):
    """Test housekeeping commands"""
    store.flush()
    store.close()

    client.flushdb.assert_called_once()
    client.close.assert_called_once()


def test_storage_info(store, client):
    """Test the server summary taken from INFO"""
    client.info.return_value = {"redis_version": "7.2.4", "connected_clients": 3, "uptime_in_days": 9}

    info = store.get_storage_info()

    assert info["redis_version"] == "7.2.4"
    assert info["connected_clients"] == 3
    assert "uptime_in_days" not in info
