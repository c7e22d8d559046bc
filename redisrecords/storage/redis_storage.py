"""
Redis storage backend for RedisRecords

This module maps the storage primitives one-to-one onto redis-py commands.
Responses are decoded to str. Every RedisError is logged and re-raised as
StorageIOError; nothing is retried.
"""

import logging
from typing import Any

try:
    import redis
    REDIS_AVAILABLE = True
except ImportError:
    REDIS_AVAILABLE = False

from redisrecords.exceptions import StorageIOError
from redisrecords.storage.base import StorageBackend, StorageBatch

logger = logging.getLogger(__name__)


def _raise_io_error(command: str, error: Exception):
    logger.error(f"Redis {command} failed: {error}")
    raise StorageIOError(f"Redis {command} failed: {error}") from error


class RedisBatch(StorageBatch):
    """MULTI/EXEC transaction built on a redis-py pipeline"""

    def __init__(self, pipeline):
        self.pipe = pipeline

    def hset(self, key: str, mapping: dict[str, str]) -> None:
        if mapping:
            self.pipe.hset(key, mapping=mapping)

    def hdel(self, key: str, *fields: str) -> None:
        if fields:
            self.pipe.hdel(key, *fields)

    def delete(self, *keys: str) -> None:
        if keys:
            self.pipe.delete(*keys)

    def sadd(self, key: str, *members: str) -> None:
        if members:
            self.pipe.sadd(key, *members)

    def srem(self, key: str, *members: str) -> None:
        if members:
            self.pipe.srem(key, *members)

    def execute(self) -> None:
        try:
            self.pipe.execute()
        except redis.RedisError as e:
            _raise_io_error("EXEC", e)
        finally:
            self.pipe.reset()


class RedisStorage(StorageBackend):
    """Redis-based storage backend"""

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0, password: str | None = None,
                 url: str | None = None, client: Any = None, **kwargs):
        """
        Initialize Redis storage backend

        Args:
            host: Redis server host
            port: Redis server port
            db: Redis database number
            password: Redis password (if required)
            url: Connection URL, takes precedence over host/port/db
            client: Ready-made redis client (connection parameters are then ignored)
            **kwargs: Additional Redis connection parameters
        """
        # Error handling below relies on redis.RedisError, even for an injected client
        if not REDIS_AVAILABLE:
            raise ImportError("redis is required for Redis storage. Install with: pip install redis")

        if client is not None:
            self.redis_client = client
            self.host, self.port, self.db = host, port, db
            return

        self.host = host
        self.port = port
        self.db = db

        try:
            if url:
                self.redis_client = redis.from_url(url, decode_responses=True, **kwargs)
            else:
                connection_params = {
                    'host': host,
                    'port': port,
                    'db': db,
                    'decode_responses': True,
                    **kwargs
                }
                if password:
                    connection_params['password'] = password
                self.redis_client = redis.Redis(**connection_params)
            # Test connection
            self.redis_client.ping()
            logger.info(f"Connected to Redis at {url or f'{host}:{port}/{db}'}")
        except redis.RedisError as e:
            _raise_io_error("PING", e)

    def _call(self, command: str, *args, **kwargs):
        try:
            return getattr(self.redis_client, command)(*args, **kwargs)
        except redis.RedisError as e:
            _raise_io_error(command.upper(), e)

    # Hashes

    def hgetall(self, key: str) -> dict[str, str]:
        return self._call("hgetall", key) or {}

    def hget(self, key: str, field: str) -> str | None:
        return self._call("hget", key, field)

    def hset(self, key: str, mapping: dict[str, str]) -> None:
        if mapping:
            self._call("hset", key, mapping=mapping)

    def hdel(self, key: str, *fields: str) -> None:
        if fields:
            self._call("hdel", key, *fields)

    def delete(self, *keys: str) -> None:
        if keys:
            self._call("delete", *keys)

    # Sets

    def sadd(self, key: str, *members: str) -> None:
        if members:
            self._call("sadd", key, *members)

    def srem(self, key: str, *members: str) -> None:
        if members:
            self._call("srem", key, *members)

    def smembers(self, key: str) -> set[str]:
        return set(self._call("smembers", key) or ())

    def sismember(self, key: str, member: str) -> bool:
        return bool(self._call("sismember", key, member))

    def sinter(self, *keys: str) -> set[str]:
        return set(self._call("sinter", *keys) or ()) if keys else set()

    def sdiff(self, *keys: str) -> set[str]:
        return set(self._call("sdiff", *keys) or ()) if keys else set()

    def sunion(self, *keys: str) -> set[str]:
        return set(self._call("sunion", *keys) or ()) if keys else set()

    def exists(self, key: str) -> bool:
        return bool(self._call("exists", key))

    # Counters

    def incr(self, key: str) -> int:
        return int(self._call("incr", key))

    # Sorting

    def sort(self, key: str, by: str | None = None, start: int | None = None,
             num: int | None = None, desc: bool = False, alpha: bool = False) -> list[str]:
        return list(self._call("sort", key, start=start, num=num, by=by, desc=desc, alpha=alpha))

    # Batching

    def pipeline(self) -> RedisBatch:
        return RedisBatch(self.redis_client.pipeline(transaction=True))

    # Housekeeping

    def flush(self) -> None:
        """Flush all data (use with caution!)"""
        self._call("flushdb")
        logger.warning("Flushed all data from Redis database")

    def get_storage_info(self) -> dict:
        """Get server information relevant to the adapter"""
        info = self._call("info")
        return {
            "redis_version": info.get("redis_version"),
            "used_memory_human": info.get("used_memory_human"),
            "connected_clients": info.get("connected_clients"),
            "keyspace_hits": info.get("keyspace_hits"),
            "keyspace_misses": info.get("keyspace_misses"),
        }

    def close(self):
        """Close Redis connection"""
        try:
            self.redis_client.close()
            logger.info("Redis connection closed")
        except redis.RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")
