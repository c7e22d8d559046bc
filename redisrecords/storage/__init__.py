"""
Storage backends for RedisRecords.
"""

from redisrecords.storage.base import StorageBackend, StorageBatch
from redisrecords.storage.memory_storage import MemoryStorage
from redisrecords.storage.redis_storage import RedisStorage

__all__ = ["StorageBackend", "StorageBatch", "MemoryStorage", "RedisStorage"]
