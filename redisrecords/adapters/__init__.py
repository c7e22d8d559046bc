"""
Index maintenance, key resolution and record materialization over a key-value store.
"""

from redisrecords.adapters.indexer import IndexMaintainer, IndexedField
from redisrecords.adapters.resolver import KeyResolver, INDETERMINATE
from redisrecords.adapters.materializer import RecordMaterializer
from redisrecords.adapters.redis_adapter import RedisAdapter, create_adapter, create_storage

__all__ = [
    "IndexMaintainer",
    "IndexedField",
    "KeyResolver",
    "INDETERMINATE",
    "RecordMaterializer",
    "RedisAdapter",
    "create_adapter",
    "create_storage",
]
