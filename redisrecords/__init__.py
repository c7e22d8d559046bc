"""
RedisRecords
============

Typed records on a Redis-style key/hash/set store, queried through secondary
indexes the adapter maintains itself.

Usage:
    from redisrecords import Model, Property, PropertyType, Query, RedisAdapter
    from redisrecords.storage import MemoryStorage

    book = Model("Book", [Property("id", PropertyType.SERIAL), Property("name", index=True)])
    adapter = RedisAdapter(MemoryStorage())
    adapter.create(book, [{"name": "Harry Potter"}])
    adapter.read(Query(book, {"name": "Harry Potter"}))
"""

from redisrecords.version import get_version, VERSION
from redisrecords.core import (
    Model,
    Property,
    PropertyType,
    Query,
    Order,
    asc,
    desc,
    eq, ne, in_, not_in, and_, or_, not_,
)
from redisrecords.adapters import RedisAdapter, create_adapter
from redisrecords.exceptions import (
    RecordStoreError,
    UnsupportedConditionError,
    StorageIOError,
    InvalidKeyError,
    UnknownPropertyError,
    ConfigurationError,
)

__version__ = get_version(VERSION)

__all__ = [
    "Model", "Property", "PropertyType", "Query", "Order", "asc", "desc",
    "eq", "ne", "in_", "not_in", "and_", "or_", "not_",
    "RedisAdapter", "create_adapter",
    "RecordStoreError", "UnsupportedConditionError", "StorageIOError",
    "InvalidKeyError", "UnknownPropertyError", "ConfigurationError",
]
