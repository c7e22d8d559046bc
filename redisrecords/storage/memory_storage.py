"""
Memory Storage Module for RedisRecords

This module provides an in-memory implementation of the storage primitives.
It follows Redis semantics closely enough for the adapter to behave exactly
as it does against a server: empty sets and hashes disappear, counters are
strings, and SORT supports BY patterns, LIMIT and ALPHA.
"""

import logging
from typing import Any

from redisrecords.storage.base import StorageBackend, StorageBatch

logger = logging.getLogger(__name__)


class MemoryBatch(StorageBatch):
    """Commands buffered until execute(), then applied in order"""

    def __init__(self, storage: "MemoryStorage"):
        self.storage = storage
        self.commands: list[tuple[str, tuple[Any, ...]]] = []

    def hset(self, key: str, mapping: dict[str, str]) -> None:
        self.commands.append(("hset", (key, mapping)))

    def hdel(self, key: str, *fields: str) -> None:
        self.commands.append(("hdel", (key, *fields)))

    def delete(self, *keys: str) -> None:
        self.commands.append(("delete", keys))

    def sadd(self, key: str, *members: str) -> None:
        self.commands.append(("sadd", (key, *members)))

    def srem(self, key: str, *members: str) -> None:
        self.commands.append(("srem", (key, *members)))

    def execute(self) -> None:
        commands, self.commands = self.commands, []
        for name, args in commands:
            getattr(self.storage, name)(*args)


class MemoryStorage(StorageBackend):
    """Simple in-memory storage backend for RedisRecords"""

    def __init__(self):
        # Sets are dicts so that unsorted enumeration keeps insertion order
        self.hashes: dict[str, dict[str, str]] = {}
        self.sets: dict[str, dict[str, None]] = {}
        self.counters: dict[str, str] = {}

    # Hashes

    def hgetall(self, key: str) -> dict[str, str]:
        return dict(self.hashes.get(key, {}))

    def hget(self, key: str, field: str) -> str | None:
        return self.hashes.get(key, {}).get(field)

    def hset(self, key: str, mapping: dict[str, str]) -> None:
        if not mapping:
            return
        target = self.hashes.setdefault(key, {})
        for field_name, value in mapping.items():
            target[field_name] = str(value)

    def hdel(self, key: str, *fields: str) -> None:
        target = self.hashes.get(key)
        if target is None:
            return
        for field_name in fields:
            target.pop(field_name, None)
        if not target:
            del self.hashes[key]

    def delete(self, *keys: str) -> None:
        for key in keys:
            self.hashes.pop(key, None)
            self.sets.pop(key, None)
            self.counters.pop(key, None)

    # Sets

    def sadd(self, key: str, *members: str) -> None:
        if not members:
            return
        target = self.sets.setdefault(key, {})
        for member in members:
            target[str(member)] = None

    def srem(self, key: str, *members: str) -> None:
        target = self.sets.get(key)
        if target is None:
            return
        for member in members:
            target.pop(str(member), None)
        if not target:
            del self.sets[key]

    def smembers(self, key: str) -> set[str]:
        return set(self.sets.get(key, {}))

    def sismember(self, key: str, member: str) -> bool:
        return str(member) in self.sets.get(key, {})

    def sinter(self, *keys: str) -> set[str]:
        if not keys:
            return set()
        result = self.smembers(keys[0])
        for key in keys[1:]:
            result &= self.smembers(key)
        return result

    def sdiff(self, *keys: str) -> set[str]:
        if not keys:
            return set()
        result = self.smembers(keys[0])
        for key in keys[1:]:
            result -= self.smembers(key)
        return result

    def sunion(self, *keys: str) -> set[str]:
        result = set()
        for key in keys:
            result |= self.smembers(key)
        return result

    def exists(self, key: str) -> bool:
        return key in self.hashes or key in self.sets or key in self.counters

    # Counters

    def incr(self, key: str) -> int:
        value = int(self.counters.get(key, "0")) + 1
        self.counters[key] = str(value)
        return value

    # Sorting

    def _weight(self, member: str, by: str | None) -> str | None:
        if by is None:
            return member
        pattern = by.replace("*", member, 1)
        if "->" in pattern:
            hash_key, field_name = pattern.split("->", 1)
            return self.hget(hash_key, field_name)
        return self.counters.get(pattern)

    def sort(self, key: str, by: str | None = None, start: int | None = None,
             num: int | None = None, desc: bool = False, alpha: bool = False) -> list[str]:
        members = list(self.sets.get(key, {}))

        if by != "nosort":
            def sort_key(member: str):
                weight = self._weight(member, by)
                if alpha:
                    return (weight or "", member)
                try:
                    return (float(weight) if weight is not None else 0.0, member)
                except ValueError:
                    raise ValueError(f"One or more scores can't be converted into double: {weight!r}")

            members.sort(key=sort_key, reverse=desc)

        if start is not None and num is not None:
            members = members[start:] if num < 0 else members[start:start + num]

        return members

    # Batching

    def pipeline(self) -> MemoryBatch:
        return MemoryBatch(self)

    # Housekeeping

    def flush(self) -> None:
        """Clear all data"""
        self.hashes.clear()
        self.sets.clear()
        self.counters.clear()
        logger.warning("Flushed all data from memory storage")

    def size(self) -> int:
        """Get number of keys in storage"""
        return len(self.hashes) + len(self.sets) + len(self.counters)
