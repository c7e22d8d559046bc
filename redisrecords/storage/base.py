"""
Storage primitives interface.

The adapter only ever talks to the backing store through the small set of
hash, set, counter and sort commands declared here. Backends mirror the Redis
command semantics: sets and hashes that become empty cease to exist, SMEMBERS
of a missing key is an empty set, and SORT understands the "nosort" and
"{prefix}*->{field}" BY patterns.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator


class StorageBatch(ABC):
    """Write commands queued for a single atomic execution unit"""

    @abstractmethod
    def hset(self, key: str, mapping: dict[str, str]) -> None:
        ...

    @abstractmethod
    def hdel(self, key: str, *fields: str) -> None:
        ...

    @abstractmethod
    def delete(self, *keys: str) -> None:
        ...

    @abstractmethod
    def sadd(self, key: str, *members: str) -> None:
        ...

    @abstractmethod
    def srem(self, key: str, *members: str) -> None:
        ...

    @abstractmethod
    def execute(self) -> None:
        """Run every queued command"""


class StorageBackend(ABC):
    """Hash, set, counter and sort commands of a key-value store"""

    # Hashes
    @abstractmethod
    def hgetall(self, key: str) -> dict[str, str]:
        """Get every field of a hash ({} when the hash does not exist)"""

    @abstractmethod
    def hget(self, key: str, field: str) -> str | None:
        """Get one hash field"""

    @abstractmethod
    def hset(self, key: str, mapping: dict[str, str]) -> None:
        """Set several hash fields"""

    @abstractmethod
    def hdel(self, key: str, *fields: str) -> None:
        """Delete hash fields"""

    @abstractmethod
    def delete(self, *keys: str) -> None:
        """Delete whole keys"""

    # Sets
    @abstractmethod
    def sadd(self, key: str, *members: str) -> None:
        ...

    @abstractmethod
    def srem(self, key: str, *members: str) -> None:
        ...

    @abstractmethod
    def smembers(self, key: str) -> set[str]:
        ...

    @abstractmethod
    def sismember(self, key: str, member: str) -> bool:
        ...

    @abstractmethod
    def sinter(self, *keys: str) -> set[str]:
        ...

    @abstractmethod
    def sdiff(self, *keys: str) -> set[str]:
        ...

    @abstractmethod
    def sunion(self, *keys: str) -> set[str]:
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    # Counters
    @abstractmethod
    def incr(self, key: str) -> int:
        """Atomically increment a counter and return the new value"""

    # Sorting
    @abstractmethod
    def sort(self, key: str, by: str | None = None, start: int | None = None,
             num: int | None = None, desc: bool = False, alpha: bool = False) -> list[str]:
        """
        Sort the members of a set, Redis SORT style.

        Args:
            key: Set to sort
            by: "nosort", a "{prefix}*->{field}" hash pattern, or None to sort members themselves
            start: Offset of the first element to return
            num: Number of elements to return (requires start)
            desc: Descending order
            alpha: Lexicographic rather than numeric comparison

        Returns:
            Sorted members
        """

    # Batching
    @abstractmethod
    def pipeline(self) -> StorageBatch:
        """Create an empty batch of write commands"""

    @contextmanager
    def batch(self, atomic: bool = True) -> Iterator["StorageBatch | StorageBackend"]:
        """
        Group write commands into one atomic execution unit.

        With atomic=False commands go straight to the store as they are issued.
        """
        if not atomic:
            yield self
            return
        pipe = self.pipeline()
        yield pipe
        pipe.execute()

    # Housekeeping
    @abstractmethod
    def flush(self) -> None:
        """Remove every key from the store"""

    def close(self) -> None:
        """Release any connection held by the backend"""
