"""
Redis adapter for RedisRecords.

RedisAdapter is the entry point used by the record layer: create, read,
update and delete, written in terms of the index maintainer, the key
resolver and the record materializer.

Batch operations are not transactional. Each record is written in its own
round trips; if a later record fails, the earlier ones stay written.
"""

import logging
from typing import Any, Iterable

from redisrecords.adapters import keys
from redisrecords.adapters.indexer import IndexMaintainer
from redisrecords.adapters.materializer import RecordMaterializer
from redisrecords.adapters.resolver import KeyResolver
from redisrecords.config.settings import Settings, configure_logging, settings
from redisrecords.core.conditions import and_, eq
from redisrecords.core.model import Model
from redisrecords.core.query import Query
from redisrecords.exceptions import InvalidKeyError
from redisrecords.storage.base import StorageBackend
from redisrecords.storage.memory_storage import MemoryStorage
from redisrecords.storage.redis_storage import RedisStorage

logger = logging.getLogger(__name__)


class RedisAdapter:
    """
    Stores records in hashes and answers queries from set indexes.

    Example:
        adapter = RedisAdapter(MemoryStorage())
        adapter.create(book, [{"name": "Harry Potter"}])
        adapter.read(Query(book, {"name": "Harry Potter"}))
    """

    def __init__(self, storage: StorageBackend | None = None, config: Settings | None = None):
        """
        Initialize the adapter.

        Args:
            storage: Storage backend (built from config when omitted)
            config: Settings (defaults to the global settings)
        """
        self.settings = config or settings
        self.storage = storage if storage is not None else create_storage(self.settings)
        self.indexer = IndexMaintainer(
            self.storage,
            atomic=self.settings.ATOMIC_WRITES,
            index_all=self.settings.INDEX_ALL_PROPERTIES,
        )
        self.resolver = KeyResolver(self.storage, self.indexer)
        self.materializer = RecordMaterializer(self.storage, links=self.resolver.linked_keys)

    def create(self, model: Model, records: Iterable[dict[str, Any]]) -> None:
        """
        Insert records: "INSERT" in SQL-speak.

        Serial keys are assigned in place. Records are written one after the
        other; a failure leaves the records before it committed.

        Args:
            model: Model of the records
            records: Field maps to insert
        """
        for record in records:
            self.indexer.create(model, record)

    def read(self, query: Query) -> list[dict[str, Any]]:
        """
        Look up records matching a query: "SELECT" in SQL-speak.

        Returns:
            Field maps with the query's fields, integer and date fields typed
        """
        model = query.model
        identities, presorted = self.resolver.keys_for(query)
        records = self.materializer.fetch_many(model, identities)

        paginated = query.limit is not None or bool(query.offset)
        if presorted and paginated and len(records) < len(identities):
            # Stale identities took slots in the store's page, so paginate in memory
            logger.warning(f"{len(identities) - len(records)} stale {model.name} identity(ies) in a sorted page, "
                           f"re-reading {keys.key_set_for(model)}")
            records = self.materializer.fetch_many(model, self.storage.smembers(keys.key_set_for(model)))
            presorted = False

        return self.materializer.select(records, query, presorted=presorted)

    def get(self, model: Model, *key: Any) -> dict[str, Any] | None:
        """Read one record by primary key"""
        if len(key) != len(model.key):
            raise InvalidKeyError(f"{model.name} key has {len(model.key)} part(s), got {len(key)}")
        records = self.read(Query(model, and_(*(eq(prop, value) for prop, value in zip(model.key, key)))))
        return records[0] if records else None

    def _identities(self, query: Query) -> list[str]:
        key_query = Query(query.model, query.conditions, order=query.order, limit=query.limit,
                          offset=query.offset, fields=query.model.key)
        return [keys.identity_for(query.model, record) for record in self.read(key_query)]

    def update(self, attributes: dict[str, Any], query: Query) -> int:
        """
        Change attributes of every record matched by a query: "UPDATE" in SQL-speak.

        Returns:
            Number of records updated
        """
        for name in attributes:
            query.model.property(name)

        updated = 0
        for identity in self._identities(query):
            if self.indexer.update(query.model, identity, attributes):
                updated += 1
        logger.debug(f"Updated {updated} {query.model.name} record(s)")
        return updated

    def delete(self, query: Query) -> int:
        """
        Destroy every record matched by a query: "DELETE" in SQL-speak.

        Returns:
            Number of records deleted
        """
        identities = self._identities(query)
        for identity in identities:
            self.indexer.delete(query.model, identity)
        logger.debug(f"Deleted {len(identities)} {query.model.name} record(s)")
        return len(identities)

    def close(self) -> None:
        self.storage.close()


def create_storage(config: Settings | None = None) -> StorageBackend:
    """Build the storage backend named by DEFAULT_STORAGE_BACKEND"""
    config = config or settings
    storage_config = config.get_storage_config()

    if storage_config["backend"] == "redis":
        redis_config = storage_config["redis"]
        return RedisStorage(
            host=redis_config["host"],
            port=redis_config["port"],
            db=redis_config["db"],
            password=redis_config["password"],
            url=redis_config["url"],
            socket_timeout=redis_config["socket_timeout"],
        )
    return MemoryStorage()


def create_adapter(config: Settings | None = None, configure_logs: bool = False) -> RedisAdapter:
    """
    Validate settings and build an adapter on the configured backend.

    Args:
        config: Settings (defaults to the global settings)
        configure_logs: Also apply LOG_LEVEL/LOG_FORMAT to the root logger

    Raises:
        ConfigurationError: If the settings are invalid
    """
    config = config or settings
    config.ensure_valid()
    if configure_logs:
        configure_logging(config)
    adapter = RedisAdapter(create_storage(config), config)
    logger.info(f"RedisRecords adapter ready on {config.DEFAULT_STORAGE_BACKEND} storage")
    return adapter
