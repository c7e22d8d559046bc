"""
Record materialization for RedisRecords.

Fetches the hashes of candidate identities, converts the fields whose stored
text stands for a number or a date, and re-applies the query's full
predicate. The resolver may hand over a superset of the matching records
(unindexed conditions, OR branches, relationship scans), so the filter here
is what makes reads exact.
"""

import logging
from typing import Any, Iterable

from redisrecords.adapters import keys
from redisrecords.core.conditions import LinkLoader
from redisrecords.core.model import Model
from redisrecords.core.query import Query

logger = logging.getLogger(__name__)


class RecordMaterializer:
    """Turns identities into typed, filtered, projected records"""

    def __init__(self, storage, links: LinkLoader | None = None):
        """
        Initialize the materializer.

        Args:
            storage: StorageBackend to read from
            links: Loader used to evaluate many-to-many conditions in memory
        """
        self.storage = storage
        self.links = links

    def fetch(self, model: Model, identity: str) -> dict[str, Any] | None:
        """Typed record for one identity, None when its hash is gone"""
        stored = self.storage.hgetall(keys.record_key_for(model, identity))
        if not stored:
            logger.warning(f"{model.name} {identity} is listed in {keys.key_set_for(model)} but has no hash")
            return None

        record: dict[str, Any] = keys.split_identity(model, identity)
        record.update(stored)
        for prop in model.properties:
            if prop.is_textual and record.get(prop.name) is not None:
                record[prop.name] = prop.typecast(record[prop.name])
        return record

    def fetch_many(self, model: Model, identities: Iterable[str]) -> list[dict[str, Any]]:
        """Typed records for the identities that still have a hash"""
        records = []
        for identity in identities:
            record = self.fetch(model, identity)
            if record is not None:
                records.append(record)
        return records

    def select(self, records: list[dict[str, Any]], query: Query, presorted: bool = False) -> list[dict[str, Any]]:
        """Filter, order, paginate and project fetched records"""
        matched = query.filter_records(records, links=self.links, presorted=presorted)
        logger.debug(f"Materialized {len(matched)} of {len(records)} {query.model.name} candidate(s)")
        return [query.project(record) for record in matched]

    def materialize(self, identities: Iterable[str], query: Query, presorted: bool = False) -> list[dict[str, Any]]:
        """
        Fetch, filter, order, paginate and project records.

        Args:
            identities: Candidate identities from the resolver
            query: The query being answered
            presorted: The store already ordered and paginated the identities

        Returns:
            Field maps restricted to the query's fields
        """
        return self.select(self.fetch_many(query.model, identities), query, presorted=presorted)
