"""
Secondary index maintenance for RedisRecords.

Each indexed field keeps one set per distinct value, holding the identities
of the live records that currently have that value. The maintainer keeps
those sets, the per-model set of all identities and the record hashes in step
on create, update and delete.

Indexed fields are the properties declared with index=True, the foreign keys
of every many-to-one relationship (a composite foreign key is indexed as one
unit), and every non-key property when INDEX_ALL_PROPERTIES is set.

When atomic writes are on, the commands of one logical mutation are sent as
one MULTI/EXEC unit. The serial increment and the reads that precede a
mutation stay outside of it.
"""

import logging
from dataclasses import dataclass
from typing import Any

from redisrecords.adapters import keys
from redisrecords.core.model import ManyToOne, Model, Property
from redisrecords.exceptions import InvalidKeyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class IndexedField:
    """A field (or group of foreign-key fields) with index sets."""

    model: Model
    name: str
    properties: tuple[Property, ...]

    def dump(self, values: list[Any]) -> str | None:
        return keys.join_values(list(self.properties), values)

    def value_for(self, record: dict[str, Any]) -> str | None:
        """Index value of a record (typed or as stored), None when any part is null"""
        return self.dump([record.get(prop.name) for prop in self.properties])

    def index_key(self, value: str) -> str:
        return keys.index_key_for(self.model, self.name, value)


def relationship_field(relationship: ManyToOne) -> IndexedField:
    """The indexed foreign key of a many-to-one relationship"""
    return IndexedField(
        model=relationship.child_model,
        name=keys.KEY_SEPARATOR.join(relationship.child_key),
        properties=tuple(relationship.child_properties),
    )


class IndexMaintainer:
    """Keeps index sets, the all-keys set and record hashes consistent"""

    def __init__(self, storage, atomic: bool = True, index_all: bool = False):
        """
        Initialize the index maintainer.

        Args:
            storage: StorageBackend to write to
            atomic: Send each mutation as one MULTI/EXEC unit
            index_all: Index every non-key property, not only index=True ones
        """
        self.storage = storage
        self.atomic = atomic
        self.index_all = index_all

    def indexed_fields(self, model: Model) -> list[IndexedField]:
        fields: dict[str, IndexedField] = {}
        for prop in model.properties:
            if prop.index or (self.index_all and not prop.key):
                fields[prop.name] = IndexedField(model, prop.name, (prop,))
        for relationship in model.relationships.values():
            if isinstance(relationship, ManyToOne):
                field = relationship_field(relationship)
                fields.setdefault(field.name, field)
        return list(fields.values())

    def is_indexed(self, prop: Property) -> bool:
        return any(field.name == prop.name for field in self.indexed_fields(prop.model))

    def _dump_record(self, model: Model, record: dict[str, Any]) -> dict[str, str]:
        dumped = {}
        for name, value in record.items():
            prop = model.property(name)
            if value is not None:
                dumped[name] = prop.dump(value)
        return dumped

    def create(self, model: Model, record: dict[str, Any]) -> str:
        """
        Store a new record and index it.

        A serial key left unset is assigned from the model's counter and
        written back into `record`.

        Returns:
            The record's identity string

        Raises:
            InvalidKeyError: If the key is incomplete or already taken
        """
        fields = self._dump_record(model, record)

        serial = model.serial
        all_key = keys.key_set_for(model)
        if serial is not None and record.get(serial.name) is None:
            # Explicit keys never advance the counter, so skip values already taken
            while True:
                record[serial.name] = self.storage.incr(keys.serial_key_for(model))
                identity = keys.identity_for(model, record)
                if not self.storage.sismember(all_key, identity):
                    break
                logger.debug(f"Serial {identity} for {model.name} is taken, drawing the next one")
            fields[serial.name] = serial.dump(record[serial.name])
        else:
            identity = keys.identity_for(model, record)
            if self.storage.sismember(all_key, identity):
                raise InvalidKeyError(f"{model.name} {identity} already exists")

        with self.storage.batch(self.atomic) as store:
            store.sadd(all_key, identity)
            for field in self.indexed_fields(model):
                value = field.value_for(fields)
                if value is not None:
                    store.sadd(field.index_key(value), identity)
            store.hset(keys.record_key_for(model, identity), fields)

        logger.debug(f"Created {model.name} {identity}")
        return identity

    def update(self, model: Model, identity: str, attributes: dict[str, Any]) -> bool:
        """
        Apply changed attributes to a stored record.

        Null values remove the hash field. Every index whose value changes
        loses the identity under the old value and gains it under the new one.

        Returns:
            False when the record no longer exists, True otherwise

        Raises:
            InvalidKeyError: If an attribute would change the primary key
        """
        record_key = keys.record_key_for(model, identity)
        stored = self.storage.hgetall(record_key)
        if not stored:
            logger.warning(f"Cannot update {model.name} {identity}: record hash is missing")
            return False

        to_set: dict[str, str] = {}
        to_delete: list[str] = []
        for name, value in attributes.items():
            prop = model.property(name)
            dumped = prop.dump(value)
            if prop.key:
                if dumped != stored.get(name):
                    raise InvalidKeyError(f"{model.name}.{name} is part of the key and cannot change")
                continue
            if dumped is None:
                if name in stored:
                    to_delete.append(name)
            elif stored.get(name) != dumped:
                to_set[name] = dumped

        changed = set(to_set) | set(to_delete)
        if not changed:
            return True

        current = {**stored, **to_set}
        for name in to_delete:
            current.pop(name, None)

        with self.storage.batch(self.atomic) as store:
            for field in self.indexed_fields(model):
                if not any(prop.name in changed for prop in field.properties):
                    continue
                old_value = field.value_for(stored)
                new_value = field.value_for(current)
                if old_value == new_value:
                    continue
                if old_value is not None:
                    store.srem(field.index_key(old_value), identity)
                if new_value is not None:
                    store.sadd(field.index_key(new_value), identity)
            if to_delete:
                store.hdel(record_key, *to_delete)
            if to_set:
                store.hset(record_key, to_set)

        logger.debug(f"Updated {model.name} {identity}: {sorted(changed)}")
        return True

    def delete(self, model: Model, identity: str) -> None:
        """Remove a record, its identity and its index entries for the values it currently holds"""
        record_key = keys.record_key_for(model, identity)
        stored = self.storage.hgetall(record_key)

        with self.storage.batch(self.atomic) as store:
            store.srem(keys.key_set_for(model), identity)
            store.delete(record_key)
            for field in self.indexed_fields(model):
                value = field.value_for(stored)
                if value is not None:
                    store.srem(field.index_key(value), identity)

        logger.debug(f"Deleted {model.name} {identity}")
