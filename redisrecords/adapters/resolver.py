"""
Condition-to-index resolution for RedisRecords.

The resolver turns a normalized condition tree into a set of candidate
identities using the index sets kept by IndexMaintainer, or reports that the
indexes cannot answer (INDETERMINATE). It never has the last word: the
materializer re-applies the full predicate to whatever it returns.

Resolution contract:

- Key equality: membership in the all-keys set.
- Indexed field / many-to-one equality: the index set, when it exists.
  A missing index set, or a field without an index, is INDETERMINATE.
- Negation: complement within the model's all-keys set, only when every
  index set involved exists.
- Inclusion: union over the values; INDETERMINATE if any value is.
- Many-to-many: a scan of the join records for the known side. Always a
  definite (possibly empty) answer.
- AND: intersection of the branches that resolved; branches that did not are
  left to the in-memory filter. INDETERMINATE only when no branch resolved.
- OR: union of the branches; INDETERMINATE if any branch is.
"""

import logging
from typing import Any

from redisrecords.adapters import keys
from redisrecords.adapters.indexer import IndexMaintainer, IndexedField, relationship_field
from redisrecords.core.conditions import (
    AndOperation,
    Comparison,
    NotOperation,
    Operator,
    OrOperation,
    SubjectKind,
    INDEXABLE_OPERATORS,
)
from redisrecords.core.model import ManyToMany, Model
from redisrecords.core.query import Query
from redisrecords.exceptions import InvalidKeyError, UnsupportedConditionError

logger = logging.getLogger(__name__)


class _Indeterminate:
    """No index can answer this condition exactly"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INDETERMINATE"


INDETERMINATE = _Indeterminate()


class KeyResolver:
    """Answers condition trees with native set operations over index sets"""

    def __init__(self, storage, indexer: IndexMaintainer):
        self.storage = storage
        self.indexer = indexer

    def keys_for(self, query: Query) -> tuple[list[str], bool]:
        """
        Candidate identities for a query.

        Without conditions the all-keys set is sorted and paginated by the
        store itself (a single order term at most). Otherwise the conditions
        are resolved, falling back to every identity of the model.

        A store-side page is cut before hashes are fetched, so an identity
        whose hash is gone still takes a slot in it. RedisAdapter.read spots
        the short page and re-paginates in memory.

        Returns:
            (identities, presorted) where presorted tells whether order and
            pagination have already been applied
        """
        model = query.model
        all_key = keys.key_set_for(model)

        if query.conditions is None and len(query.order) <= 1:
            return self._sorted_keys(query), True

        if query.conditions is None:
            return list(self.storage.smembers(all_key)), False

        result = self.resolve(model, query.conditions)
        if result is INDETERMINATE:
            logger.debug(f"Conditions on {model.name} are not indexable, scanning {all_key}")
            return list(self.storage.smembers(all_key)), False
        return list(result), False

    def _sorted_keys(self, query: Query) -> list[str]:
        model = query.model
        params: dict[str, Any] = {}

        if query.limit is not None:
            params["start"], params["num"] = query.offset, query.limit
        elif query.offset:
            params["start"], params["num"] = query.offset, -1

        if query.order:
            term = query.order[0]
            prop = term.property
            if not (prop.key and len(model.key) == 1):
                params["by"] = f"{model.storage_name}:*->{prop.name}"
            params["alpha"] = not prop.is_numeric
            params["desc"] = term.descending
        else:
            params["by"] = "nosort"

        return self.storage.sort(keys.key_set_for(model), **params)

    def resolve(self, model: Model, condition) -> set[str] | _Indeterminate:
        """
        Resolve a normalized condition tree to identities of `model`.

        Raises:
            UnsupportedConditionError: For un-normalized NOT nodes, unknown node
                types, unsupported operators or relationship kinds
        """
        if isinstance(condition, Comparison):
            return self._resolve_comparison(model, condition)
        if isinstance(condition, AndOperation):
            return self._resolve_and(model, condition)
        if isinstance(condition, OrOperation):
            results = [self.resolve(model, operand) for operand in condition.operands]
            if any(result is INDETERMINATE for result in results):
                return INDETERMINATE
            return set().union(*results)
        if isinstance(condition, NotOperation):
            raise UnsupportedConditionError("NOT must be pushed into the comparisons before resolution")
        raise UnsupportedConditionError(f"Unrecognized condition node: {type(condition).__name__}")

    def _resolve_and(self, model: Model, operation: AndOperation) -> set[str] | _Indeterminate:
        # Plain equalities on existing index sets intersect in one SINTER
        index_keys = []
        others = []
        for operand in operation.operands:
            index_key = self._simple_index_key(model, operand)
            if index_key is None:
                others.append(operand)
            elif self.storage.exists(index_key):
                index_keys.append(index_key)

        known = [self.resolve(model, operand) for operand in others]
        known = [result for result in known if result is not INDETERMINATE]
        if index_keys:
            known.append(self.storage.sinter(*index_keys))

        composite = self._composite_key_match(model, operation)
        if composite is not None:
            known.append(composite)

        if not known:
            return INDETERMINATE
        return set.intersection(*known)

    def _composite_key_match(self, model: Model, operation: AndOperation) -> set[str] | None:
        """Membership test when the AND pins down every part of a composite key"""
        if len(model.key) < 2:
            return None
        values = {}
        for operand in operation.operands:
            if (isinstance(operand, Comparison) and not operand.negated
                    and operand.operator is Operator.EQL and operand.kind is SubjectKind.KEY):
                values[operand.subject.name] = operand.value
        if any(prop.name not in values for prop in model.key):
            return None
        try:
            identity = keys.identity_from_values(model, [values[prop.name] for prop in model.key])
        except InvalidKeyError:
            return set()
        return {identity} if self.storage.sismember(keys.key_set_for(model), identity) else set()

    def _simple_index_key(self, model: Model, condition) -> str | None:
        """Index key answering a positive single-value equality, None if the condition is anything else"""
        if not isinstance(condition, Comparison) or condition.negated or condition.operator is not Operator.EQL:
            return None
        field = self._indexed_field(model, condition)
        if field is None:
            return None
        value = self._field_value(condition, field, condition.value)
        return field.index_key(value) if value is not None else None

    def _indexed_field(self, model: Model, comparison: Comparison) -> IndexedField | None:
        kind = comparison.kind
        if kind is SubjectKind.PROPERTY:
            prop = comparison.subject
            if not self.indexer.is_indexed(prop):
                return None
            return IndexedField(model, prop.name, (prop,))
        if kind is SubjectKind.MANY_TO_ONE:
            return relationship_field(comparison.subject)
        return None

    def _field_value(self, comparison: Comparison, field: IndexedField, value: Any) -> str | None:
        if comparison.kind is SubjectKind.MANY_TO_ONE:
            return field.dump(comparison.subject.parent_key_values(value))
        return field.dump([value])

    def _resolve_comparison(self, model: Model, comparison: Comparison) -> set[str] | _Indeterminate:
        if comparison.operator not in INDEXABLE_OPERATORS:
            raise UnsupportedConditionError(f"Operator '{comparison.operator.value}' cannot be resolved")

        kind = comparison.kind
        all_key = keys.key_set_for(model)

        if kind is SubjectKind.KEY:
            return self._resolve_key(model, comparison, all_key)

        if kind is SubjectKind.MANY_TO_MANY:
            matches = set()
            for value in comparison.values():
                matches |= self._many_to_many_matches(comparison.subject, value)
            if comparison.negated:
                return self.storage.smembers(all_key) - matches
            return matches

        if kind not in (SubjectKind.PROPERTY, SubjectKind.MANY_TO_ONE):
            raise UnsupportedConditionError(f"Relationship kind '{kind.value}' cannot be resolved")

        field = self._indexed_field(model, comparison)
        if field is None:
            return INDETERMINATE

        index_keys = []
        for value in comparison.values():
            dumped = self._field_value(comparison, field, value)
            if dumped is None:
                # Nulls are never indexed
                return INDETERMINATE
            index_key = field.index_key(dumped)
            if not self.storage.exists(index_key):
                return INDETERMINATE
            index_keys.append(index_key)

        if not index_keys:
            return set() if not comparison.negated else self.storage.smembers(all_key)
        if comparison.negated:
            return self.storage.sdiff(all_key, *index_keys)
        if len(index_keys) == 1:
            return self.storage.smembers(index_keys[0])
        return self.storage.sunion(*index_keys)

    def _resolve_key(self, model: Model, comparison: Comparison, all_key: str) -> set[str] | _Indeterminate:
        prop = comparison.subject
        if len(model.key) > 1:
            # One part of a composite key does not name a record
            return INDETERMINATE

        affirmative = set()
        for value in comparison.values():
            try:
                identity = keys.identity_from_values(model, [value])
            except InvalidKeyError:
                # A null key names no record
                continue
            if self.storage.sismember(all_key, identity):
                affirmative.add(identity)

        logger.debug(f"{model.name}.{prop.name} key lookup matched {len(affirmative)} record(s)")
        if comparison.negated:
            return self.storage.smembers(all_key) - affirmative
        return affirmative

    def _many_to_many_matches(self, relationship: ManyToMany, value: Any) -> set[str]:
        """Source identities linked to one target record, found by scanning join records"""
        target_field = relationship_field(relationship.target_link)
        target_value = target_field.dump(relationship.target_key_values(value))
        if target_value is None:
            return set()

        source_link = relationship.source_link
        matches = set()
        for join_identity in self.storage.smembers(target_field.index_key(target_value)):
            join_key = keys.record_key_for(relationship.join_model, join_identity)
            parts = [self.storage.hget(join_key, name) for name in source_link.child_key]
            if any(part is None for part in parts):
                continue
            matches.add(keys.identity_from_values(relationship.source_model, parts))
        return matches

    def linked_keys(self, relationship: ManyToMany, record: dict[str, Any]) -> set[tuple]:
        """Typed key tuples of the target records linked to a source record"""
        source_field = relationship_field(relationship.source_link)
        source_value = source_field.dump([record.get(name) for name in relationship.source_link.parent_key])
        if source_value is None:
            return set()

        target_link = relationship.target_link
        target_key = relationship.target_model.key
        linked = set()
        for join_identity in self.storage.smembers(source_field.index_key(source_value)):
            join_key = keys.record_key_for(relationship.join_model, join_identity)
            parts = [self.storage.hget(join_key, name) for name in target_link.child_key]
            if any(part is None for part in parts):
                continue
            linked.add(tuple(prop.typecast(part) for prop, part in zip(target_key, parts)))
        return linked
