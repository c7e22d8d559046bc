"""
Queries for RedisRecords.

A Query bundles the model, a normalized condition tree, ordering,
pagination and the fields to return. It also carries the in-memory half of
query evaluation: filtering fetched records with the condition predicate,
sorting and slicing them.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from redisrecords.core.conditions import AndOperation, Condition, LinkLoader, eq, in_, normalize
from redisrecords.core.model import Model, Property


@dataclass(frozen=True)
class Order:
    """Sort direction for one property."""

    property: Property
    descending: bool = False


def asc(prop: Property) -> Order:
    return Order(prop)


def desc(prop: Property) -> Order:
    return Order(prop, descending=True)


def where(model: Model, criteria: dict[str, Any]) -> Condition | None:
    """
    Build an AND of comparisons from a {name: value} mapping.

    List, tuple and set values become inclusion comparisons; everything else
    is an equality. Names may refer to properties or relationships.
    """
    comparisons = []
    for name, value in criteria.items():
        subject = model.subject(name)
        if isinstance(value, (list, tuple, set, frozenset)):
            comparisons.append(in_(subject, value))
        else:
            comparisons.append(eq(subject, value))
    return normalize(AndOperation(tuple(comparisons)))


class Query:
    """What to read from one model"""

    def __init__(self, model: Model, conditions: Condition | dict[str, Any] | None = None,
                 order: Iterable[Order | Property | str] = (), limit: int | None = None, offset: int = 0,
                 fields: Iterable[Property | str] | None = None):
        """
        Initialize a query.

        Args:
            model: Model to read
            conditions: Condition tree, a {name: value} mapping, or None for every record
            order: Order terms; bare properties or names sort ascending, a leading "-" on a name sorts descending
            limit: Maximum number of records to return
            offset: Number of matching records to skip
            fields: Properties to return (defaults to every property)
        """
        if limit is not None and limit < 0:
            raise ValueError("limit must not be negative")
        if offset < 0:
            raise ValueError("offset must not be negative")

        self.model = model
        if isinstance(conditions, dict):
            conditions = where(model, conditions)
        self.conditions = normalize(conditions)
        self.order = [self._order_term(term) for term in order]
        self.limit = limit
        self.offset = offset
        self.fields = [model.property(f) if isinstance(f, str) else f for f in fields] if fields else model.properties

    def __repr__(self) -> str:
        return (f"<Query {self.model.name} conditions={self.conditions!r} order={self.order!r} "
                f"limit={self.limit} offset={self.offset}>")

    def _order_term(self, term: Order | Property | str) -> Order:
        if isinstance(term, Order):
            return term
        if isinstance(term, Property):
            return Order(term)
        if term.startswith("-"):
            return Order(self.model.property(term[1:]), descending=True)
        return Order(self.model.property(term))

    def match_records(self, records: list[dict[str, Any]], links: LinkLoader | None = None) -> list[dict[str, Any]]:
        if self.conditions is None:
            return list(records)
        return [record for record in records if self.conditions.matches(record, links)]

    def sort_records(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        # Stable sorts applied from the last term to the first; None sorts first ascending
        records = list(records)
        for term in reversed(self.order):
            name = term.property.name
            records.sort(
                key=lambda record: (record.get(name) is not None, record.get(name)),
                reverse=term.descending,
            )
        return records

    def limit_records(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        end = None if self.limit is None else self.offset + self.limit
        return records[self.offset:end]

    def filter_records(self, records: list[dict[str, Any]], links: LinkLoader | None = None,
                       presorted: bool = False) -> list[dict[str, Any]]:
        """
        Apply conditions, then order, then offset/limit.

        Args:
            records: Fetched records with typed values
            links: Loader for many-to-many conditions
            presorted: The store already ordered and paginated the records

        Returns:
            Matching records
        """
        records = self.match_records(records, links)
        if presorted:
            return records
        return self.limit_records(self.sort_records(records))

    def project(self, record: dict[str, Any]) -> dict[str, Any]:
        return {prop.name: record.get(prop.name) for prop in self.fields}
