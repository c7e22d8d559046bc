"""
Query conditions for RedisRecords.

A condition tree is made of Comparison leaves and AND/OR/NOT operation
nodes. Negation lives on the leaves: normalize() pushes every NOT down to the
comparisons using De Morgan's laws, so the index layer only ever sees AND,
OR and (possibly negated) comparisons.

Every node can also evaluate itself against a fetched record. That in-memory
predicate is the final word on which records match; index lookups only
narrow down the candidates.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable

from redisrecords.core.model import ManyToMany, ManyToOne, Property, Relationship
from redisrecords.exceptions import UnsupportedConditionError


class Operator(str, Enum):
    """Comparison operators."""

    EQL = "eql"
    IN = "in"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"


# Operators the index layer can answer
INDEXABLE_OPERATORS = frozenset({Operator.EQL, Operator.IN})


class SubjectKind(str, Enum):
    """What a comparison compares against."""

    PROPERTY = "property"
    KEY = "key"
    MANY_TO_ONE = "many_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_MANY = "many_to_many"


# (relationship, record) -> typed key tuples of the target records linked to record
LinkLoader = Callable[[ManyToMany, dict[str, Any]], set[tuple]]


def _like_pattern(pattern: str) -> re.Pattern:
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


@dataclass(frozen=True, eq=False)
class Comparison:
    """A single test of a property or relationship against a value."""

    subject: Property | Relationship
    operator: Operator
    value: Any
    negated: bool = False

    def __post_init__(self):
        object.__setattr__(self, "operator", Operator(self.operator))
        if self.operator is Operator.IN and not isinstance(self.value, (list, tuple, set, frozenset)):
            raise ValueError("IN comparisons need a list of values")

    @property
    def kind(self) -> SubjectKind:
        if isinstance(self.subject, Property):
            return SubjectKind.KEY if self.subject.key else SubjectKind.PROPERTY
        return SubjectKind(self.subject.kind.value)

    @property
    def is_relationship(self) -> bool:
        return not isinstance(self.subject, Property)

    def negate(self) -> "Comparison":
        return replace(self, negated=not self.negated)

    def values(self) -> list[Any]:
        """Every value this comparison accepts (one for EQL, the list for IN)"""
        if self.operator is Operator.IN:
            return list(self.value)
        return [self.value]

    def matches(self, record: dict[str, Any], links: LinkLoader | None = None) -> bool:
        return self._test(record, links) != self.negated

    def _test(self, record: dict[str, Any], links: LinkLoader | None) -> bool:
        kind = self.kind
        if kind in (SubjectKind.PROPERTY, SubjectKind.KEY):
            return self._test_property(record)

        if self.operator not in INDEXABLE_OPERATORS:
            raise UnsupportedConditionError(f"Operator '{self.operator.value}' is not supported on relationships")

        if kind is SubjectKind.MANY_TO_ONE:
            relationship: ManyToOne = self.subject
            actual = tuple(prop.typecast(record.get(prop.name)) for prop in relationship.child_properties)
            expected = [tuple(
                prop.typecast(v) for prop, v in zip(relationship.child_properties, relationship.parent_key_values(value))
            ) for value in self.values()]
            return actual in expected

        if kind is SubjectKind.MANY_TO_MANY:
            if links is None:
                raise UnsupportedConditionError("Many-to-many conditions need a link loader")
            relationship: ManyToMany = self.subject
            linked = links(relationship, record)
            return any(tuple(relationship.target_key_values(value)) in linked for value in self.values())

        raise UnsupportedConditionError(f"Relationship kind '{kind.value}' cannot be used in conditions")

    def _test_property(self, record: dict[str, Any]) -> bool:
        prop: Property = self.subject
        actual = prop.typecast(record.get(prop.name))
        operator = self.operator

        if operator is Operator.EQL:
            return actual == prop.typecast(self.value)
        if operator is Operator.IN:
            return actual in [prop.typecast(v) for v in self.value]
        if actual is None:
            return False
        if operator is Operator.LIKE:
            return _like_pattern(str(self.value)).fullmatch(str(actual)) is not None

        expected = prop.typecast(self.value)
        if operator is Operator.GT:
            return actual > expected
        if operator is Operator.GTE:
            return actual >= expected
        if operator is Operator.LT:
            return actual < expected
        return actual <= expected


@dataclass(frozen=True, eq=False)
class AndOperation:
    """All operands must match."""

    operands: tuple

    def matches(self, record: dict[str, Any], links: LinkLoader | None = None) -> bool:
        return all(operand.matches(record, links) for operand in self.operands)


@dataclass(frozen=True, eq=False)
class OrOperation:
    """At least one operand must match."""

    operands: tuple

    def matches(self, record: dict[str, Any], links: LinkLoader | None = None) -> bool:
        return any(operand.matches(record, links) for operand in self.operands)


@dataclass(frozen=True, eq=False)
class NotOperation:
    """The operand must not match. Removed by normalize()."""

    operand: Any

    def matches(self, record: dict[str, Any], links: LinkLoader | None = None) -> bool:
        return not self.operand.matches(record, links)


Condition = Comparison | AndOperation | OrOperation | NotOperation


def normalize(condition: Condition | None, negate: bool = False) -> Condition | None:
    """
    Push negation down to the comparisons (De Morgan) and drop empty operations.

    Args:
        condition: Condition tree, or None for "no conditions"
        negate: Whether the tree is under an odd number of NOTs

    Returns:
        An equivalent tree without NotOperation nodes, or None when nothing remains

    Raises:
        UnsupportedConditionError: For node types that are not conditions
    """
    if condition is None:
        return None
    if isinstance(condition, Comparison):
        return condition.negate() if negate else condition
    if isinstance(condition, NotOperation):
        return normalize(condition.operand, not negate)
    if isinstance(condition, (AndOperation, OrOperation)):
        operands = tuple(
            operand for operand in (normalize(op, negate) for op in condition.operands) if operand is not None
        )
        if not operands:
            return None
        if len(operands) == 1:
            return operands[0]
        # AND under negation becomes OR and vice versa
        use_or = isinstance(condition, OrOperation) != negate
        return OrOperation(operands) if use_or else AndOperation(operands)
    raise UnsupportedConditionError(f"Unrecognized condition node: {type(condition).__name__}")


# Builders

def eq(subject: Property | Relationship, value: Any) -> Comparison:
    return Comparison(subject, Operator.EQL, value)


def ne(subject: Property | Relationship, value: Any) -> Comparison:
    return Comparison(subject, Operator.EQL, value, negated=True)


def in_(subject: Property | Relationship, values: Any) -> Comparison:
    return Comparison(subject, Operator.IN, tuple(values))


def not_in(subject: Property | Relationship, values: Any) -> Comparison:
    return Comparison(subject, Operator.IN, tuple(values), negated=True)


def gt(subject: Property, value: Any) -> Comparison:
    return Comparison(subject, Operator.GT, value)


def gte(subject: Property, value: Any) -> Comparison:
    return Comparison(subject, Operator.GTE, value)


def lt(subject: Property, value: Any) -> Comparison:
    return Comparison(subject, Operator.LT, value)


def lte(subject: Property, value: Any) -> Comparison:
    return Comparison(subject, Operator.LTE, value)


def like(subject: Property, pattern: str) -> Comparison:
    return Comparison(subject, Operator.LIKE, pattern)


def and_(*operands: Condition) -> AndOperation:
    return AndOperation(tuple(operands))


def or_(*operands: Condition) -> OrOperation:
    return OrOperation(tuple(operands))


def not_(operand: Condition) -> Condition:
    """Negate a condition, pushing the negation into its comparisons"""
    return normalize(operand, negate=True)


__all__ = [
    "Operator",
    "SubjectKind",
    "INDEXABLE_OPERATORS",
    "Comparison",
    "AndOperation",
    "OrOperation",
    "NotOperation",
    "Condition",
    "LinkLoader",
    "normalize",
    "eq", "ne", "in_", "not_in", "gt", "gte", "lt", "lte", "like",
    "and_", "or_", "not_",
]
