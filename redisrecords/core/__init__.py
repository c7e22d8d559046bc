"""
Models, conditions and queries consumed by the adapter.
"""

from redisrecords.core.model import (
    Model,
    Property,
    PropertyType,
    RelationshipKind,
    ManyToOne,
    OneToMany,
    ManyToMany,
)
from redisrecords.core.conditions import (
    Operator,
    SubjectKind,
    Comparison,
    AndOperation,
    OrOperation,
    NotOperation,
    normalize,
    eq, ne, in_, not_in, gt, gte, lt, lte, like,
    and_, or_, not_,
)
from redisrecords.core.query import Query, Order, asc, desc, where

__all__ = [
    "Model", "Property", "PropertyType", "RelationshipKind", "ManyToOne", "OneToMany", "ManyToMany",
    "Operator", "SubjectKind", "Comparison", "AndOperation", "OrOperation", "NotOperation", "normalize",
    "eq", "ne", "in_", "not_in", "gt", "gte", "lt", "lte", "like", "and_", "or_", "not_",
    "Query", "Order", "asc", "desc", "where",
]
