"""
Record model definitions for RedisRecords.

A Model declares typed properties (some of them forming the primary key) and
relationships to other models. Properties know how to turn the strings that
come back from the store into typed values, and how to render typed values
as the strings the store keeps.

Example:
    book = Model("Book", [Property("id", PropertyType.SERIAL), Property("name")])
    tag = Model("Tag", [Property("id", PropertyType.SERIAL), Property("name")])
    book_tag = Model("BookTag", [Property("id", PropertyType.SERIAL)])
    book_tag.belongs_to("book", book)
    book_tag.belongs_to("tag", tag)
    book.has_many_through("tags", tag, through=book_tag)
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from redisrecords.exceptions import UnknownPropertyError


class PropertyType(str, Enum):
    """Primitive types a property can hold."""

    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    SERIAL = "serial"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"


# Types whose stored text must be converted back on read
TEXTUAL_TYPES = frozenset({
    PropertyType.INTEGER,
    PropertyType.SERIAL,
    PropertyType.FLOAT,
    PropertyType.DECIMAL,
    PropertyType.DATE,
    PropertyType.DATETIME,
})

NUMERIC_TYPES = frozenset({
    PropertyType.INTEGER,
    PropertyType.SERIAL,
    PropertyType.FLOAT,
    PropertyType.DECIMAL,
})

_TRUE_STRINGS = frozenset({"true", "t", "1", "yes", "y"})
_FALSE_STRINGS = frozenset({"false", "f", "0", "no", "n", ""})


@dataclass(eq=False)
class Property:
    """A typed field of a model."""

    name: str
    type: PropertyType = PropertyType.STRING
    key: bool = False
    index: bool = False
    required: bool = False
    model: "Model | None" = field(default=None, repr=False)

    def __post_init__(self):
        self.type = PropertyType(self.type)
        if self.type is PropertyType.SERIAL:
            self.key = True

    @property
    def is_textual(self) -> bool:
        return self.type in TEXTUAL_TYPES

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    def typecast(self, value: Any) -> Any:
        """
        Convert a stored string or loosely typed value into this property's type.

        Args:
            value: Raw value (None passes through)

        Returns:
            Typed value

        Raises:
            ValueError: If the value cannot represent this type
        """
        if value is None:
            return None

        kind = self.type
        if kind in (PropertyType.INTEGER, PropertyType.SERIAL):
            return int(value)
        if kind is PropertyType.FLOAT:
            return float(value)
        if kind is PropertyType.DECIMAL:
            return value if isinstance(value, Decimal) else Decimal(str(value))
        if kind is PropertyType.BOOLEAN:
            if isinstance(value, bool):
                return value
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in _TRUE_STRINGS:
                    return True
                if lowered in _FALSE_STRINGS:
                    return False
                raise ValueError(f"Cannot interpret {value!r} as boolean for '{self.name}'")
            return bool(value)
        if kind is PropertyType.DATE:
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, date):
                return value
            return date.fromisoformat(str(value))
        if kind is PropertyType.DATETIME:
            if isinstance(value, datetime):
                return value
            if isinstance(value, date):
                return datetime(value.year, value.month, value.day)
            return datetime.fromisoformat(str(value))
        return str(value)

    def dump(self, value: Any) -> str | None:
        """Render a value as the string kept by the store"""
        value = self.typecast(value)
        if value is None:
            return None
        if self.type is PropertyType.BOOLEAN:
            return "true" if value else "false"
        if self.type in (PropertyType.DATE, PropertyType.DATETIME):
            return value.isoformat()
        if self.type is PropertyType.DECIMAL:
            # 1.50 and 1.5 are the same value and must share an index set
            return format(value.normalize(), "f")
        return str(value)


class RelationshipKind(str, Enum):
    """Kinds of relationship between models."""

    MANY_TO_ONE = "many_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_MANY = "many_to_many"


def _key_values(model: "Model", value: Any) -> list[Any]:
    """Typed primary-key values of `model` taken from a record, a tuple, or a bare value"""
    key = model.key
    if isinstance(value, dict):
        raw = [value.get(prop.name) for prop in key]
    elif isinstance(value, (tuple, list)):
        raw = list(value)
    else:
        raw = [value]
    if len(raw) != len(key):
        raise ValueError(f"{model.name} key has {len(key)} part(s), got {len(raw)}")
    return [prop.typecast(v) for prop, v in zip(key, raw)]


@dataclass(eq=False)
class ManyToOne:
    """A child model holding a foreign key to a parent model (belongs_to)."""

    kind: ClassVar[RelationshipKind] = RelationshipKind.MANY_TO_ONE

    name: str
    child_model: "Model"
    parent_model: "Model"
    child_key: list[str]
    parent_key: list[str]

    @property
    def model(self) -> "Model":
        return self.child_model

    @property
    def child_properties(self) -> list[Property]:
        return [self.child_model.property(name) for name in self.child_key]

    def parent_key_values(self, value: Any) -> list[Any]:
        return _key_values(self.parent_model, value)


@dataclass(eq=False)
class OneToMany:
    """The inverse side of a ManyToOne (has n)."""

    kind: ClassVar[RelationshipKind] = RelationshipKind.ONE_TO_MANY

    name: str
    parent_model: "Model"
    child_model: "Model"
    inverse: ManyToOne

    @property
    def model(self) -> "Model":
        return self.parent_model


@dataclass(eq=False)
class ManyToMany:
    """
    Source records linked to target records through join records.

    The join model belongs to both sides: source_link points from the join
    model to the source model, target_link from the join model to the target.
    """

    kind: ClassVar[RelationshipKind] = RelationshipKind.MANY_TO_MANY

    name: str
    source_model: "Model"
    target_model: "Model"
    join_model: "Model"
    source_link: ManyToOne
    target_link: ManyToOne

    @property
    def model(self) -> "Model":
        return self.source_model

    def target_key_values(self, value: Any) -> list[Any]:
        return _key_values(self.target_model, value)


Relationship = ManyToOne | OneToMany | ManyToMany


class Model:
    """A named collection of typed properties and relationships"""

    def __init__(self, name: str, properties: list[Property] | None = None, storage_name: str | None = None):
        """
        Initialize a model.

        Args:
            name: Model name
            properties: Declared properties, key properties first by convention
            storage_name: Name used in store keys (defaults to the lower-cased name)
        """
        self.name = name
        self.storage_name = storage_name or name.lower()
        self._properties: dict[str, Property] = {}
        self.relationships: dict[str, Relationship] = {}
        for prop in properties or []:
            self.add_property(prop)

    def __repr__(self) -> str:
        return f"<Model {self.name}>"

    def add_property(self, prop: Property) -> Property:
        if prop.name in self._properties or prop.name in self.relationships:
            raise ValueError(f"{self.name} already declares '{prop.name}'")
        prop.model = self
        self._properties[prop.name] = prop
        return prop

    @property
    def properties(self) -> list[Property]:
        return list(self._properties.values())

    @property
    def key(self) -> list[Property]:
        return [prop for prop in self._properties.values() if prop.key]

    @property
    def serial(self) -> Property | None:
        for prop in self._properties.values():
            if prop.type is PropertyType.SERIAL:
                return prop
        return None

    def has_property(self, name: str) -> bool:
        return name in self._properties

    def property(self, name: str) -> Property:
        try:
            return self._properties[name]
        except KeyError:
            raise UnknownPropertyError(f"{self.name} has no property '{name}'") from None

    def relationship(self, name: str) -> Relationship:
        try:
            return self.relationships[name]
        except KeyError:
            raise UnknownPropertyError(f"{self.name} has no relationship '{name}'") from None

    def subject(self, name: str) -> Property | Relationship:
        """Property or relationship called `name`"""
        if name in self._properties:
            return self._properties[name]
        return self.relationship(name)

    def _add_relationship(self, relationship: Relationship) -> Relationship:
        if relationship.name in self.relationships or relationship.name in self._properties:
            raise ValueError(f"{self.name} already declares '{relationship.name}'")
        self.relationships[relationship.name] = relationship
        return relationship

    def belongs_to(self, name: str, parent: "Model", required: bool = False) -> ManyToOne:
        """
        Declare a many-to-one relationship and its foreign-key properties.

        One foreign-key property named "{name}_{parent key}" is added per
        parent key property. Serial parent keys become integer foreign keys.
        """
        child_key = []
        for parent_prop in parent.key:
            fk_type = PropertyType.INTEGER if parent_prop.type is PropertyType.SERIAL else parent_prop.type
            fk_name = f"{name}_{parent_prop.name}"
            if not self.has_property(fk_name):
                self.add_property(Property(fk_name, fk_type, required=required))
            child_key.append(fk_name)

        relationship = ManyToOne(
            name=name,
            child_model=self,
            parent_model=parent,
            child_key=child_key,
            parent_key=[prop.name for prop in parent.key],
        )
        self._add_relationship(relationship)
        return relationship

    def _link_to(self, join_model: "Model", parent: "Model", via: str | None = None) -> ManyToOne:
        for relationship in join_model.relationships.values():
            if not isinstance(relationship, ManyToOne) or relationship.parent_model is not parent:
                continue
            if via is None or relationship.name == via:
                return relationship
        raise ValueError(f"{join_model.name} does not belong to {parent.name}")

    def has_many(self, name: str, child: "Model", via: str | None = None) -> OneToMany:
        """Declare the inverse side of `child`'s belongs_to"""
        inverse = self._link_to(child, self, via)
        relationship = OneToMany(name=name, parent_model=self, child_model=child, inverse=inverse)
        self._add_relationship(relationship)
        return relationship

    def has_many_through(self, name: str, target: "Model", through: "Model",
                         source_via: str | None = None, target_via: str | None = None) -> ManyToMany:
        """Declare a many-to-many relationship through a join model that belongs to both sides"""
        relationship = ManyToMany(
            name=name,
            source_model=self,
            target_model=target,
            join_model=through,
            source_link=self._link_to(through, self, source_via),
            target_link=self._link_to(through, target, target_via),
        )
        self._add_relationship(relationship)
        return relationship
