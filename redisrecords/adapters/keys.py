"""
Store key layout for RedisRecords.

Every key the adapter reads or writes is derived here:

    {model}:{key names}:all       set of every live identity
    {model}:{key names}:serial    serial counter
    {model}:{identity}            record hash
    {model}:{field}:{encoded}     index set of identities holding a value

The layout is shared with existing data and must not change.
"""

import base64
from typing import Any

from redisrecords.core.model import Model, Property
from redisrecords.exceptions import InvalidKeyError

KEY_SEPARATOR = ":"


def encode(value: str) -> str:
    """Base64 encode a stringified value for use inside an index key"""
    return base64.b64encode(str(value).encode("utf-8")).decode("ascii").replace("\n", "")


def key_names(model: Model) -> str:
    return KEY_SEPARATOR.join(prop.name for prop in model.key)


def key_set_for(model: Model) -> str:
    """Key of the set holding every live identity of `model`"""
    return f"{model.storage_name}:{key_names(model)}:all"


def serial_key_for(model: Model) -> str:
    return f"{model.storage_name}:{key_names(model)}:serial"


def record_key_for(model: Model, identity: str) -> str:
    """Key of the hash holding one record's fields"""
    return f"{model.storage_name}:{identity}"


def index_key_for(model: Model, field_name: str, value: str) -> str:
    """Key of the index set for `value` (already dumped to a string) in `field_name`"""
    return f"{model.storage_name}:{field_name}:{encode(value)}"


def join_values(properties: list[Property], values: list[Any]) -> str | None:
    """Dump values through their properties and join them; None if any value is null"""
    dumped = [prop.dump(value) for prop, value in zip(properties, values)]
    if any(part is None for part in dumped):
        return None
    return KEY_SEPARATOR.join(dumped)


def identity_from_values(model: Model, values: list[Any]) -> str:
    """
    Build the identity string for primary-key values.

    Raises:
        InvalidKeyError: If a value is missing, or a composite key part contains the separator
    """
    key = model.key
    if not key:
        raise InvalidKeyError(f"{model.name} declares no key")
    if len(values) != len(key):
        raise InvalidKeyError(f"{model.name} key has {len(key)} part(s), got {len(values)}")

    parts = []
    for prop, value in zip(key, values):
        dumped = prop.dump(value)
        if dumped is None:
            raise InvalidKeyError(f"{model.name}.{prop.name} is part of the key and cannot be null")
        if len(key) > 1 and KEY_SEPARATOR in dumped:
            raise InvalidKeyError(
                f"{model.name}.{prop.name} value {dumped!r} contains '{KEY_SEPARATOR}' and is part of a composite key"
            )
        parts.append(dumped)
    return KEY_SEPARATOR.join(parts)


def identity_for(model: Model, record: dict[str, Any]) -> str:
    return identity_from_values(model, [record.get(prop.name) for prop in model.key])


def split_identity(model: Model, identity: str) -> dict[str, str]:
    """Key field strings of an identity, by property name"""
    key = model.key
    parts = identity.split(KEY_SEPARATOR, len(key) - 1) if len(key) > 1 else [identity]
    if len(parts) != len(key):
        raise InvalidKeyError(f"Identity {identity!r} does not match the {model.name} key")
    return {prop.name: part for prop, part in zip(key, parts)}
