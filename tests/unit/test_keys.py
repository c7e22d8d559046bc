"""
Test suite for the store key layout

Covers value encoding, the all-keys/serial/record/index key patterns, and
identity strings for single and composite primary keys.
"""

import pytest

from redisrecords.adapters import keys
from redisrecords.exceptions import InvalidKeyError


def test_encode_is_base64_of_string():
    """Test that values are base64 encoded after stringification"""
    assert keys.encode("Harry Potter") == "SGFycnkgUG90dGVy"
    assert keys.encode("fiction") == "ZmljdGlvbg=="
    assert keys.encode(1) == "MQ=="


def test_encode_never_contains_newlines():
    """Test that long values are not wrapped"""
    encoded = keys.encode("a" * 100)
    assert "\n" not in encoded
    assert encoded.endswith("YQ==")


def test_encode_distinct_values_stay_distinct():
    """Test that different strings never share an encoding"""
    values = ["", "a", "a:b", "a b", "1", "01", "true", "True", "é"]
    assert len({keys.encode(v) for v in values}) == len(values)


def test_model_key_patterns(library):
    """Test the all-keys, serial, record and index key patterns"""
    book = library.book

    assert keys.key_set_for(book) == "book:id:all"
    assert keys.serial_key_for(book) == "book:id:serial"
    assert keys.record_key_for(book, "7") == "book:7"
    assert keys.index_key_for(book, "name", "Harry Potter") == "book:name:SGFycnkgUG90dGVy"


def test_composite_key_patterns(library):
    """Test that composite key names and values are joined with ':'"""
    edition = library.edition

    assert keys.key_set_for(edition) == "edition:book_code:number:all"
    assert keys.serial_key_for(edition) == "edition:book_code:number:serial"

    identity = keys.identity_for(edition, {"book_code": "hp", "number": 2, "title": "x"})
    assert identity == "hp:2"
    assert keys.record_key_for(edition, identity) == "edition:hp:2"


def test_join_model_storage_name(library):
    """Test that model names are lower-cased in keys"""
    assert keys.key_set_for(library.book_tag) == "booktag:id:all"


def test_identity_uses_property_types(library):
    """Test that 1 and '1' give the same identity for an integer key"""
    edition = library.edition
    assert keys.identity_from_values(edition, ["hp", 1]) == keys.identity_from_values(edition, ["hp", "1"])


def test_split_identity_round_trip(library):
    """Test splitting an identity back into key fields"""
    assert keys.split_identity(library.edition, "hp:2") == {"book_code": "hp", "number": "2"}
    assert keys.split_identity(library.book, "12") == {"id": "12"}


def test_single_key_may_contain_separator():
    """Test that a single-field key can hold ':' and still split back whole"""
    from redisrecords.core.model import Model, Property

    page = Model("Page", [Property("path", key=True)])
    identity = keys.identity_for(page, {"path": "docs:intro"})

    assert identity == "docs:intro"
    assert keys.split_identity(page, identity) == {"path": "docs:intro"}


def test_composite_key_rejects_separator(library):
    """Test that a composite key part containing ':' is refused"""
    with pytest.raises(InvalidKeyError):
        keys.identity_for(library.edition, {"book_code": "hp:1", "number": 1})


def test_missing_key_value_rejected(library):
    """Test that a null key part is refused"""
    with pytest.raises(InvalidKeyError):
        keys.identity_for(library.edition, {"book_code": "hp"})

    with pytest.raises(InvalidKeyError):
        keys.identity_from_values(library.edition, ["hp"])


def test_split_identity_wrong_arity(library):
    """Test that an identity with too few parts is refused"""
    with pytest.raises(InvalidKeyError):
        keys.split_identity(library.edition, "hp")


def test_join_values_null_part(library):
    """Test that any null part makes the joined value null"""
    edition = library.edition
    assert keys.join_values(edition.key, ["hp", None]) is None
    assert keys.join_values(edition.key, ["hp", 3]) == "hp:3"
