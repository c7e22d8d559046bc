"""
Test suite for queries: construction, in-memory filtering, ordering and projection
"""

import pytest

from redisrecords.core.conditions import AndOperation, Comparison, Operator, eq
from redisrecords.core.query import Order, Query, asc, desc, where
from redisrecords.exceptions import UnknownPropertyError


@pytest.fixture
def books():
    return [
        {"id": 1, "name": "Dune", "year": 1965},
        {"id": 2, "name": "Emma", "year": 1815},
        {"id": 3, "name": "Ubik", "year": 1969},
        {"id": 4, "name": "Solaris", "year": None},
    ]


def test_where_builds_and_of_comparisons(library):
    """Test the {name: value} shorthand"""
    tree = where(library.book, {"name": "Dune", "year": [1965, 1966]})

    assert isinstance(tree, AndOperation)
    operators = [op.operator for op in tree.operands]
    assert operators == [Operator.EQL, Operator.IN]


def test_where_single_criterion_unwrapped(library):
    """Test that one criterion gives a bare comparison"""
    tree = where(library.book, {"author": 1})

    assert isinstance(tree, Comparison)
    assert tree.subject is library.book.relationship("author")


def test_where_unknown_name(library):
    """Test that unknown names are refused"""
    with pytest.raises(UnknownPropertyError):
        where(library.book, {"isbn": "x"})


def test_empty_conditions_are_none(library):
    """Test that no criteria means no conditions"""
    assert Query(library.book).conditions is None
    assert Query(library.book, {}).conditions is None


def test_invalid_pagination(library):
    """Test that negative limit or offset is refused"""
    with pytest.raises(ValueError):
        Query(library.book, limit=-1)
    with pytest.raises(ValueError):
        Query(library.book, offset=-2)


def test_order_terms(library):
    """Test the accepted order term forms"""
    book = library.book
    query = Query(book, order=["name", "-year", book.property("id"), desc(book.property("name"))])

    assert query.order == [
        Order(book.property("name")),
        Order(book.property("year"), descending=True),
        Order(book.property("id")),
        Order(book.property("name"), descending=True),
    ]
    assert asc(book.property("id")) == Order(book.property("id"))


def test_fields_default_to_all_properties(library):
    """Test default and explicit projections"""
    book = library.book

    assert Query(book).fields == book.properties
    assert [p.name for p in Query(book, fields=["name"]).fields] == ["name"]


def test_filter_records(library, books):
    """Test conditions, then ordering, then pagination"""
    query = Query(library.book, eq(library.book.property("year"), 1965))
    assert [r["id"] for r in query.filter_records(books)] == [1]

    query = Query(library.book, order=["-year"], limit=2, offset=1)
    assert [r["id"] for r in query.filter_records(books)] == [1, 2]


def test_sort_nulls_first_ascending(library, books):
    """Test that null values sort before everything ascending"""
    query = Query(library.book, order=["year"])
    assert [r["id"] for r in query.sort_records(books)] == [4, 2, 1, 3]


def test_multi_term_sort(library):
    """Test that later terms break ties of earlier ones"""
    records = [
        {"id": 1, "name": "b", "year": 2000},
        {"id": 2, "name": "a", "year": 2000},
        {"id": 3, "name": "c", "year": 1990},
    ]
    query = Query(library.book, order=["-year", "name"])
    assert [r["id"] for r in query.sort_records(records)] == [2, 1, 3]


def test_presorted_skips_sort_and_slice(library, books):
    """Test that presorted records are only filtered"""
    query = Query(library.book, order=["year"], limit=1)
    assert query.filter_records(books, presorted=True) == books


def test_limit_zero(library, books):
    """Test that a zero limit returns nothing"""
    assert Query(library.book, limit=0).filter_records(books) == []


def test_project(library):
    """Test that projection keeps exactly the requested fields"""
    query = Query(library.book, fields=["name", "year"])
    assert query.project({"id": 1, "name": "Dune", "year": 1965, "summary": "sand"}) == {"name": "Dune", "year": 1965}
    assert query.project({"id": 1}) == {"name": None, "year": None}
