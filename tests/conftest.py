"""
Pytest configuration for RedisRecords.

Ensures the project root is on sys.path so `import redisrecords` resolves
during test collection, and provides a small library schema (authors, books,
tags, editions) on top of an in-memory store.
"""

import os
import sys
from dataclasses import dataclass

import pytest

# Compute project root (parent of this tests directory)
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from redisrecords.adapters.redis_adapter import RedisAdapter  # noqa: E402
from redisrecords.config.settings import TestingSettings  # noqa: E402
from redisrecords.core.model import Model, Property, PropertyType  # noqa: E402
from redisrecords.storage.memory_storage import MemoryStorage  # noqa: E402


@dataclass
class Library:
    """Models shared by the tests"""
    author: Model
    book: Model
    tag: Model
    book_tag: Model
    edition: Model


def build_library() -> Library:
    author = Model("Author", [
        Property("id", PropertyType.SERIAL),
        Property("name", index=True),
        Property("country", index=True),
    ])
    book = Model("Book", [
        Property("id", PropertyType.SERIAL),
        Property("name", index=True),
        Property("year", PropertyType.INTEGER, index=True),
        Property("in_print", PropertyType.BOOLEAN, index=True),
        Property("published", PropertyType.DATE),
        Property("summary", PropertyType.TEXT),
    ])
    book.belongs_to("author", author)
    author.has_many("books", book)

    tag = Model("Tag", [
        Property("id", PropertyType.SERIAL),
        Property("name", index=True),
    ])

    book_tag = Model("BookTag", [Property("id", PropertyType.SERIAL)])
    book_tag.belongs_to("book", book)
    book_tag.belongs_to("tag", tag)
    book.has_many_through("tags", tag, through=book_tag)
    tag.has_many_through("books", book, through=book_tag)

    edition = Model("Edition", [
        Property("book_code", key=True),
        Property("number", PropertyType.INTEGER, key=True),
        Property("title", index=True),
        Property("pages", PropertyType.INTEGER),
    ])

    return Library(author=author, book=book, tag=tag, book_tag=book_tag, edition=edition)


@pytest.fixture
def library() -> Library:
    return build_library()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def adapter(storage) -> RedisAdapter:
    return RedisAdapter(storage, TestingSettings())
