"""
RedisRecords: typed records and secondary indexes on a Redis-style store

RedisRecords maps models with typed properties, composite keys and relationships
onto Redis hashes and sets, and answers boolean queries with native set operations
over indexes it maintains itself.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh.readlines() if line.strip() and not line.startswith("#")]

# Get version from the package
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "."))
from redisrecords.version import get_version, VERSION

setup(
    name="RedisRecords",
    version=get_version(VERSION),
    description="Typed records and set-based secondary indexes on Redis",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=['redisrecords', 'redisrecords.*'], exclude=['tests*']),
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0", "hypothesis>=6.0"],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    keywords="redis, index, records, query, adapter",
)
