"""
Collection Backends

- memory: in-process collections for development and tests
- mongo: pymongo collection adapters
"""

from .memory import MemoryCollection, AsyncMemoryCollection
from .mongo import MongoCollection, AsyncMongoCollection

__all__ = ["MemoryCollection", "AsyncMemoryCollection", "MongoCollection", "AsyncMongoCollection"]
