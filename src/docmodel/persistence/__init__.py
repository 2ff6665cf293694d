"""
Persistence - Repositories and Collection Handles

💾 Typed Access to Document Collections:
Repositories map entities onto collections; collection handles do the I/O.

Structure:
- interface: the collection handle contracts (sync and async)
- repository: Repository and AsyncRepository facades
- backends/: memory and pymongo collection handles
- connection: client bootstrap handing out repositories
"""

from .interface import CollectionHandle, AsyncCollectionHandle
from .repository import Repository, AsyncRepository, BaseRepository, RepositoryMetrics
from .backends import MemoryCollection, AsyncMemoryCollection, MongoCollection, AsyncMongoCollection
from .connection import MongoConnection, AsyncMongoConnection

__all__ = [
    "CollectionHandle", "AsyncCollectionHandle",
    "Repository", "AsyncRepository", "BaseRepository", "RepositoryMetrics",
    "MemoryCollection", "AsyncMemoryCollection", "MongoCollection", "AsyncMongoCollection",
    "MongoConnection", "AsyncMongoConnection",
]
