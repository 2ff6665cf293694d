"""
Mongo Connections - Client Bootstrap

Owns a pymongo client and hands out collection handles and repositories bound
to the collection each entity type declares. Repositories themselves never see
the client.
"""

import logging
from typing import Optional, Type, TypeVar

from pymongo import AsyncMongoClient, MongoClient
from pydantic import BaseModel

from ..config import MappingConfig, MongoConfig, get_config
from ..core.schema import describe
from .backends.mongo import AsyncMongoCollection, MongoCollection
from .repository import AsyncRepository, Repository

logger = logging.getLogger(__name__)

EntityType = TypeVar("EntityType", bound=BaseModel)

class MongoConnection:
    """
    Synchronous connection to one database.

    Example:
        with MongoConnection().connect("mongodb://localhost:27017", "app") as connection:
            users = connection.repository(User)
            users.insert(User(id="1", name="Joel", age=25))
    """

    def __init__(self, config: Optional[MongoConfig] = None, mapping: Optional[MappingConfig] = None):
        settings = get_config() if config is None or mapping is None else None
        self.config = config or settings.mongo
        self.mapping = mapping or settings.mapping
        self._client: Optional[MongoClient] = None
        self._database = None

    def connect(self, uri: Optional[str] = None, database: Optional[str] = None) -> "MongoConnection":
        """
        Connect to the document store.

        Args:
            uri: Connection string such as "mongodb://localhost:27017" (defaults to config)
            database: Database name (defaults to config)
        """
        uri = uri or self.config.uri
        database = database or self.config.database
        self._client = MongoClient(
            uri,
            serverSelectionTimeoutMS=self.config.server_selection_timeout_ms,
            appname=self.config.app_name,
        )
        self._database = self._client[database]
        logger.info(f"Connected to database '{database}'")
        return self

    def get_client(self) -> MongoClient:
        """The underlying MongoClient, for anything docmodel does not cover"""
        if self._client is None:
            raise RuntimeError("MongoConnection is not connected; call connect() first")
        return self._client

    def get_database(self):
        if self._database is None:
            raise RuntimeError("MongoConnection is not connected; call connect() first")
        return self._database

    def get_collection(self, name: str) -> MongoCollection:
        return MongoCollection(self.get_database()[name])

    def repository(self, entity_class: Type[EntityType]) -> Repository[EntityType]:
        """Repository over the collection ``entity_class`` is bound to"""
        collection_name = describe(entity_class).collection_name
        return Repository(entity_class, self.get_collection(collection_name), self.mapping)

    def close(self) -> None:
        """Close the client and release its resources"""
        if self._client is not None:
            self._client.close()
            logger.info("MongoConnection closed")
        self._client = None
        self._database = None

    def __enter__(self) -> "MongoConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

class AsyncMongoConnection:
    """Asynchronous counterpart of MongoConnection, backed by AsyncMongoClient"""

    def __init__(self, config: Optional[MongoConfig] = None, mapping: Optional[MappingConfig] = None):
        settings = get_config() if config is None or mapping is None else None
        self.config = config or settings.mongo
        self.mapping = mapping or settings.mapping
        self._client: Optional[AsyncMongoClient] = None
        self._database = None

    def connect(self, uri: Optional[str] = None, database: Optional[str] = None) -> "AsyncMongoConnection":
        uri = uri or self.config.uri
        database = database or self.config.database
        self._client = AsyncMongoClient(
            uri,
            serverSelectionTimeoutMS=self.config.server_selection_timeout_ms,
            appname=self.config.app_name,
        )
        self._database = self._client[database]
        logger.info(f"Connected to database '{database}' (async)")
        return self

    def get_database(self):
        if self._database is None:
            raise RuntimeError("AsyncMongoConnection is not connected; call connect() first")
        return self._database

    def get_collection(self, name: str) -> AsyncMongoCollection:
        return AsyncMongoCollection(self.get_database()[name])

    def repository(self, entity_class: Type[EntityType]) -> AsyncRepository[EntityType]:
        collection_name = describe(entity_class).collection_name
        return AsyncRepository(entity_class, self.get_collection(collection_name), self.mapping)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            logger.info("AsyncMongoConnection closed")
        self._client = None
        self._database = None

    async def __aenter__(self) -> "AsyncMongoConnection":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

__all__ = ["MongoConnection", "AsyncMongoConnection"]
