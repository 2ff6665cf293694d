"""
Repository Facade - Typed CRUD over a Collection Handle

🏗️ Encode, Delegate, Decode:
Each operation encodes an entity or compiles a filter, makes exactly one call
on the collection handle, and decodes whatever comes back. Repositories do not
retry, batch, or reorder; that is the handle's business.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel

from ..config import MappingConfig, get_config
from ..core.codec import decode, encode, identifier_value
from ..core.schema import EntityDescriptor, describe
from ..core.values import Document, to_value
from ..exceptions import MissingIdentifierValue
from ..query.compiler import compile_filter
from ..query.filters import Filter
from .interface import AsyncCollectionHandle, CollectionHandle

EntityType = TypeVar("EntityType", bound=BaseModel)

@dataclass
class RepositoryMetrics:
    """Metrics collected by repository implementations"""
    total_operations: int = 0
    successful_operations: int = 0
    failed_operations: int = 0
    average_response_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary"""
        return {
            "total_operations": self.total_operations,
            "successful_operations": self.successful_operations,
            "failed_operations": self.failed_operations,
            "success_rate": self.successful_operations / max(self.total_operations, 1),
            "average_response_time_ms": self.average_response_time_ms,
        }

class BaseRepository(Generic[EntityType]):
    """
    Shared plumbing for the sync and async repositories.

    Provides:
    - Descriptor lookup and mapping configuration
    - Encoding with the identifier policy, filter compilation, decoding
    - Metrics collection and failure logging
    """

    def __init__(self, entity_class: Type[EntityType], config: Optional[MappingConfig] = None):
        self.entity_class = entity_class
        self.descriptor: EntityDescriptor = describe(entity_class)
        self.config = config or get_config().mapping
        self.metrics = RepositoryMetrics()
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @property
    def collection_name(self) -> str:
        return self.descriptor.collection_name

    def get_metrics(self) -> Dict[str, Any]:
        """Get repository performance metrics"""
        return self.metrics.to_dict()

    # Metrics and monitoring
    @contextmanager
    def _operation(self, name: str):
        start_time = time.perf_counter()
        try:
            yield
        except Exception as e:
            self._record_operation_failure(name, e)
            raise
        else:
            self._record_operation_success(start_time)

    def _record_operation_success(self, start_time: float):
        """Record a successful operation"""
        duration = (time.perf_counter() - start_time) * 1000
        self.metrics.total_operations += 1
        self.metrics.successful_operations += 1

        # Update average response time
        total_time = self.metrics.average_response_time_ms * (self.metrics.successful_operations - 1)
        self.metrics.average_response_time_ms = (total_time + duration) / self.metrics.successful_operations

    def _record_operation_failure(self, name: str, error: Exception):
        """Record a failed operation"""
        self.metrics.total_operations += 1
        self.metrics.failed_operations += 1
        self._logger.error(f"{name} on '{self.collection_name}' failed: {error}")

    # Mapping helpers
    def _encode_for_write(self, entity: EntityType) -> Document:
        if not isinstance(entity, self.entity_class):
            raise TypeError(
                f"{self.__class__.__name__}[{self.entity_class.__name__}] cannot store "
                f"{type(entity).__name__}"
            )
        identifier = self.descriptor.identifier
        if identifier is not None and self.config.require_identifier:
            if identifier_value(entity, self.descriptor) in (None, ""):
                raise MissingIdentifierValue(self.entity_class, identifier.logical_name)
        return encode(entity, self.descriptor)

    def _compile(self, expression: Filter) -> Document:
        return compile_filter(expression, self.descriptor, strict=self.config.strict_fields)

    def _id_query(self, entity_id: Any, operation: str) -> Document:
        identifier = self.descriptor.require_identifier(operation)
        return {identifier.stored_name: to_value(entity_id, identifier.logical_name)}

    def _decode(self, document: Document) -> EntityType:
        return decode(document, self.descriptor, self.entity_class)

class Repository(BaseRepository[EntityType]):
    """
    Synchronous repository for one entity type.

    Example:
        users = Repository(User, MongoCollection(db["users"]))
        users.insert(User(id="1", name="Joel", age=25))
        adults = users.find(field("age") >= 18)
    """

    def __init__(self, entity_class: Type[EntityType], collection: CollectionHandle,
                 config: Optional[MappingConfig] = None):
        super().__init__(entity_class, config)
        self.collection = collection

    def insert(self, entity: EntityType) -> EntityType:
        """Insert one entity and return it"""
        with self._operation("insert"):
            document = self._encode_for_write(entity)
            self.collection.insert_one(document)
            self._logger.debug(f"Inserted into '{self.collection_name}': {document}")
        return entity

    def insert_many(self, entities: Iterable[EntityType]) -> List[EntityType]:
        """Insert several entities with a single handle call"""
        entities = list(entities)
        if not entities:
            return entities
        with self._operation("insert_many"):
            documents = [self._encode_for_write(entity) for entity in entities]
            self.collection.insert_many(documents)
            self._logger.debug(f"Inserted {len(documents)} documents into '{self.collection_name}'")
        return entities

    def find(self, expression: Filter) -> List[EntityType]:
        """All entities matching the filter"""
        with self._operation("find"):
            query = self._compile(expression)
            return [self._decode(document) for document in self.collection.find(query)]

    def find_one(self, expression: Filter) -> Optional[EntityType]:
        """First entity matching the filter, or None"""
        with self._operation("find_one"):
            query = self._compile(expression)
            return self._first(query)

    def find_by_id(self, entity_id: Any) -> Optional[EntityType]:
        """Entity stored under ``entity_id``, or None"""
        with self._operation("find_by_id"):
            query = self._id_query(entity_id, "find_by_id")
            return self._first(query)

    def find_all(self) -> List[EntityType]:
        """Every entity in the collection"""
        with self._operation("find_all"):
            return [self._decode(document) for document in self.collection.find({})]

    def upsert(self, expression: Filter, entity: EntityType) -> EntityType:
        """Replace the first match of the filter with ``entity``, inserting it if nothing matches"""
        with self._operation("upsert"):
            self.descriptor.require_identifier("upsert")
            document = self._encode_for_write(entity)
            query = self._compile(expression)
            self.collection.replace_one_upsert(query, document)
        return entity

    def delete_one(self, expression: Filter) -> bool:
        """Delete the first match of the filter; True if a document was removed"""
        with self._operation("delete_one"):
            query = self._compile(expression)
            return self.collection.delete_one(query) > 0

    def _first(self, query: Document) -> Optional[EntityType]:
        documents = self.collection.find(query)
        try:
            for document in documents:
                return self._decode(document)
            return None
        finally:
            # release the cursor behind a generator handle
            close = getattr(documents, "close", None)
            if close is not None:
                close()

class AsyncRepository(BaseRepository[EntityType]):
    """Asynchronous repository for one entity type, over an async collection handle"""

    def __init__(self, entity_class: Type[EntityType], collection: AsyncCollectionHandle,
                 config: Optional[MappingConfig] = None):
        super().__init__(entity_class, config)
        self.collection = collection

    async def insert(self, entity: EntityType) -> EntityType:
        with self._operation("insert"):
            document = self._encode_for_write(entity)
            await self.collection.insert_one(document)
        return entity

    async def insert_many(self, entities: Iterable[EntityType]) -> List[EntityType]:
        entities = list(entities)
        if not entities:
            return entities
        with self._operation("insert_many"):
            documents = [self._encode_for_write(entity) for entity in entities]
            await self.collection.insert_many(documents)
        return entities

    async def find(self, expression: Filter) -> List[EntityType]:
        with self._operation("find"):
            query = self._compile(expression)
            return [self._decode(document) async for document in self.collection.find(query)]

    async def find_one(self, expression: Filter) -> Optional[EntityType]:
        with self._operation("find_one"):
            query = self._compile(expression)
            return await self._first(query)

    async def find_by_id(self, entity_id: Any) -> Optional[EntityType]:
        with self._operation("find_by_id"):
            query = self._id_query(entity_id, "find_by_id")
            return await self._first(query)

    async def find_all(self) -> List[EntityType]:
        with self._operation("find_all"):
            return [self._decode(document) async for document in self.collection.find({})]

    async def upsert(self, expression: Filter, entity: EntityType) -> EntityType:
        with self._operation("upsert"):
            self.descriptor.require_identifier("upsert")
            document = self._encode_for_write(entity)
            query = self._compile(expression)
            await self.collection.replace_one_upsert(query, document)
        return entity

    async def delete_one(self, expression: Filter) -> bool:
        with self._operation("delete_one"):
            query = self._compile(expression)
            return await self.collection.delete_one(query) > 0

    async def _first(self, query: Document) -> Optional[EntityType]:
        documents = self.collection.find(query)
        try:
            async for document in documents:
                return self._decode(document)
            return None
        finally:
            aclose = getattr(documents, "aclose", None)
            if aclose is not None:
                await aclose()

# Export main components
__all__ = ["Repository", "AsyncRepository", "BaseRepository", "RepositoryMetrics"]
