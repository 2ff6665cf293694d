"""
Mongo Collections - pymongo Collection Handles

Thin adapters from pymongo collections to the collection handle interface.
Driver exceptions (``pymongo.errors.PyMongoError``) propagate unchanged.
"""

from typing import TYPE_CHECKING, AsyncIterator, Iterator, List

from ...core.values import Document
from ..interface import AsyncCollectionHandle, CollectionHandle

if TYPE_CHECKING:
    from pymongo.asynchronous.collection import AsyncCollection
    from pymongo.collection import Collection

class MongoCollection(CollectionHandle):
    """Collection handle backed by a ``pymongo.collection.Collection``"""

    def __init__(self, collection: "Collection"):
        self._collection = collection

    @property
    def name(self) -> str:
        return self._collection.name

    def insert_one(self, document: Document) -> None:
        # pymongo adds a generated _id to the dict it is given
        self._collection.insert_one(dict(document))

    def insert_many(self, documents: List[Document]) -> None:
        self._collection.insert_many([dict(document) for document in documents])

    def find(self, query: Document) -> Iterator[Document]:
        # closing the generator early closes the server-side cursor
        with self._collection.find(query) as cursor:
            yield from cursor

    def replace_one_upsert(self, filter: Document, replacement: Document) -> None:
        self._collection.replace_one(filter, replacement, upsert=True)

    def delete_one(self, filter: Document) -> int:
        return self._collection.delete_one(filter).deleted_count

class AsyncMongoCollection(AsyncCollectionHandle):
    """Collection handle backed by a ``pymongo`` ``AsyncCollection``"""

    def __init__(self, collection: "AsyncCollection"):
        self._collection = collection

    @property
    def name(self) -> str:
        return self._collection.name

    async def insert_one(self, document: Document) -> None:
        await self._collection.insert_one(dict(document))

    async def insert_many(self, documents: List[Document]) -> None:
        await self._collection.insert_many([dict(document) for document in documents])

    async def find(self, query: Document) -> AsyncIterator[Document]:
        async with self._collection.find(query) as cursor:
            async for document in cursor:
                yield document

    async def replace_one_upsert(self, filter: Document, replacement: Document) -> None:
        await self._collection.replace_one(filter, replacement, upsert=True)

    async def delete_one(self, filter: Document) -> int:
        result = await self._collection.delete_one(filter)
        return result.deleted_count

__all__ = ["MongoCollection", "AsyncMongoCollection"]
