"""
Collection Handle Interface

💾 The Only Door to the Store:
Repositories never open, name, or close connections. Everything they need from
the document store goes through one of these handles, which own all blocking
I/O, retry policy, and cancellation.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Iterator, List

from ..core.values import Document

class CollectionHandle(ABC):
    """Synchronous access to a single collection"""

    @abstractmethod
    def insert_one(self, document: Document) -> None:
        """
        Insert one document.

        Args:
            document: The document to insert
        """
        pass

    @abstractmethod
    def insert_many(self, documents: List[Document]) -> None:
        """
        Insert several documents in one call.

        Args:
            documents: The documents to insert, in order
        """
        pass

    @abstractmethod
    def find(self, query: Document) -> Iterator[Document]:
        """
        Find documents matching a query document.

        Args:
            query: Compiled query document; ``{}`` matches everything

        Returns:
            Iterator over matching documents. Repositories that stop early
            call its ``close()`` when it has one.
        """
        pass

    @abstractmethod
    def replace_one_upsert(self, filter: Document, replacement: Document) -> None:
        """
        Replace the first document matching ``filter``, inserting it if none matches.

        Args:
            filter: Compiled query document
            replacement: The full replacement document
        """
        pass

    @abstractmethod
    def delete_one(self, filter: Document) -> int:
        """
        Delete the first document matching ``filter``.

        Returns:
            Number of documents deleted (0 or 1)
        """
        pass

class AsyncCollectionHandle(ABC):
    """Asynchronous access to a single collection"""

    @abstractmethod
    async def insert_one(self, document: Document) -> None:
        pass

    @abstractmethod
    async def insert_many(self, documents: List[Document]) -> None:
        pass

    @abstractmethod
    def find(self, query: Document) -> AsyncIterator[Document]:
        """Async iterator over documents matching ``query``; closed with ``aclose()`` when abandoned"""
        pass

    @abstractmethod
    async def replace_one_upsert(self, filter: Document, replacement: Document) -> None:
        pass

    @abstractmethod
    async def delete_one(self, filter: Document) -> int:
        pass

__all__ = ["CollectionHandle", "AsyncCollectionHandle"]
