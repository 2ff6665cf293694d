"""
Memory Collection - In-Memory Collection Backend

🧠 A Collection Without a Server:
Stores documents in process memory and evaluates the same query documents the
filter compiler emits, so repositories can be exercised in development and
tests without a running document store. Data is lost when the process exits.

Matching follows the document store's rules where they differ from Python's:
- a condition on an array field matches if any element matches
- ``True`` never equals ``1``
- equality with ``None`` matches a missing key
- ordering operators only compare values of the same kind
"""

import copy
import logging
import operator
import re
import threading
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional, Tuple

from bson import ObjectId

from ...core.values import Document
from ...exceptions import DuplicateKeyError, RepositoryError
from ..interface import AsyncCollectionHandle, CollectionHandle

logger = logging.getLogger(__name__)

_MISSING = object()

_ORDERING: Dict[str, Callable[[Any, Any], bool]] = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}

class MemoryCollection(CollectionHandle):
    """
    Thread-safe in-memory collection.

    Documents are copied on the way in and on the way out, so callers can never
    mutate stored state through a returned document.
    """

    def __init__(self, name: str = "memory"):
        self.name = name
        self._documents: List[Document] = []
        self._lock = threading.RLock()
        logger.debug(f"MemoryCollection '{name}' created")

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()

    def insert_one(self, document: Document) -> None:
        with self._lock:
            prepared = self._prepare(document)
            self._check_unique([prepared])
            self._documents.append(prepared)

    def insert_many(self, documents: List[Document]) -> None:
        with self._lock:
            prepared = [self._prepare(document) for document in documents]
            self._check_unique(prepared)
            self._documents.extend(prepared)

    def find(self, query: Document) -> Iterator[Document]:
        with self._lock:
            found = [copy.deepcopy(document) for document in self._documents if matches(document, query)]
        return iter(found)

    def replace_one_upsert(self, filter: Document, replacement: Document) -> None:
        with self._lock:
            for index, existing in enumerate(self._documents):
                if not matches(existing, filter):
                    continue
                new_document = copy.deepcopy(replacement)
                if "_id" not in new_document:
                    new_document = {"_id": existing["_id"], **new_document}
                elif new_document["_id"] != existing["_id"]:
                    raise RepositoryError(
                        f"Replacement would change immutable _id {existing['_id']!r} "
                        f"to {new_document['_id']!r}"
                    )
                self._documents[index] = new_document
                return

            new_document = copy.deepcopy(replacement)
            if "_id" not in new_document:
                filter_id = filter.get("_id", _MISSING)
                if filter_id is _MISSING or _is_operator_document(filter_id):
                    filter_id = ObjectId()
                new_document = {"_id": filter_id, **new_document}
            self._check_unique([new_document])
            self._documents.append(new_document)

    def delete_one(self, filter: Document) -> int:
        with self._lock:
            for index, existing in enumerate(self._documents):
                if matches(existing, filter):
                    del self._documents[index]
                    return 1
        return 0

    def _prepare(self, document: Document) -> Document:
        prepared = copy.deepcopy(document)
        if "_id" not in prepared:
            # store-generated identifiers go first, as the document store does
            prepared = {"_id": ObjectId(), **prepared}
        return prepared

    def _check_unique(self, documents: List[Document]) -> None:
        seen = [existing["_id"] for existing in self._documents]
        for document in documents:
            key = document["_id"]
            if any(_same(key, other) for other in seen):
                raise DuplicateKeyError(key)
            seen.append(key)

class AsyncMemoryCollection(AsyncCollectionHandle):
    """Async facade over a MemoryCollection"""

    def __init__(self, name: str = "memory", collection: Optional[MemoryCollection] = None):
        self.collection = collection or MemoryCollection(name)

    def __len__(self) -> int:
        return len(self.collection)

    async def insert_one(self, document: Document) -> None:
        self.collection.insert_one(document)

    async def insert_many(self, documents: List[Document]) -> None:
        self.collection.insert_many(documents)

    def find(self, query: Document) -> AsyncIterator[Document]:
        return _iterate(list(self.collection.find(query)))

    async def replace_one_upsert(self, filter: Document, replacement: Document) -> None:
        self.collection.replace_one_upsert(filter, replacement)

    async def delete_one(self, filter: Document) -> int:
        return self.collection.delete_one(filter)

async def _iterate(documents: List[Document]) -> AsyncIterator[Document]:
    for document in documents:
        yield document

# Query evaluation
def matches(document: Document, query: Document) -> bool:
    """Check whether a document satisfies a query document"""
    for key, condition in query.items():
        if key == "$and":
            if not all(matches(document, part) for part in condition):
                return False
        elif key == "$or":
            if not any(matches(document, part) for part in condition):
                return False
        elif key.startswith("$"):
            raise RepositoryError(f"Unsupported top-level query operator: {key}")
        else:
            value = _lookup(document, key)
            if not _matches_condition(value, condition):
                return False
    return True

def _lookup(document: Document, path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current

def _is_operator_document(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(
        isinstance(key, str) and key.startswith("$") for key in condition
    )

def _matches_condition(value: Any, condition: Any) -> bool:
    if not _is_operator_document(condition):
        return _equals(value, condition)

    options = condition.get("$options", "")
    for op, operand in condition.items():
        if op == "$options":
            continue
        if op == "$ne":
            result = not _equals(value, operand)
        elif op == "$in":
            result = any(_equals(value, item) for item in operand)
        elif op in _ORDERING:
            result = any(
                _comparable(candidate, operand) and _ORDERING[op](candidate, operand)
                for candidate in _candidates(value)
            )
        elif op == "$regex":
            pattern = re.compile(operand, _regex_flags(options))
            result = any(
                isinstance(candidate, str) and pattern.search(candidate) is not None
                for candidate in _candidates(value)
            )
        else:
            raise RepositoryError(f"Unsupported query operator: {op}")
        if not result:
            return False
    return True

def _candidates(value: Any) -> Tuple[Any, ...]:
    if value is _MISSING:
        return ()
    if isinstance(value, list):
        return (value, *value)
    return (value,)

def _equals(value: Any, operand: Any) -> bool:
    if operand is None:
        return value is _MISSING or value is None or (isinstance(value, list) and None in value)
    return any(_same(candidate, operand) for candidate in _candidates(value))

def _same(left: Any, right: Any) -> bool:
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right

def _comparable(left: Any, right: Any) -> bool:
    numbers = (int, float)
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool)
    if isinstance(left, numbers) and isinstance(right, numbers):
        return True
    return type(left) is type(right) and not isinstance(left, (list, dict))

def _regex_flags(options: str) -> int:
    flags = 0
    for letter in options:
        if letter not in _REGEX_FLAGS:
            raise RepositoryError(f"Unsupported regex option: {letter}")
        flags |= _REGEX_FLAGS[letter]
    return flags

__all__ = ["MemoryCollection", "AsyncMemoryCollection", "matches"]
