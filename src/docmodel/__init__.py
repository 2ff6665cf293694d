"""
docmodel - Typed Entities for Document Stores

Maps pydantic models onto document collections and compiles filter
expressions into store query documents.

Example:
    from pydantic import BaseModel
    from docmodel import DocumentConfig, IdField, StoredField, MongoConnection, field

    class User(BaseModel):
        model_config = DocumentConfig(collection="users")

        id: str = IdField()
        name: str = StoredField("first_name")
        age: int

    connection = MongoConnection().connect("mongodb://localhost:27017", "app")
    users = connection.repository(User)
    users.insert(User(id="1", name="Joel", age=25))
    users.find(field("age") > 18)
"""

from .exceptions import (
    DocModelError,
    SchemaError, MissingCollectionBinding, NoIdentifierField, AmbiguousIdentifierField,
    DecodeError, MissingField, TypeMismatch,
    EncodeError, UnsupportedValue, MissingIdentifierValue,
    CompileError, UnknownField,
    RepositoryError, DuplicateKeyError,
)
from .config import (
    DocModelConfig, Environment, MongoConfig, MappingConfig, LoggingConfig,
    configure_logging, set_config, get_config, configure_from_file, configure_from_dict,
)
from .core import (
    Document, ValueKind, kind_of, to_value,
    DocumentConfig, IdField, StoredField, Int32, Int64, IDENTIFIER_KEY,
    FieldDescriptor, EntityDescriptor, describe, clear_descriptor_cache,
    encode, decode,
)
from .query import (
    Filter, Eq, Ne, Gt, Gte, Lt, Lte, In, Regex, And, Or,
    field, eq, ne, gt, gte, lt, lte, in_, regex, and_, or_,
    FilterCompiler, compile_filter,
)
from .persistence import (
    CollectionHandle, AsyncCollectionHandle,
    Repository, AsyncRepository,
    MemoryCollection, AsyncMemoryCollection, MongoCollection, AsyncMongoCollection,
    MongoConnection, AsyncMongoConnection,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "DocModelError",
    "SchemaError", "MissingCollectionBinding", "NoIdentifierField", "AmbiguousIdentifierField",
    "DecodeError", "MissingField", "TypeMismatch",
    "EncodeError", "UnsupportedValue", "MissingIdentifierValue",
    "CompileError", "UnknownField",
    "RepositoryError", "DuplicateKeyError",

    # Configuration
    "DocModelConfig", "Environment", "MongoConfig", "MappingConfig", "LoggingConfig",
    "configure_logging", "set_config", "get_config", "configure_from_file", "configure_from_dict",

    # Mapping core
    "Document", "ValueKind", "kind_of", "to_value",
    "DocumentConfig", "IdField", "StoredField", "Int32", "Int64", "IDENTIFIER_KEY",
    "FieldDescriptor", "EntityDescriptor", "describe", "clear_descriptor_cache",
    "encode", "decode",

    # Filters
    "Filter", "Eq", "Ne", "Gt", "Gte", "Lt", "Lte", "In", "Regex", "And", "Or",
    "field", "eq", "ne", "gt", "gte", "lt", "lte", "in_", "regex", "and_", "or_",
    "FilterCompiler", "compile_filter",

    # Persistence
    "CollectionHandle", "AsyncCollectionHandle",
    "Repository", "AsyncRepository",
    "MemoryCollection", "AsyncMemoryCollection", "MongoCollection", "AsyncMongoCollection",
    "MongoConnection", "AsyncMongoConnection",
]
