"""
Core Mapping Engine

Value model, entity markers, schema introspection, and the entity codec.
"""

from .values import Document, ValueKind, kind_of, to_value
from .entity import DocumentConfig, IdField, StoredField, Int32, Int64, IntWidth, IDENTIFIER_KEY
from .schema import FieldDescriptor, EntityDescriptor, describe, clear_descriptor_cache
from .codec import encode, decode, identifier_value

__all__ = [
    "Document", "ValueKind", "kind_of", "to_value",
    "DocumentConfig", "IdField", "StoredField", "Int32", "Int64", "IntWidth", "IDENTIFIER_KEY",
    "FieldDescriptor", "EntityDescriptor", "describe", "clear_descriptor_cache",
    "encode", "decode", "identifier_value",
]
