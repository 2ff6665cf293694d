"""
docmodel Exceptions - Error Taxonomy

🚨 One Error Kind Per Failure:
Every facade operation either returns a fully-typed result (or absence) or
raises exactly one of the exceptions below. Schema and decode errors are never
recovered internally; they propagate to the caller of the operation.
"""

from typing import Any, Optional


class DocModelError(Exception):
    """Base exception for all docmodel errors"""
    pass

# Schema introspection
class SchemaError(DocModelError):
    """Raised when an entity type cannot be mapped to a collection"""
    pass

class MissingCollectionBinding(SchemaError):
    """Raised when an entity type declares no collection name"""

    def __init__(self, entity_class: type):
        self.entity_class = entity_class
        super().__init__(
            f"Entity class {entity_class.__name__} has no collection binding; "
            f"set model_config = DocumentConfig(collection=...)"
        )

class NoIdentifierField(SchemaError):
    """Raised when an identifier-dependent operation targets a type without an identifier"""

    def __init__(self, entity_class: type, operation: Optional[str] = None):
        self.entity_class = entity_class
        self.operation = operation
        suffix = f" (required by {operation})" if operation else ""
        super().__init__(f"Entity class {entity_class.__name__} declares no identifier field{suffix}")

class AmbiguousIdentifierField(SchemaError):
    """Raised when more than one field is marked as the identifier"""

    def __init__(self, entity_class: type, field_names):
        self.entity_class = entity_class
        self.field_names = tuple(field_names)
        super().__init__(
            f"Entity class {entity_class.__name__} declares more than one identifier field: "
            f"{', '.join(self.field_names)}"
        )

# Decoding
class DecodeError(DocModelError):
    """Raised when a stored document cannot be turned back into an entity"""
    pass

class MissingField(DecodeError):
    """Raised when a required field has no matching key in the document"""

    def __init__(self, field_name: str, stored_name: Optional[str] = None):
        self.field_name = field_name
        self.stored_name = stored_name or field_name
        super().__init__(f"Required field '{field_name}' missing from document (key '{self.stored_name}')")

class TypeMismatch(DecodeError):
    """Raised when a stored value kind is incompatible with the declared field type"""

    def __init__(self, field_name: str, expected: Any, actual: Any, detail: Optional[str] = None):
        self.field_name = field_name
        self.expected = expected
        self.actual = actual
        message = f"Field '{field_name}' expects {expected}, got {actual}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

# Encoding
class EncodeError(DocModelError):
    """Raised when an entity cannot be turned into a document"""
    pass

class UnsupportedValue(EncodeError):
    """Raised when a value has no representation in the value model"""

    def __init__(self, value: Any, path: Optional[str] = None):
        self.value = value
        self.path = path
        where = f" at '{path}'" if path else ""
        super().__init__(f"Cannot store value of type {type(value).__name__}{where}")

class MissingIdentifierValue(EncodeError):
    """Raised when an entity is written without an identifier value"""

    def __init__(self, entity_class: type, field_name: str):
        self.entity_class = entity_class
        self.field_name = field_name
        super().__init__(
            f"{entity_class.__name__}.{field_name} is empty; identifiers must be supplied by the caller"
        )

# Filter compilation
class CompileError(DocModelError):
    """Raised when a filter expression cannot be compiled"""
    pass

class UnknownField(CompileError):
    """Raised in strict mode when a filter names a field the type does not declare"""

    def __init__(self, field_name: str, entity_class: type):
        self.field_name = field_name
        self.entity_class = entity_class
        super().__init__(f"Unknown field '{field_name}' for entity class {entity_class.__name__}")

# Backends
class RepositoryError(DocModelError):
    """Base exception for collection backend failures"""
    pass

class DuplicateKeyError(RepositoryError):
    """Raised when a document with the same _id already exists"""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Duplicate key for _id: {key!r}")

# Export main components
__all__ = [
    "DocModelError",
    "SchemaError", "MissingCollectionBinding", "NoIdentifierField", "AmbiguousIdentifierField",
    "DecodeError", "MissingField", "TypeMismatch",
    "EncodeError", "UnsupportedValue", "MissingIdentifierValue",
    "CompileError", "UnknownField",
    "RepositoryError", "DuplicateKeyError",
]
