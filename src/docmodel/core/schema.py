"""
Schema Introspector - Storage Metadata for Entity Types

🔎 Built Once, Read Many:
``describe`` derives an ``EntityDescriptor`` from a pydantic model's declared
fields and configuration. Descriptors are immutable and cached process-wide,
keyed by the model class. A plain dict is the publication point: a racing
double build produces an equal descriptor and either write may win.
"""

import logging
from dataclasses import dataclass, field as dataclass_field
from typing import Annotated, Any, Dict, Optional, Tuple, Type, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from ..exceptions import (
    AmbiguousIdentifierField, MissingCollectionBinding, NoIdentifierField, SchemaError
)
from .entity import IDENTIFIER_KEY, IntWidth, is_identifier, stored_name_of

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class FieldDescriptor:
    """How one declared field is stored"""
    logical_name: str
    stored_name: str
    is_identifier: bool = False
    annotation: Any = None
    required: bool = True
    int_width: int = 64

@dataclass(frozen=True)
class EntityDescriptor:
    """How an entity type maps to a collection and its document fields"""
    entity_class: Type[BaseModel]
    collection_name: str
    fields: Tuple[FieldDescriptor, ...]
    _by_logical: Dict[str, FieldDescriptor] = dataclass_field(default_factory=dict, init=False, repr=False, compare=False)
    _stored_names: frozenset = dataclass_field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_by_logical", {f.logical_name: f for f in self.fields})
        object.__setattr__(self, "_stored_names", frozenset(f.stored_name for f in self.fields))

    @property
    def identifier(self) -> Optional[FieldDescriptor]:
        for field_descriptor in self.fields:
            if field_descriptor.is_identifier:
                return field_descriptor
        return None

    def require_identifier(self, operation: Optional[str] = None) -> FieldDescriptor:
        """Return the identifier field or raise ``NoIdentifierField``."""
        identifier = self.identifier
        if identifier is None:
            raise NoIdentifierField(self.entity_class, operation)
        return identifier

    def field(self, logical_name: str) -> Optional[FieldDescriptor]:
        return self._by_logical.get(logical_name)

    def is_stored_name(self, name: str) -> bool:
        return name in self._stored_names

    def stored_name(self, name: str) -> str:
        """Resolve a logical name; names the type does not declare pass through."""
        field_descriptor = self._by_logical.get(name)
        return field_descriptor.stored_name if field_descriptor else name

_DESCRIPTORS: Dict[type, EntityDescriptor] = {}

def describe(entity_class: Type[BaseModel]) -> EntityDescriptor:
    """
    Get the storage descriptor for an entity class.

    Args:
        entity_class: A pydantic model class bound to a collection

    Returns:
        The cached EntityDescriptor for the class

    Raises:
        MissingCollectionBinding: the class declares no collection
        AmbiguousIdentifierField: more than one field is marked as identifier
    """
    descriptor = _DESCRIPTORS.get(entity_class)
    if descriptor is None:
        descriptor = _build_descriptor(entity_class)
        _DESCRIPTORS[entity_class] = descriptor
        logger.debug(
            f"Described {entity_class.__name__} -> collection '{descriptor.collection_name}' "
            f"({len(descriptor.fields)} fields)"
        )
    return descriptor

def clear_descriptor_cache() -> None:
    """Drop all cached descriptors (tests only)."""
    _DESCRIPTORS.clear()

def _build_descriptor(entity_class: Type[BaseModel]) -> EntityDescriptor:
    if not (isinstance(entity_class, type) and issubclass(entity_class, BaseModel)):
        raise TypeError(f"Expected a pydantic model class, got {entity_class!r}")

    collection_name = entity_class.model_config.get("collection")
    if not collection_name:
        raise MissingCollectionBinding(entity_class)

    fields = []
    identifiers = []
    seen: Dict[str, str] = {}
    for name, field_info in entity_class.model_fields.items():
        descriptor = _describe_field(name, field_info)
        if descriptor.is_identifier:
            identifiers.append(name)
        if descriptor.stored_name in seen:
            raise SchemaError(
                f"Fields '{seen[descriptor.stored_name]}' and '{name}' of {entity_class.__name__} "
                f"are both stored as '{descriptor.stored_name}'"
            )
        seen[descriptor.stored_name] = name
        fields.append(descriptor)

    if len(identifiers) > 1:
        raise AmbiguousIdentifierField(entity_class, identifiers)

    return EntityDescriptor(
        entity_class=entity_class,
        collection_name=str(collection_name),
        fields=tuple(fields),
    )

def _describe_field(name: str, field_info: FieldInfo) -> FieldDescriptor:
    identifier = is_identifier(field_info)
    if identifier:
        stored_name = IDENTIFIER_KEY
    else:
        stored_name = stored_name_of(field_info) or name

    return FieldDescriptor(
        logical_name=name,
        stored_name=stored_name,
        is_identifier=identifier,
        annotation=field_info.annotation,
        required=field_info.is_required(),
        int_width=_int_width(field_info),
    )

def _int_width(field_info: FieldInfo) -> int:
    for item in field_info.metadata:
        if isinstance(item, IntWidth):
            return item.bits
    width = _find_width(field_info.annotation)
    return width or 64

def _find_width(annotation: Any) -> Optional[int]:
    # Optional[Annotated[int, Int32]] keeps the marker one level down
    if get_origin(annotation) is Annotated:
        for item in get_args(annotation)[1:]:
            if isinstance(item, IntWidth):
                return item.bits
    for arg in get_args(annotation):
        width = _find_width(arg)
        if width:
            return width
    return None

__all__ = [
    "FieldDescriptor", "EntityDescriptor", "describe", "clear_descriptor_cache",
]
