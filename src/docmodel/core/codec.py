"""
Entity Codec - Entity <-> Document Conversion

🔁 Sparse, Lossless Mapping:
``encode`` writes each declared field under its stored name and never writes a
null-valued key, so a partial entity replaces a document without clobbering
unrelated keys with nulls. ``decode`` reads each field back from its stored
name, checks the stored kind against the declared type, and only then hands
the values to the model constructor.

Numeric rules, applied at every depth (list elements, mapping values, and the
fields of nested models included):
- a stored integer decodes into a float field (widening)
- a stored float never decodes into an integer field (narrowing)
- a stored integer outside a 32-bit field's range is rejected
- booleans and integers are never interchangeable
"""

import types
from collections.abc import Mapping as AbcMapping
from enum import Enum
from typing import Annotated, Any, Optional, Tuple, Type, TypeVar, Union, get_args, get_origin

from bson import ObjectId
from pydantic import BaseModel, ValidationError

from ..exceptions import MissingField, TypeMismatch, UnsupportedValue
from .entity import IntWidth
from .schema import EntityDescriptor, describe
from .values import Document, ValueKind, fits_int32, kind_of, to_value

EntityType = TypeVar("EntityType", bound=BaseModel)

# Stored kinds each scalar annotation accepts
_ACCEPTED_KINDS = {
    bool: (ValueKind.BOOL,),
    int: (ValueKind.INT64,),
    float: (ValueKind.INT64, ValueKind.FLOAT64),
    str: (ValueKind.STRING,),
}

_SEQUENCES = (list, tuple, set, frozenset)

def encode(entity: BaseModel, descriptor: Optional[EntityDescriptor] = None) -> Document:
    """
    Convert an entity into a document.

    Args:
        entity: The entity instance
        descriptor: Descriptor for the entity's class (looked up when omitted)

    Returns:
        The document, keys in field declaration order, null fields omitted
    """
    descriptor = descriptor or describe(type(entity))
    document: Document = {}
    for field_descriptor in descriptor.fields:
        value = getattr(entity, field_descriptor.logical_name, None)
        if value is None:
            continue
        if field_descriptor.is_identifier and isinstance(value, str):
            # caller-supplied identifiers are stored verbatim, never as ObjectId
            document[field_descriptor.stored_name] = value
        else:
            document[field_descriptor.stored_name] = to_value(value, field_descriptor.logical_name)
    return document

def decode(
    document: Document,
    descriptor: EntityDescriptor,
    target_type: Optional[Type[EntityType]] = None,
) -> EntityType:
    """
    Convert a stored document into an entity.

    Keys the type does not declare are ignored. A missing key leaves a field
    with a default at that default and a nullable field without one at None.

    Raises:
        MissingField: a non-nullable field without a default has no key in the document
        TypeMismatch: a stored value is incompatible with the declared type
    """
    target_type = target_type or descriptor.entity_class
    params = {}
    for field_descriptor in descriptor.fields:
        name = field_descriptor.logical_name
        if field_descriptor.stored_name not in document:
            if field_descriptor.required:
                if not _unwrap(field_descriptor.annotation)[1]:
                    raise MissingField(name, field_descriptor.stored_name)
                params[name] = None
            continue

        value = document[field_descriptor.stored_name]
        if field_descriptor.is_identifier and isinstance(value, ObjectId):
            if _unwrap(field_descriptor.annotation)[0] is not ObjectId:
                value = str(value)
        params[name] = _check_value(field_descriptor.annotation, value, name, field_descriptor.int_width)

    try:
        return target_type.model_validate(params)
    except ValidationError as e:
        error = e.errors()[0]
        location = error.get("loc") or ("?",)
        field_name = str(location[0])
        field_descriptor = descriptor.field(field_name)
        expected = field_descriptor.annotation if field_descriptor else "a valid value"
        actual = type(params.get(field_name)).__name__
        raise TypeMismatch(field_name, expected, actual, detail=error.get("msg")) from e

def identifier_value(entity: BaseModel, descriptor: EntityDescriptor) -> Any:
    """Current value of the entity's identifier field, or None."""
    identifier = descriptor.identifier
    if identifier is None:
        return None
    return getattr(entity, identifier.logical_name, None)

def _check_value(annotation: Any, value: Any, path: str, int_width: int = 64) -> Any:
    """
    Check a stored value against a declared annotation, descending into
    containers and nested models. Returns the value to hand to pydantic.
    """
    int_width = _width_of(annotation) or int_width
    expected, nullable = _unwrap(annotation)
    actual = type(value).__name__

    if value is None:
        if nullable or expected is Any:
            return None
        raise TypeMismatch(path, _expected_name(expected, int_width), "null")

    if expected in _ACCEPTED_KINDS:
        kind = _kind(value, path, expected, int_width)
        if kind not in _ACCEPTED_KINDS[expected]:
            raise TypeMismatch(path, _expected_name(expected, int_width), actual)
        if expected is int and int_width == 32 and not fits_int32(value):
            raise TypeMismatch(path, "int32", actual, detail=f"{value} does not fit in 32 bits")
        return float(value) if expected is float else value

    origin = get_origin(expected)
    args = get_args(expected)
    if origin in _SEQUENCES:
        if _kind(value, path, expected, int_width) is not ValueKind.LIST:
            raise TypeMismatch(path, origin.__name__, actual)
        return [
            _check_value(_element_type(origin, args, index), item, f"{path}.{index}")
            for index, item in enumerate(value)
        ]
    if origin is dict or origin is AbcMapping:
        if _kind(value, path, expected, int_width) is not ValueKind.DOCUMENT:
            raise TypeMismatch(path, "dict", actual)
        value_type = args[1] if len(args) == 2 else Any
        return {key: _check_value(value_type, item, f"{path}.{key}") for key, item in value.items()}
    if isinstance(expected, type) and issubclass(expected, BaseModel):
        if _kind(value, path, expected, int_width) is not ValueKind.DOCUMENT:
            raise TypeMismatch(path, expected.__name__, actual)
        return _check_model(expected, value, path)
    if isinstance(expected, type) and issubclass(expected, Enum):
        return value
    # ObjectId, Any, unions of several types: pydantic decides
    return value

def _check_model(model: Type[BaseModel], value: Document, path: str) -> Document:
    # nested models are stored by field name
    checked = dict(value)
    for name, field_info in model.model_fields.items():
        if name not in value:
            if field_info.is_required() and _unwrap(field_info.annotation)[1]:
                checked[name] = None
            continue
        width = 64
        for item in field_info.metadata:
            if isinstance(item, IntWidth):
                width = item.bits
        checked[name] = _check_value(field_info.annotation, value[name], f"{path}.{name}", width)
    return checked

def _kind(value: Any, path: str, expected: Any, int_width: int) -> ValueKind:
    try:
        return kind_of(value)
    except UnsupportedValue as e:
        raise TypeMismatch(path, _expected_name(expected, int_width), type(value).__name__) from e

def _element_type(origin: Any, args: Tuple[Any, ...], index: int) -> Any:
    if not args:
        return Any
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        return args[index] if index < len(args) else Any
    return args[0]

def _expected_name(expected: Any, int_width: int) -> str:
    if expected is int:
        return f"int{int_width}"
    return getattr(expected, "__name__", str(expected))

def _width_of(annotation: Any) -> Optional[int]:
    # Optional[Annotated[int, Int32]] keeps the marker one level down
    origin = get_origin(annotation)
    if origin is Annotated:
        for item in get_args(annotation)[1:]:
            if isinstance(item, IntWidth):
                return item.bits
    elif origin is Union or origin is types.UnionType:
        for arg in get_args(annotation):
            width = _width_of(arg)
            if width:
                return width
    return None

def _unwrap(annotation: Any) -> Tuple[Any, bool]:
    """Strip Annotated and Optional; report whether None is allowed."""
    nullable = False
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation = get_args(annotation)[0]
        elif origin is Union or origin is types.UnionType:
            members = [arg for arg in get_args(annotation) if arg is not type(None)]
            nullable = nullable or len(members) < len(get_args(annotation))
            if len(members) != 1:
                return annotation, nullable
            annotation = members[0]
        else:
            return annotation, nullable

__all__ = ["encode", "decode", "identifier_value"]
