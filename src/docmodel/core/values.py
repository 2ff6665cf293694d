"""
Value Model - Storable Values

The currency between entities and documents. A stored value is one of a closed
set of kinds; Python's own types carry the tag, and ``kind_of`` reads it back.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from bson import ObjectId
from pydantic import BaseModel

from ..exceptions import UnsupportedValue

Document = Dict[str, Any]

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

class ValueKind(Enum):
    """Kinds of storable values"""
    NULL = "null"
    BOOL = "bool"
    INT64 = "int64"
    FLOAT64 = "float64"
    STRING = "string"
    OBJECT_ID = "objectId"
    LIST = "list"
    DOCUMENT = "document"

def kind_of(value: Any) -> ValueKind:
    """
    Classify an already-storable value.

    Raises:
        UnsupportedValue: if the value is not one of the storable kinds
    """
    if value is None:
        return ValueKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        if not INT64_MIN <= value <= INT64_MAX:
            raise UnsupportedValue(value)
        return ValueKind.INT64
    if isinstance(value, float):
        return ValueKind.FLOAT64
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, ObjectId):
        return ValueKind.OBJECT_ID
    if isinstance(value, list):
        return ValueKind.LIST
    if isinstance(value, dict):
        return ValueKind.DOCUMENT
    raise UnsupportedValue(value)

def fits_int32(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX

def to_value(obj: Any, path: Optional[str] = None) -> Any:
    """
    Convert a Python object into a storable value.

    Enums store their value, nested models become sub-documents keyed by field
    name (null fields omitted), and tuples and sets become lists.
    """
    if obj is None or isinstance(obj, (bool, str, float, ObjectId)):
        return obj
    if isinstance(obj, Enum):
        return to_value(obj.value, path)
    if isinstance(obj, int):
        if not INT64_MIN <= obj <= INT64_MAX:
            raise UnsupportedValue(obj, path)
        return int(obj)
    if isinstance(obj, BaseModel):
        document: Document = {}
        for name in type(obj).model_fields:
            value = getattr(obj, name)
            if value is not None:
                document[name] = to_value(value, _join(path, name))
        return document
    if isinstance(obj, Mapping):
        document = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise UnsupportedValue(key, path)
            document[key] = to_value(value, _join(path, key))
        return document
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_value(item, _join(path, str(index))) for index, item in enumerate(obj)]
    raise UnsupportedValue(obj, path)

def _join(path: Optional[str], key: str) -> str:
    return f"{path}.{key}" if path else key

__all__ = [
    "Document", "ValueKind", "kind_of", "to_value", "fits_int32",
    "INT32_MIN", "INT32_MAX", "INT64_MIN", "INT64_MAX",
]
