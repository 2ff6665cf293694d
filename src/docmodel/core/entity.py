"""
Entity Markers - Declaring How a Model Is Stored

Entities are plain pydantic models. Storage metadata is declared, not inferred:

    class User(BaseModel):
        model_config = DocumentConfig(collection="users")

        id: str = IdField()
        name: str = StoredField("first_name")
        age: int

The collection binding lives in ``model_config``; the identifier and storage
names live in each field's ``json_schema_extra``.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ConfigDict, Field
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

IDENTIFIER_KEY = "_id"

PRIMARY_KEY_FLAG = "primary_key"
STORED_NAME_KEY = "stored_name"

class DocumentConfig(ConfigDict, total=False):
    """
    Configuration for document-mapped models.

    Pydantic keeps unknown config keys, so the collection binding rides along
    with the regular model configuration and is inherited by subclasses.
    """
    collection: str

@dataclass(frozen=True)
class IntWidth:
    """Declared integer width, used as ``Annotated[int, Int32]``"""
    bits: int

Int32 = IntWidth(32)
Int64 = IntWidth(64)

def _with_extra(extra: Dict[str, Any], kwargs: Dict[str, Any]) -> Dict[str, Any]:
    existing = kwargs.pop("json_schema_extra", None) or {}
    if not isinstance(existing, dict):
        raise TypeError("json_schema_extra must be a dict for document fields")
    return {**existing, **extra}

def IdField(default: Any = PydanticUndefined, **kwargs: Any) -> Any:
    """Mark a field as the record identifier, stored under ``_id``."""
    extra = _with_extra({PRIMARY_KEY_FLAG: True}, kwargs)
    return Field(default, json_schema_extra=extra, **kwargs)

def StoredField(stored_name: str, default: Any = PydanticUndefined, **kwargs: Any) -> Any:
    """Store a field under ``stored_name`` instead of its declared name."""
    if not stored_name:
        raise ValueError("stored_name must be a non-empty string")
    extra = _with_extra({STORED_NAME_KEY: stored_name}, kwargs)
    return Field(default, json_schema_extra=extra, **kwargs)

def is_identifier(field_info: FieldInfo) -> bool:
    extra = field_info.json_schema_extra
    return isinstance(extra, dict) and bool(extra.get(PRIMARY_KEY_FLAG))

def stored_name_of(field_info: FieldInfo) -> Optional[str]:
    extra = field_info.json_schema_extra
    if isinstance(extra, dict):
        name = extra.get(STORED_NAME_KEY)
        if name:
            return str(name)
    return None

__all__ = [
    "DocumentConfig", "IdField", "StoredField", "IntWidth", "Int32", "Int64",
    "IDENTIFIER_KEY", "is_identifier", "stored_name_of",
]
