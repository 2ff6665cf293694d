"""
Filter Expressions - Composable Query Model

🧩 Immutable Expression Trees:
Filters name fields by their logical (declared) names and hold no reference to
an entity type until they are compiled. Combining two filters with ``&`` or
``|`` always builds a two-child node, so chains nest rather than flatten:

    (field("active") == True) & (field("color") == "Green") & (field("age") > 40)
    # And((And((Eq(...), Eq(...))), Gt(...)))
"""

from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import Any, ClassVar, Iterable, Optional, Tuple

class QueryOperator(Enum):
    """Query operators understood by the document store"""
    NOT_EQUALS = "$ne"
    GREATER_THAN = "$gt"
    GREATER_THAN_OR_EQUAL = "$gte"
    LESS_THAN = "$lt"
    LESS_THAN_OR_EQUAL = "$lte"
    IN = "$in"
    REGEX = "$regex"
    OPTIONS = "$options"
    AND = "$and"
    OR = "$or"

class Filter:
    """Base class for all filter expressions"""
    __slots__ = ()

    def and_(self, other: "Filter") -> "And":
        return And((self, _check_filter(other)))

    def or_(self, other: "Filter") -> "Or":
        return Or((self, _check_filter(other)))

    def __and__(self, other: "Filter") -> "And":
        return self.and_(other)

    def __or__(self, other: "Filter") -> "Or":
        return self.or_(other)

@dataclass(frozen=True)
class Comparison(Filter):
    """A single field compared against a value"""
    field: str
    value: Any
    operator: ClassVar[Optional[QueryOperator]] = None

@dataclass(frozen=True)
class Eq(Comparison):
    """Equality; compiles without an operator key"""
    operator: ClassVar[Optional[QueryOperator]] = None

@dataclass(frozen=True)
class Ne(Comparison):
    operator: ClassVar[Optional[QueryOperator]] = QueryOperator.NOT_EQUALS

@dataclass(frozen=True)
class Gt(Comparison):
    operator: ClassVar[Optional[QueryOperator]] = QueryOperator.GREATER_THAN

@dataclass(frozen=True)
class Gte(Comparison):
    operator: ClassVar[Optional[QueryOperator]] = QueryOperator.GREATER_THAN_OR_EQUAL

@dataclass(frozen=True)
class Lt(Comparison):
    operator: ClassVar[Optional[QueryOperator]] = QueryOperator.LESS_THAN

@dataclass(frozen=True)
class Lte(Comparison):
    operator: ClassVar[Optional[QueryOperator]] = QueryOperator.LESS_THAN_OR_EQUAL

@dataclass(frozen=True)
class In(Filter):
    """Membership in a fixed set of values"""
    field: str
    values: Tuple[Any, ...]

    def __post_init__(self):
        if isinstance(self.values, (str, bytes)):
            raise TypeError("In() expects a collection of values, not a string")
        object.__setattr__(self, "values", tuple(self.values))

@dataclass(frozen=True)
class Regex(Filter):
    """Pattern match; case-insensitive unless options say otherwise"""
    field: str
    pattern: str
    options: str = "i"

@dataclass(frozen=True)
class And(Filter):
    filters: Tuple[Filter, ...]

    def __post_init__(self):
        object.__setattr__(self, "filters", tuple(_check_filter(f) for f in self.filters))

@dataclass(frozen=True)
class Or(Filter):
    filters: Tuple[Filter, ...]

    def __post_init__(self):
        object.__setattr__(self, "filters", tuple(_check_filter(f) for f in self.filters))

def _check_filter(value: Any) -> Filter:
    if not isinstance(value, Filter):
        raise TypeError(f"Expected a Filter, got {type(value).__name__}")
    return value

class FieldRef:
    """
    A field reference with operator overloads.

    ``field("age") > 40`` builds ``Gt("age", 40)``. Comparison operators return
    filters, not booleans, so FieldRef is deliberately unhashable.
    """
    __hash__ = None

    def __init__(self, name: str):
        if not name:
            raise ValueError("Field name must be a non-empty string")
        self.name = name

    def __repr__(self) -> str:
        return f"FieldRef({self.name!r})"

    def __eq__(self, value: Any) -> Eq:  # type: ignore[override]
        return Eq(self.name, value)

    def __ne__(self, value: Any) -> Ne:  # type: ignore[override]
        return Ne(self.name, value)

    def __gt__(self, value: Any) -> Gt:
        return Gt(self.name, value)

    def __ge__(self, value: Any) -> Gte:
        return Gte(self.name, value)

    def __lt__(self, value: Any) -> Lt:
        return Lt(self.name, value)

    def __le__(self, value: Any) -> Lte:
        return Lte(self.name, value)

    def in_(self, values: Iterable[Any]) -> In:
        return In(self.name, values)

    def regex(self, pattern: str, options: str = "i") -> Regex:
        return Regex(self.name, pattern, options)

# Convenience functions
def field(name: str) -> FieldRef:
    """Create a field reference"""
    return FieldRef(name)

def eq(field: str, value: Any) -> Eq:
    return Eq(field, value)

def ne(field: str, value: Any) -> Ne:
    return Ne(field, value)

def gt(field: str, value: Any) -> Gt:
    return Gt(field, value)

def gte(field: str, value: Any) -> Gte:
    return Gte(field, value)

def lt(field: str, value: Any) -> Lt:
    return Lt(field, value)

def lte(field: str, value: Any) -> Lte:
    return Lte(field, value)

def in_(field: str, values: Iterable[Any]) -> In:
    return In(field, values)

def regex(field: str, pattern: str, options: str = "i") -> Regex:
    return Regex(field, pattern, options)

def and_(*filters: Filter) -> Filter:
    """Combine filters left to right with ``&``; nesting is preserved"""
    if not filters:
        raise ValueError("and_() needs at least one filter")
    return reduce(lambda left, right: left & right, filters)

def or_(*filters: Filter) -> Filter:
    """Combine filters left to right with ``|``; nesting is preserved"""
    if not filters:
        raise ValueError("or_() needs at least one filter")
    return reduce(lambda left, right: left | right, filters)

__all__ = [
    "QueryOperator", "Filter", "Comparison",
    "Eq", "Ne", "Gt", "Gte", "Lt", "Lte", "In", "Regex", "And", "Or",
    "FieldRef", "field", "eq", "ne", "gt", "gte", "lt", "lte", "in_", "regex", "and_", "or_",
]
