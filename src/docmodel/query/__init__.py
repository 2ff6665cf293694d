"""
Query Layer - Filter Expressions and Compilation
"""

from .filters import (
    QueryOperator, Filter, Comparison,
    Eq, Ne, Gt, Gte, Lt, Lte, In, Regex, And, Or,
    FieldRef, field, eq, ne, gt, gte, lt, lte, in_, regex, and_, or_,
)
from .compiler import FilterCompiler, compile_filter

__all__ = [
    "QueryOperator", "Filter", "Comparison",
    "Eq", "Ne", "Gt", "Gte", "Lt", "Lte", "In", "Regex", "And", "Or",
    "FieldRef", "field", "eq", "ne", "gt", "gte", "lt", "lte", "in_", "regex", "and_", "or_",
    "FilterCompiler", "compile_filter",
]
