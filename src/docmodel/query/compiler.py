"""
Filter Compiler - Filter Expressions to Query Documents

Compiles a filter tree into the store's query document, resolving logical field
names to stored names leaf-first through the entity descriptor.

Names the descriptor does not declare pass through unchanged so callers can
query synthetic or projected keys. In strict mode such names raise
``UnknownField`` instead; a name that is already a declared stored name (for
example ``_id``) is accepted in both modes.
"""

import logging
from functools import singledispatchmethod
from typing import Any

from ..core.schema import EntityDescriptor
from ..core.values import Document, to_value
from ..exceptions import CompileError, UnknownField
from .filters import And, Comparison, Filter, In, Or, QueryOperator, Regex

logger = logging.getLogger(__name__)

class FilterCompiler:
    """Compiles filters against one entity descriptor"""

    def __init__(self, descriptor: EntityDescriptor, strict: bool = False):
        self.descriptor = descriptor
        self.strict = strict

    def compile(self, expression: Filter) -> Document:
        return self._compile(expression)

    @singledispatchmethod
    def _compile(self, expression: Any) -> Document:
        raise CompileError(f"Cannot compile {type(expression).__name__} as a filter")

    @_compile.register
    def _(self, expression: Comparison) -> Document:
        stored = self._resolve(expression.field)
        value = to_value(expression.value, expression.field)
        if expression.operator is None:
            return {stored: value}
        return {stored: {expression.operator.value: value}}

    @_compile.register
    def _(self, expression: In) -> Document:
        stored = self._resolve(expression.field)
        values = [to_value(item, expression.field) for item in expression.values]
        return {stored: {QueryOperator.IN.value: values}}

    @_compile.register
    def _(self, expression: Regex) -> Document:
        stored = self._resolve(expression.field)
        return {stored: {
            QueryOperator.REGEX.value: expression.pattern,
            QueryOperator.OPTIONS.value: expression.options,
        }}

    @_compile.register
    def _(self, expression: And) -> Document:
        return {QueryOperator.AND.value: [self._compile(child) for child in expression.filters]}

    @_compile.register
    def _(self, expression: Or) -> Document:
        return {QueryOperator.OR.value: [self._compile(child) for child in expression.filters]}

    def _resolve(self, name: str) -> str:
        field_descriptor = self.descriptor.field(name)
        if field_descriptor is not None:
            return field_descriptor.stored_name
        if self.descriptor.is_stored_name(name):
            return name
        if self.strict:
            raise UnknownField(name, self.descriptor.entity_class)
        logger.debug(
            f"Field '{name}' is not declared on {self.descriptor.entity_class.__name__}; "
            f"querying it verbatim"
        )
        return name

def compile_filter(expression: Filter, descriptor: EntityDescriptor, strict: bool = False) -> Document:
    """
    Compile a filter into a query document.

    Args:
        expression: The filter tree
        descriptor: Descriptor of the entity type being queried
        strict: Reject field names the type does not declare

    Returns:
        The query document
    """
    return FilterCompiler(descriptor, strict=strict).compile(expression)

__all__ = ["FilterCompiler", "compile_filter"]
