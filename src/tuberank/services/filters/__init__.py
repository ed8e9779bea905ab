"""Structured metadata filter expressions and their SQL compiler."""

from .compiler import CompiledFilter, FilterCompiler
from .expressions import (
    FieldConstraint,
    FilterExpression,
    FilterOperator,
    LogicalExpression,
    LogicalOperator,
    parse_filter,
)

__all__ = [
    "CompiledFilter",
    "FieldConstraint",
    "FilterCompiler",
    "FilterExpression",
    "FilterOperator",
    "LogicalExpression",
    "LogicalOperator",
    "parse_filter",
]
