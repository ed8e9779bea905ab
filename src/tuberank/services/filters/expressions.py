"""
Filter expression tree and the parser for the Mongo-style filter DSL.

Accepted input shapes::

    {"channelId": "abc"}                               # equality
    {"viewCount": {"$gte": 1000, "$lt": 50000}}        # operators on one field
    {"$and": [{...}, {...}]}, {"$or": [...]}, {"$not": {...}}
    {"field": "viewCount", "op": "$gte", "value": 1000}  # explicit leaf

Several keys in one mapping are combined with AND.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Any, Union

from tuberank.utils.errors import ValidationError

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_EXPLICIT_LEAF_KEYS = {"field", "op", "value"}


class FilterOperator(str, Enum):
    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    BETWEEN = "$between"
    CONTAINS = "$contains"
    STARTS_WITH = "$startsWith"
    ENDS_WITH = "$endsWith"

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC_OPERATORS

    @property
    def is_string(self) -> bool:
        return self in _STRING_OPERATORS


_NUMERIC_OPERATORS = frozenset({
    FilterOperator.GT, FilterOperator.GTE, FilterOperator.LT, FilterOperator.LTE, FilterOperator.BETWEEN,
})
_STRING_OPERATORS = frozenset({
    FilterOperator.CONTAINS, FilterOperator.STARTS_WITH, FilterOperator.ENDS_WITH,
})


class LogicalOperator(str, Enum):
    AND = "$and"
    OR = "$or"
    NOT = "$not"


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class FieldConstraint:
    """A single ``field <op> value`` test against item metadata."""

    field: str
    op: FilterOperator
    value: Any

    def __post_init__(self):
        if not isinstance(self.field, str) or not FIELD_NAME_PATTERN.match(self.field):
            raise ValidationError(
                f"Invalid filter field name: {self.field!r}",
                suggestions=["Field names may contain letters, digits and underscores only"],
            )

        if self.op is FilterOperator.BETWEEN:
            if not isinstance(self.value, (list, tuple)) or len(self.value) != 2:
                raise ValidationError(f"$between on '{self.field}' requires exactly two bounds")
            if not all(_is_number(bound) for bound in self.value):
                raise ValidationError(f"$between bounds on '{self.field}' must be numeric")
        elif self.op is FilterOperator.IN:
            if not isinstance(self.value, (list, tuple)) or len(self.value) == 0:
                raise ValidationError(f"$in on '{self.field}' requires a non-empty list")
        elif self.op.is_numeric:
            if not _is_number(self.value):
                raise ValidationError(f"{self.op.value} on '{self.field}' requires a numeric value")
        elif self.op.is_string:
            if not isinstance(self.value, str):
                raise ValidationError(f"{self.op.value} on '{self.field}' requires a string value")


@dataclass(frozen=True)
class LogicalExpression:
    """AND / OR over several sub-expressions, or NOT over exactly one."""

    op: LogicalOperator
    operands: tuple["FilterExpression", ...]

    def __post_init__(self):
        if not self.operands:
            raise ValidationError(f"{self.op.value} requires at least one sub-expression")
        if self.op is LogicalOperator.NOT and len(self.operands) != 1:
            raise ValidationError("$not takes exactly one sub-expression")


FilterExpression = Union[FieldConstraint, LogicalExpression]


def _parse_operator(field: str, op: Any) -> FilterOperator:
    try:
        return FilterOperator(op)
    except ValueError:
        raise ValidationError(
            f"Unknown filter operator {op!r} on field '{field}'",
            suggestions=[f"Supported operators: {', '.join(o.value for o in FilterOperator)}"],
        ) from None


def _parse_required(node: Any) -> FilterExpression:
    if not isinstance(node, Mapping):
        raise ValidationError(f"Filter sub-expression must be a mapping, got {type(node).__name__}")
    expression = parse_filter(node)
    if expression is None:
        raise ValidationError("Filter sub-expression must not be empty")
    return expression


def _parse_logical(key: str, value: Any) -> LogicalExpression:
    op = LogicalOperator(key)
    if op is LogicalOperator.NOT:
        return LogicalExpression(op, (_parse_required(value),))

    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError(f"{key} requires a non-empty list of sub-filters")
    return LogicalExpression(op, tuple(_parse_required(sub) for sub in value))


def _parse_field(field: str, value: Any) -> FilterExpression:
    if isinstance(value, Mapping):
        if not value:
            raise ValidationError(f"Operator mapping for '{field}' must not be empty")
        constraints = tuple(
            FieldConstraint(field, _parse_operator(field, op), operand)
            for op, operand in value.items()
        )
        if len(constraints) == 1:
            return constraints[0]
        return LogicalExpression(LogicalOperator.AND, constraints)

    return FieldConstraint(field, FilterOperator.EQ, value)


def is_explicit_leaf(mapping: Mapping[str, Any]) -> bool:
    return set(mapping.keys()) == _EXPLICIT_LEAF_KEYS and isinstance(mapping.get("op"), str)


def parse_filter(mapping: Mapping[str, Any] | None) -> FilterExpression | None:
    """Parse a filter mapping into an expression tree.

    Returns None when the mapping is absent or empty (no constraint).

    Raises:
        ValidationError: on unknown operators, malformed bounds or field names
    """
    if mapping is None:
        return None
    if not isinstance(mapping, Mapping):
        raise ValidationError(f"Filter must be a mapping, got {type(mapping).__name__}")
    if not mapping:
        return None

    if is_explicit_leaf(mapping):
        return FieldConstraint(
            mapping["field"], _parse_operator(mapping["field"], mapping["op"]), mapping["value"]
        )

    parts: list[FilterExpression] = []
    for key, value in mapping.items():
        if isinstance(key, str) and key.startswith("$"):
            if key not in {op.value for op in LogicalOperator}:
                raise ValidationError(f"Unknown logical operator {key!r}")
            parts.append(_parse_logical(key, value))
        else:
            parts.append(_parse_field(key, value))

    if len(parts) == 1:
        return parts[0]
    return LogicalExpression(LogicalOperator.AND, tuple(parts))
