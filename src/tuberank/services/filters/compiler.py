"""
Compiler from filter expressions to DuckDB SQL predicates.

The predicate addresses the JSON ``metadata`` column of the vector store.
Values are always bound as ``?`` parameters; field names are validated
identifiers and are embedded into the JSON path.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .expressions import (
    FieldConstraint,
    FilterExpression,
    FilterOperator,
    LogicalExpression,
    LogicalOperator,
    is_explicit_leaf,
    parse_filter,
)
import logging

logger = logging.getLogger(__name__)

_COMPARISONS = {
    FilterOperator.GT: ">",
    FilterOperator.GTE: ">=",
    FilterOperator.LT: "<",
    FilterOperator.LTE: "<=",
}


@dataclass(frozen=True)
class CompiledFilter:
    """A SQL predicate with its positional parameters."""

    sql: str = ""
    params: list[Any] = field(default_factory=list)
    applied_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.sql

    def where_clause(self) -> str:
        return f"WHERE {self.sql}" if self.sql else ""


def _as_text(value: Any) -> str:
    # Matches json_extract_string output for JSON scalars.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class FilterCompiler:
    """Translates filter expressions into DuckDB predicates."""

    def __init__(self, metadata_column: str = "metadata"):
        self.metadata_column = metadata_column

    def compile(self, filter_input: Mapping[str, Any] | FilterExpression | None) -> CompiledFilter:
        """Compile a filter mapping or expression tree.

        Args:
            filter_input: Filter DSL mapping, parsed expression, or None

        Returns:
            CompiledFilter; empty when there is no constraint

        Raises:
            ValidationError: if the filter is malformed
        """
        if filter_input is None:
            return CompiledFilter()

        if isinstance(filter_input, Mapping):
            expression = parse_filter(filter_input)
            applied = 1 if is_explicit_leaf(filter_input) else len(filter_input)
        else:
            expression = filter_input
            if isinstance(expression, LogicalExpression) and expression.op is LogicalOperator.AND:
                applied = len(expression.operands)
            else:
                applied = 1

        if expression is None:
            return CompiledFilter()

        params: list[Any] = []
        sql = self._compile_node(expression, params)
        logger.debug(f"Compiled filter with {applied} top-level constraints: {sql}")
        return CompiledFilter(sql=sql, params=params, applied_count=applied)

    def _compile_node(self, node: FilterExpression, params: list[Any]) -> str:
        if isinstance(node, LogicalExpression):
            return self._compile_logical(node, params)
        return self._compile_constraint(node, params)

    def _compile_logical(self, node: LogicalExpression, params: list[Any]) -> str:
        if node.op is LogicalOperator.NOT:
            return f"NOT ({self._compile_node(node.operands[0], params)})"

        connective = " AND " if node.op is LogicalOperator.AND else " OR "
        parts = [f"({self._compile_node(operand, params)})" for operand in node.operands]
        return f"({connective.join(parts)})"

    def _field_text(self, name: str) -> str:
        return f"json_extract_string({self.metadata_column}, '$.{name}')"

    def _field_number(self, name: str) -> str:
        return f"TRY_CAST({self._field_text(name)} AS DOUBLE)"

    def _compile_constraint(self, node: FieldConstraint, params: list[Any]) -> str:
        op = node.op

        if node.value is None and op in (FilterOperator.EQ, FilterOperator.NE):
            # JSON null and a missing field both extract as SQL NULL
            negation = "NOT " if op is FilterOperator.NE else ""
            return f"{self._field_text(node.field)} IS {negation}NULL"

        if op is FilterOperator.EQ:
            params.append(_as_text(node.value))
            return f"{self._field_text(node.field)} = ?"

        if op is FilterOperator.NE:
            params.append(_as_text(node.value))
            return f"{self._field_text(node.field)} <> ?"

        if op in _COMPARISONS:
            params.append(float(node.value))
            return f"{self._field_number(node.field)} {_COMPARISONS[op]} ?"

        if op is FilterOperator.BETWEEN:
            low, high = node.value
            params.extend([float(low), float(high)])
            return f"{self._field_number(node.field)} BETWEEN ? AND ?"

        if op is FilterOperator.IN:
            return self._compile_in(node, params)

        if op is FilterOperator.CONTAINS:
            pattern = f"%{_escape_like(node.value)}%"
        elif op is FilterOperator.STARTS_WITH:
            pattern = f"{_escape_like(node.value)}%"
        else:
            pattern = f"%{_escape_like(node.value)}"
        params.append(pattern)
        return f"{self._field_text(node.field)} LIKE ? ESCAPE '\\'"

    def _compile_in(self, node: FieldConstraint, params: list[Any]) -> str:
        """Scalar fields match any candidate; array fields match on overlap."""
        column = self._field_text(node.field)
        candidates = [value for value in node.value if value is not None]

        params.append([_as_text(value) for value in candidates])
        path = f"'$.{node.field}'"
        alternatives = [
            f"CASE WHEN json_type({self.metadata_column}, {path}) = 'ARRAY' "
            f"THEN COALESCE(list_has_any(TRY_CAST(json_extract({self.metadata_column}, {path}) AS VARCHAR[]), "
            f"?::VARCHAR[]), false) ELSE false END"
        ]
        for value in candidates:
            params.append(_as_text(value))
            alternatives.append(f"{column} = ?")
        if len(candidates) < len(node.value):
            alternatives.append(f"{column} IS NULL")
        return f"({' OR '.join(alternatives)})"
