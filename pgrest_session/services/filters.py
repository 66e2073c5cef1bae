"""
Horizontal filter expressions for PostgREST-style endpoints.

A filter renders as one query parameter, ``column=operator.value``; e.g.
``sid=eq.abc`` or ``expire=gte.1700000000``. Several filters on one
request are combined with AND by the endpoint.
"""

import operator
from dataclasses import dataclass
from typing import Any, Mapping, Tuple


_OPERATORS = {
    "eq": operator.eq,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


@dataclass(frozen=True)
class Filter:
    """A single ``column <op> value`` condition."""

    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")

    def as_param(self) -> Tuple[str, str]:
        """Render as a ``(column, "op.value")`` query pair."""
        return self.column, f"{self.op}.{self.value}"

    def matches(self, row: Mapping[str, Any]) -> bool:
        """Evaluate the condition against a row; missing columns never match."""
        if self.column not in row:
            return False
        try:
            return _OPERATORS[self.op](row[self.column], self.value)
        except TypeError:
            return False

    def __str__(self) -> str:
        column, expression = self.as_param()
        return f"{column}={expression}"


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)
