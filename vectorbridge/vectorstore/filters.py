"""Metadata filters and their Milvus expression form.

Filters are built from comparisons on metadata keys and combined with
``&``, ``|`` and ``~``::

    flt = metadata_key("year").is_greater_than(2020) & ~metadata_key("draft").is_equal_to(True)
    to_milvus_expression(flt)
    # '(metadata["year"] > 2020 and not(metadata["draft"] == true))'
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vectorbridge.constants import METADATA_FIELD_NAME
from vectorbridge.exceptions import ErrorCode, ValidationError


class Filter(BaseModel):
    """Base class for metadata filters."""

    model_config = ConfigDict(frozen=True)

    def __and__(self, other: "Filter") -> "And":
        return And(left=self, right=other)

    def __or__(self, other: "Filter") -> "Or":
        return Or(left=self, right=other)

    def __invert__(self) -> "Not":
        return Not(expression=self)


class Comparison(Filter):
    """Comparison of one metadata key against a scalar value."""

    key: str = Field(min_length=1)
    value: str | int | float | bool


class IsEqualTo(Comparison):
    """``key == value``"""


class IsNotEqualTo(Comparison):
    """``key != value``"""


class IsGreaterThan(Comparison):
    """``key > value``"""


class IsGreaterThanOrEqualTo(Comparison):
    """``key >= value``"""


class IsLessThan(Comparison):
    """``key < value``"""


class IsLessThanOrEqualTo(Comparison):
    """``key <= value``"""


class Membership(Filter):
    """Membership of one metadata key in a set of values."""

    key: str = Field(min_length=1)
    values: tuple[str | int | float | bool, ...]

    @field_validator("values")
    @classmethod
    def values_not_empty(
        cls, values: tuple[str | int | float | bool, ...]
    ) -> tuple[str | int | float | bool, ...]:
        if not values:
            raise ValueError("values cannot be empty")
        return values


class IsIn(Membership):
    """``key in [values]``"""


class IsNotIn(Membership):
    """``key not in [values]``"""


class And(Filter):
    left: Filter
    right: Filter


class Or(Filter):
    left: Filter
    right: Filter


class Not(Filter):
    expression: Filter


class MetadataKey:
    """Fluent builder for filters on a single metadata key."""

    def __init__(self, key: str) -> None:
        self.key = key

    def is_equal_to(self, value: Any) -> IsEqualTo:
        return IsEqualTo(key=self.key, value=value)

    def is_not_equal_to(self, value: Any) -> IsNotEqualTo:
        return IsNotEqualTo(key=self.key, value=value)

    def is_greater_than(self, value: Any) -> IsGreaterThan:
        return IsGreaterThan(key=self.key, value=value)

    def is_greater_than_or_equal_to(self, value: Any) -> IsGreaterThanOrEqualTo:
        return IsGreaterThanOrEqualTo(key=self.key, value=value)

    def is_less_than(self, value: Any) -> IsLessThan:
        return IsLessThan(key=self.key, value=value)

    def is_less_than_or_equal_to(self, value: Any) -> IsLessThanOrEqualTo:
        return IsLessThanOrEqualTo(key=self.key, value=value)

    def is_in(self, *values: Any) -> IsIn:
        return IsIn(key=self.key, values=tuple(values))

    def is_not_in(self, *values: Any) -> IsNotIn:
        return IsNotIn(key=self.key, values=tuple(values))


def metadata_key(key: str) -> MetadataKey:
    """Start building a filter on a metadata key."""
    return MetadataKey(key)


_OPERATORS: dict[type[Comparison], str] = {
    IsEqualTo: "==",
    IsNotEqualTo: "!=",
    IsGreaterThan: ">",
    IsGreaterThanOrEqualTo: ">=",
    IsLessThan: "<",
    IsLessThanOrEqualTo: "<=",
}


def _format_key(key: str) -> str:
    return f"{METADATA_FIELD_NAME}[{json.dumps(key, ensure_ascii=False)}]"


def _format_value(value: Any) -> str:
    # JSON literals match Milvus expression literals (quoted strings, true/false).
    return json.dumps(value, ensure_ascii=False)


def to_milvus_expression(flt: Filter) -> str:
    """Compile a metadata filter into a Milvus boolean expression.

    Args:
        flt: Filter to compile.

    Returns:
        Expression string usable as a search, query or delete filter.

    Raises:
        ValidationError: If the filter type is not supported.
    """
    if isinstance(flt, Comparison) and type(flt) in _OPERATORS:
        operator = _OPERATORS[type(flt)]
        return f"{_format_key(flt.key)} {operator} {_format_value(flt.value)}"

    if isinstance(flt, Membership):
        operator = "in" if isinstance(flt, IsIn) else "not in"
        values = ", ".join(_format_value(v) for v in flt.values)
        return f"{_format_key(flt.key)} {operator} [{values}]"

    if isinstance(flt, And):
        return f"({to_milvus_expression(flt.left)} and {to_milvus_expression(flt.right)})"

    if isinstance(flt, Or):
        return f"({to_milvus_expression(flt.left)} or {to_milvus_expression(flt.right)})"

    if isinstance(flt, Not):
        return f"not({to_milvus_expression(flt.expression)})"

    raise ValidationError(
        f"Unsupported filter type: {type(flt).__name__}",
        code=ErrorCode.INVALID_FILTER,
        details={"filter": repr(flt)},
    )
