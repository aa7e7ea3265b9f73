"""SCIM filter expressions, as defined in :rfc:`RFC7644 §3.4.2.2 <7644#section-3.4.2.2>`.

Filters are immutable trees tagged by :class:`FilterType`. They are built
either by :func:`~scim2_checker.parser.parse_filter` or with the factory
functions of this module::

    or_(eq("emails.type", "work"), pr("title"))
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .path import Path

JsonScalar = str | int | float | bool | None


class FilterType(str, Enum):
    equal = "eq"
    not_equal = "ne"
    contains = "co"
    starts_with = "sw"
    ends_with = "ew"
    greater_than = "gt"
    greater_or_equal = "ge"
    less_than = "lt"
    less_or_equal = "le"
    present = "pr"
    and_ = "and"
    or_ = "or"
    not_ = "not"
    complex_value = "complex"

    @property
    def is_comparison(self) -> bool:
        return self in _COMPARISON_TYPES

    @property
    def is_substring(self) -> bool:
        return self in (
            FilterType.contains,
            FilterType.starts_with,
            FilterType.ends_with,
        )

    @property
    def is_ordering(self) -> bool:
        return self in (
            FilterType.greater_than,
            FilterType.greater_or_equal,
            FilterType.less_than,
            FilterType.less_or_equal,
        )


_COMPARISON_TYPES = frozenset(
    {
        FilterType.equal,
        FilterType.not_equal,
        FilterType.contains,
        FilterType.starts_with,
        FilterType.ends_with,
        FilterType.greater_than,
        FilterType.greater_or_equal,
        FilterType.less_than,
        FilterType.less_or_equal,
    }
)


@dataclass(frozen=True)
class Filter:
    """Base class of every filter node."""

    @property
    def filter_type(self) -> FilterType:
        raise NotImplementedError

    @classmethod
    def from_string(cls, filter_string: str) -> "Filter":
        """Parse a filter string such as ``userName eq "bjensen"``.

        :raises InvalidFilterException: If the filter is malformed.
        """
        from .parser import parse_filter

        return parse_filter(filter_string)


@dataclass(frozen=True)
class ComparisonFilter(Filter):
    """Compare the values of an attribute with a JSON literal."""

    type: FilterType
    attribute_path: Path
    comparison_value: JsonScalar

    def __post_init__(self) -> None:
        if not self.type.is_comparison:
            raise ValueError(f"{self.type.value!r} is not a comparison operator")

    @property
    def filter_type(self) -> FilterType:
        return self.type

    def __str__(self) -> str:
        return f"{self.attribute_path} {self.type.value} {json.dumps(self.comparison_value)}"


@dataclass(frozen=True)
class PresentFilter(Filter):
    """Match when the attribute has a non-empty value."""

    attribute_path: Path

    @property
    def filter_type(self) -> FilterType:
        return FilterType.present

    def __str__(self) -> str:
        return f"{self.attribute_path} pr"


@dataclass(frozen=True)
class CombiningFilter(Filter):
    """Logical ``and`` or ``or`` of two or more filters."""

    type: FilterType
    filters: tuple[Filter, ...]

    def __post_init__(self) -> None:
        if self.type not in (FilterType.and_, FilterType.or_):
            raise ValueError(f"{self.type.value!r} is not a combining operator")
        if len(self.filters) < 2:
            raise ValueError("Combining filters need at least two components")

    @property
    def filter_type(self) -> FilterType:
        return self.type

    def __str__(self) -> str:
        return "(" + f" {self.type.value} ".join(map(str, self.filters)) + ")"


@dataclass(frozen=True)
class NotFilter(Filter):
    inverted_filter: Filter

    @property
    def filter_type(self) -> FilterType:
        return FilterType.not_

    def __str__(self) -> str:
        inner = str(self.inverted_filter)
        if not inner.startswith("("):
            inner = f"({inner})"
        return f"not {inner}"


@dataclass(frozen=True)
class ComplexValueFilter(Filter):
    """Match when a value of a multi-valued complex attribute satisfies a sub-filter."""

    attribute_path: Path
    value_filter: Filter

    @property
    def filter_type(self) -> FilterType:
        return FilterType.complex_value

    def __str__(self) -> str:
        return f"{self.attribute_path}[{self.value_filter}]"


def _as_path(path: "str | Path") -> Path:
    return Path.from_string(path)


def _comparison(type_: FilterType, path: "str | Path", value: Any) -> ComparisonFilter:
    return ComparisonFilter(type_, _as_path(path), value)


def eq(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.equal, path, value)


def ne(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.not_equal, path, value)


def co(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.contains, path, value)


def sw(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.starts_with, path, value)


def ew(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.ends_with, path, value)


def gt(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.greater_than, path, value)


def ge(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.greater_or_equal, path, value)


def lt(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.less_than, path, value)


def le(path: "str | Path", value: JsonScalar) -> ComparisonFilter:
    return _comparison(FilterType.less_or_equal, path, value)


def pr(path: "str | Path") -> PresentFilter:
    return PresentFilter(_as_path(path))


def and_(*filters: Filter) -> CombiningFilter:
    return CombiningFilter(FilterType.and_, tuple(filters))


def or_(*filters: Filter) -> CombiningFilter:
    return CombiningFilter(FilterType.or_, tuple(filters))


def not_(filter: Filter) -> NotFilter:
    return NotFilter(filter)


def has_complex_value(path: "str | Path", value_filter: Filter) -> ComplexValueFilter:
    return ComplexValueFilter(_as_path(path), value_filter)
