"""Evaluation of SCIM filters against JSON nodes.

:rfc:`RFC7643 §2.5 <7643#section-2.5>` states that unassigned attributes,
the null value and empty arrays are equivalent in state, which drives the
handling of ``null`` comparisons and of the ``pr`` operator.
"""

from typing import TYPE_CHECKING
from typing import Any

from .exceptions import InvalidFilterException
from .filters import CombiningFilter
from .filters import ComparisonFilter
from .filters import ComplexValueFilter
from .filters import Filter
from .filters import FilterType
from .filters import NotFilter
from .filters import PresentFilter
from .json_utils import find_matching_paths
from .path import Path
from .utils import is_json_number
from .utils import parse_datetime

if TYPE_CHECKING:
    from .schema import Attribute
    from .schema import ResourceType

_VALUE_PATH = Path.root().attribute("value")


class FilterEvaluator:
    """Tell whether a JSON node matches a filter.

    Without schema knowledge every string comparison is case-insensitive
    and date-times are only recognized when both operands parse as such.
    """

    def evaluate(self, filter: Filter, node: Any) -> bool:
        """Evaluate a filter against a JSON node.

        :param filter: The filter to evaluate.
        :param node: Any JSON value. Objects are resolved through the filter
            attribute paths, arrays are treated as the list of candidates.
        :raises InvalidFilterException: If an ordering filter targets a
            boolean value.
        """
        if isinstance(filter, CombiningFilter):
            if filter.type == FilterType.and_:
                return all(self.evaluate(component, node) for component in filter.filters)
            return any(self.evaluate(component, node) for component in filter.filters)

        if isinstance(filter, NotFilter):
            return not self.evaluate(filter.inverted_filter, node)

        if isinstance(filter, PresentFilter):
            return any(
                not _is_empty(candidate)
                for candidate in self._candidates(filter.attribute_path, node)
            )

        if isinstance(filter, ComplexValueFilter):
            return self._evaluate_complex(filter, node)

        if isinstance(filter, ComparisonFilter):
            return self._evaluate_comparison(filter, node)

        raise InvalidFilterException(detail=f"Unsupported filter: {filter}")

    def get_attribute_definition(self, path: Path) -> "Attribute | None":
        """Find the definition of the attribute a filter refers to.

        The base evaluator has no schema knowledge.
        """
        return None

    def _evaluate_complex(self, filter: ComplexValueFilter, node: Any) -> bool:
        for candidate in self._candidates(filter.attribute_path, node):
            if isinstance(candidate, list):
                if any(self.evaluate(filter.value_filter, value) for value in candidate):
                    return True
            elif self.evaluate(filter.value_filter, candidate):
                return True
        return False

    def _evaluate_comparison(self, filter: ComparisonFilter, node: Any) -> bool:
        candidates = self._candidates(filter.attribute_path, node)
        attribute = self.get_attribute_definition(filter.attribute_path)
        value = filter.comparison_value

        if filter.type in (FilterType.equal, FilterType.not_equal):
            if value is None and all(_is_empty(candidate) for candidate in candidates):
                matched = True
            else:
                matched = any(
                    compare_values(candidate, value, attribute) == 0
                    for candidate in candidates
                )
            return matched if filter.type == FilterType.equal else not matched

        if filter.type.is_substring:
            return any(
                _substring_match(filter.type, candidate, value, attribute)
                for candidate in candidates
            )

        for candidate in candidates:
            if isinstance(candidate, bool):
                raise InvalidFilterException(
                    detail=(
                        f"Filter operator '{filter.type.value}' may not compare "
                        "boolean attribute values"
                    )
                )
            comparison = compare_values(candidate, value, attribute)
            if comparison is not None and _ORDERINGS[filter.type](comparison):
                return True
        return False

    def _candidates(self, path: Path, node: Any) -> list[Any]:
        if isinstance(node, list):
            return node

        if isinstance(node, dict):
            candidates: list[Any] = []
            for value in find_matching_paths(path, node):
                if isinstance(value, list):
                    candidates.extend(value)
                else:
                    candidates.append(value)
            return candidates

        # "value" designates the element itself in filters on primitive arrays,
        # e.g. emails[value eq "bjensen@example.com"]
        if node is not None and path == _VALUE_PATH:
            return [node]

        return []


class SchemaAwareFilterEvaluator(FilterEvaluator):
    """Filter evaluator resolving case-exactness and types from a resource type."""

    def __init__(self, resource_type: "ResourceType"):
        self.resource_type = resource_type

    def get_attribute_definition(self, path: Path) -> "Attribute | None":
        return self.resource_type.get_attribute_definition(path)


_ORDERINGS = {
    FilterType.greater_than: lambda comparison: comparison > 0,
    FilterType.greater_or_equal: lambda comparison: comparison >= 0,
    FilterType.less_than: lambda comparison: comparison < 0,
    FilterType.less_or_equal: lambda comparison: comparison <= 0,
}

_DEFAULT_EVALUATOR = FilterEvaluator()


def evaluate(filter: Filter, node: Any) -> bool:
    """Evaluate a filter against a JSON node without schema knowledge."""
    return _DEFAULT_EVALUATOR.evaluate(filter, node)


def _is_empty(node: Any) -> bool:
    if isinstance(node, list):
        return all(_is_empty(item) for item in node)
    return node is None


def _substring_match(
    filter_type: FilterType, node: Any, value: Any, attribute: "Attribute | None"
) -> bool:
    if not (isinstance(node, str) and isinstance(value, str)):
        return _json_equals(node, value)

    if attribute is None or not attribute.case_exact:
        node, value = node.lower(), value.lower()

    if filter_type == FilterType.contains:
        return value in node
    if filter_type == FilterType.starts_with:
        return node.startswith(value)
    return node.endswith(value)


def _json_equals(a: Any, b: Any) -> bool:
    # True == 1 in Python, not in JSON
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    return a == b


def _sign(value: Any) -> int:
    return (value > 0) - (value < 0)


def compare_values(a: Any, b: Any, attribute: "Attribute | None" = None) -> int | None:
    """Compare two JSON values.

    Strings are compared as date-times when the attribute is a dateTime or
    when both strings parse as date-times, lexically otherwise, ignoring case
    unless the attribute is case-exact. Numbers compare numerically, booleans
    only by equality.

    :param a: The first value.
    :param b: The second value.
    :param attribute: The definition of the attribute holding the values, if known.
    :returns: A negative number, zero or a positive number when ``a`` is
        lower, equal or greater than ``b``, or None when the values cannot be
        compared.
    """
    if isinstance(a, str) and isinstance(b, str):
        is_datetime = attribute is not None and attribute.type == "dateTime"
        try:
            first, second = parse_datetime(a), parse_datetime(b)
        except ValueError:
            if is_datetime:
                return None
        else:
            if first.tzinfo is None or second.tzinfo is None:
                first, second = first.replace(tzinfo=None), second.replace(tzinfo=None)
            return _sign((first - second).total_seconds())

        if attribute is None or not attribute.case_exact:
            a, b = a.lower(), b.lower()
        return (a > b) - (a < b)

    if is_json_number(a) and is_json_number(b):
        return _sign(a - b)

    if isinstance(a, bool) and isinstance(b, bool):
        return 0 if a == b else None

    return None

