"""Read and write JSON documents along SCIM attribute paths.

Documents are plain JSON values as returned by :func:`json.loads`. Every
operation walks the document with the same recursion, and only differs in
what happens on intermediate nodes and on the targeted leaf::

    >>> doc = {"emails": [{"type": "work", "value": "bjensen@example.com"}]}
    >>> get_values('emails[type eq "work"].value', doc)
    ['bjensen@example.com']

Attribute names are matched case-insensitively, and the spelling of existing
keys is preserved when a document is updated. A leading core schema URN, as
in ``urn:ietf:params:scim:schemas:core:2.0:User:userName``, is ignored.
"""

import copy
from enum import Enum
from typing import Any

from .exceptions import InvalidValueException
from .exceptions import NoTargetException
from .path import Path
from .path import PathElement
from .utils import _find_key


class Operation(str, Enum):
    get = "get"
    remove = "remove"
    add = "add"
    replace = "replace"
    exists = "exists"

    @property
    def is_update(self) -> bool:
        return self in (Operation.add, Operation.replace)


_MISSING = object()

CORE_SCHEMA_PREFIX = "urn:ietf:params:scim:schemas:core:"


class _Traversal:
    """Walk a document along a path and perform one operation on the targets."""

    def __init__(self, operation: Operation, value: Any = None, core_schema: str | None = None):
        self.operation = operation
        self.value = value
        self.core_schema = core_schema
        self.values: list[Any] = []
        self.found = False

    def run(self, path: Path, node: dict[str, Any]) -> None:
        self._traverse(node, 0, path)

    def _traverse(self, node: dict[str, Any], index: int, path: Path) -> None:
        element = path[index] if len(path) else None
        if index >= len(path) - 1:
            self._visit_leaf(node, element)
            return

        child = self._visit_inner(node, path[index])
        if isinstance(child, list):
            for value in child:
                if isinstance(value, dict):
                    self._traverse(value, index + 1, path)
        elif isinstance(child, dict):
            self._traverse(child, index + 1, path)

    def _visit_inner(self, parent: dict[str, Any], element: PathElement) -> Any:
        key = _find_key(parent, element.attribute)
        node = parent[key] if key is not None else _MISSING

        if not self.operation.is_update:
            if isinstance(node, list) and element.value_filter is not None:
                return _filter_array(node, element.value_filter)
            return node

        if (node is not _MISSING and node is not None and not isinstance(node, dict | list)) or (
            (node is _MISSING or node is None) and element.value_filter is not None
        ):
            raise NoTargetException(
                path=str(element),
                detail=f"Attribute {element.attribute} does not have a multi-valued or complex value",
            )

        if node is _MISSING or node is None:
            node = {}
            parent[key if key is not None else element.attribute] = node
            return node

        if isinstance(node, list):
            if element.value_filter is not None:
                node = _filter_array(node, element.value_filter)
                if not node:
                    raise NoTargetException(
                        path=str(element),
                        detail=(
                            f"Attribute {element.attribute} does not have a value "
                            f"matching the filter {element.value_filter}"
                        ),
                    )
            elif not node:
                raise NoTargetException(
                    path=str(element),
                    detail=f"Attribute {element.attribute} does not have any value",
                )

        return node

    def _visit_leaf(self, parent: dict[str, Any], element: PathElement | None) -> None:
        if self.operation.is_update:
            self._update_leaf(parent, element)
            return

        if element is None:
            if self.operation == Operation.remove:
                raise NoTargetException(detail="The whole resource cannot be removed")
            self.found = True
            self.values.append(parent)
            return

        key = _find_key(parent, element.attribute)
        if key is None:
            return

        if self.operation == Operation.exists:
            self.found = True
            return

        node = parent[key]
        remove = self.operation == Operation.remove
        if isinstance(node, list):
            matched = node
            if element.value_filter is not None:
                matched = _filter_array(node, element.value_filter, remove_matching=remove)
            if matched:
                self.values.append(matched)
            if remove and (element.value_filter is None or not node):
                del parent[key]
            return

        self.values.append(node)
        if remove:
            del parent[key]

    def _update_leaf(self, parent: dict[str, Any], element: PathElement | None) -> None:
        if element is None:
            self._update(parent, None, _lift_core_namespace(self.value, self.core_schema))
            return

        key = _find_key(parent, element.attribute)
        # add and replace both merge into the array values matching the filter
        if element.value_filter is not None:
            node = parent.get(key) if key is not None else None
            matches = []
            if isinstance(node, list) and isinstance(self.value, dict):
                matches = [
                    item
                    for item in _filter_array(node, element.value_filter)
                    if isinstance(item, dict)
                ]
            if not matches:
                raise NoTargetException(
                    path=str(element),
                    detail=(
                        f"Attribute {element.attribute} does not have a value "
                        f"matching the filter {element.value_filter}"
                    ),
                )
            for match in matches:
                self._update(match, None, self.value)
            return

        self._update(parent, key if key is not None else element.attribute, self.value)

    def _update(self, parent: dict[str, Any], key: str | None, value: Any) -> None:
        # null and empty arrays are the same as an absent value
        if value is None or value == []:
            return

        node = parent if key is None else parent.get(key)
        if isinstance(node, dict) and isinstance(value, dict):
            for field, field_value in value.items():
                existing = _find_key(node, field)
                self._update(node, existing if existing is not None else field, field_value)
            return

        if key is None:
            raise InvalidValueException(
                detail="The value must be a JSON object when targeting the resource root"
            )

        if (
            isinstance(node, list)
            and isinstance(value, list)
            and self.operation == Operation.add
        ):
            for item in value:
                if item not in node:
                    node.append(copy.deepcopy(item))
            return

        parent[key] = copy.deepcopy(value)


def _filter_array(
    array: list[Any], value_filter: Any, remove_matching: bool = False
) -> list[Any]:
    """Select the values of an array matching a filter, optionally removing them."""
    from .evaluator import evaluate

    matching = [item for item in array if item is not None and evaluate(value_filter, item)]
    if remove_matching:
        array[:] = [item for item in array if not any(item is match for match in matching)]
    return matching


def _is_core_schema(urn: str, core_schema: str | None) -> bool:
    if core_schema is not None:
        return urn.lower() == core_schema.lower()
    return urn.lower().startswith(CORE_SCHEMA_PREFIX)


def _lift_core_namespace(value: Any, core_schema: str | None) -> Any:
    """Move the attributes given under the core schema URN to the root of a value."""
    if not isinstance(value, dict):
        return value

    lifted = {}
    for key, field_value in value.items():
        if _is_core_schema(key, core_schema) and isinstance(field_value, dict):
            lifted.update(field_value)
        else:
            lifted[key] = field_value
    return lifted


def strip_core_schema(path: Path, core_schema: str | None = None) -> Path:
    """Drop a leading core schema URN from a path.

    Core attributes live at the root of a resource, so
    ``urn:ietf:params:scim:schemas:core:2.0:User:userName`` addresses the same
    value as ``userName``. Without an explicit core schema, any URN of the
    :rfc:`RFC7643 <7643>` core namespace is dropped.
    """
    urn = path.schema_urn
    if urn is not None and _is_core_schema(urn, core_schema):
        return path[1:]
    return path


def _run(
    operation: Operation,
    path: "Path | str | None",
    node: dict[str, Any],
    value: Any = None,
    core_schema: str | None = None,
) -> _Traversal:
    if not isinstance(node, dict):
        raise TypeError(f"Expected a JSON object, got {type(node).__name__}")

    traversal = _Traversal(operation, value, core_schema)
    traversal.run(strip_core_schema(Path.from_string(path), core_schema), node)
    return traversal


def get_values(
    path: "Path | str", node: dict[str, Any], core_schema: str | None = None
) -> list[Any]:
    """Retrieve the values an attribute path points to.

    A value filter on an intermediate multi-valued attribute restricts the
    values that are walked into, and a value filter on the last attribute
    restricts the returned array values.

    :param path: The path to the attribute.
    :param node: The JSON object to read.
    :param core_schema: The core schema URN that may prefix the path.
    :returns: The matched values. Arrays are returned as a single value.
    """
    return _run(Operation.get, path, node, core_schema=core_schema).values


def find_matching_paths(
    path: "Path | str", node: dict[str, Any], core_schema: str | None = None
) -> list[Any]:
    """Retrieve the values of every attribute matching a path.

    This is the lookup used for filter evaluation and for immutability
    checks. Missing attributes are simply not matched.
    """
    return get_values(path, node, core_schema)


def add_value(
    path: "Path | str | None",
    node: dict[str, Any],
    value: Any,
    core_schema: str | None = None,
) -> None:
    """Add a value to a document, following the PATCH ``add`` semantics.

    Missing complex attributes are created, objects are merged field by
    field and arrays are extended with the values they do not already hold.
    When the last attribute carries a value filter, the value must be a JSON
    object and it is merged into every array value matching the filter. The
    other values of the array are kept.

    :raises NoTargetException: If the path goes through a simple value, or
        through a multi-valued attribute with no value matching its filter.
    """
    _run(Operation.add, path, node, value, core_schema)


def remove_values(
    path: "Path | str", node: dict[str, Any], core_schema: str | None = None
) -> list[Any]:
    """Remove the values an attribute path points to.

    With a value filter on the last attribute, only the matching values of
    the array are removed, and the attribute disappears once the array is
    empty.

    :returns: The removed values.
    """
    return _run(Operation.remove, path, node, core_schema=core_schema).values


def replace_value(
    path: "Path | str | None",
    node: dict[str, Any],
    value: Any,
    core_schema: str | None = None,
) -> None:
    """Replace a value in a document, following the PATCH ``replace`` semantics.

    Arrays are replaced as a whole, unless a value filter on the last
    attribute selects the array values to update.

    :raises NoTargetException: If the value filter matches no value.
    """
    _run(Operation.replace, path, node, value, core_schema)


def path_exists(
    path: "Path | str", node: dict[str, Any], core_schema: str | None = None
) -> bool:
    """Tell whether an attribute is present in a document, even with a null value."""
    return _run(Operation.exists, path, node, core_schema=core_schema).found
