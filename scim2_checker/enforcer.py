"""Check SCIM resources and PATCH requests against a resource type.

The :class:`SchemaEnforcer` does not stop at the first violation. Every issue
found is collected in a :class:`Results` object, so a caller can report all
the problems of a request at once::

    enforcer = SchemaEnforcer(resource_type)
    results = enforcer.check_create(document)
    results.raise_for_issues()

Only malformed inputs, such as a filter that cannot be evaluated, raise
exceptions directly.
"""

import copy
import logging
from collections.abc import Iterable
from collections.abc import Iterator
from enum import Enum
from typing import Any

from .annotations import Mutability
from .evaluator import evaluate
from .exceptions import InvalidFilterException
from .exceptions import InvalidPathException
from .exceptions import InvalidSyntaxException
from .exceptions import MutabilityException
from .exceptions import NoTargetException
from .filters import CombiningFilter
from .filters import ComparisonFilter
from .filters import ComplexValueFilter
from .filters import Filter
from .filters import NotFilter
from .filters import PresentFilter
from .json_utils import find_matching_paths
from .json_utils import path_exists
from .patch import PatchOperation
from .path import Path
from .schema import SCHEMAS_ATTRIBUTE
from .schema import Attribute
from .schema import ResourceType
from .utils import _find_key
from .utils import check_base64
from .utils import check_uri
from .utils import is_json_number
from .utils import is_urn
from .utils import parse_datetime

logger = logging.getLogger(__name__)

_MISSING = object()


class Option(str, Enum):
    allow_undefined_attributes = "allowUndefinedAttributes"
    """Do not report nor remove attributes the schemas do not define."""

    allow_undefined_sub_attributes = "allowUndefinedSubAttributes"
    """Do not report sub-attributes the schemas do not define."""


class Results:
    """Issues found while checking a resource or a request."""

    def __init__(self) -> None:
        self._syntax_issues: list[str] = []
        self._mutability_issues: list[str] = []
        self._path_issues: list[str] = []
        self._filter_issues: list[str] = []

    @property
    def syntax_issues(self) -> tuple[str, ...]:
        """Invalid values, missing required values and undefined attributes."""
        return tuple(self._syntax_issues)

    @property
    def mutability_issues(self) -> tuple[str, ...]:
        """Modifications of read-only or immutable attributes."""
        return tuple(self._mutability_issues)

    @property
    def path_issues(self) -> tuple[str, ...]:
        """PATCH operation paths referencing undefined attributes."""
        return tuple(self._path_issues)

    @property
    def filter_issues(self) -> tuple[str, ...]:
        """Filters referencing undefined attributes."""
        return tuple(self._filter_issues)

    @property
    def has_issues(self) -> bool:
        return bool(
            self._syntax_issues
            or self._mutability_issues
            or self._path_issues
            or self._filter_issues
        )

    def raise_for_issues(self) -> None:
        """Raise an exception describing the issues, if there are some.

        Categories are examined in order: syntax, mutability, path and
        filter. The first one holding issues is raised, with all its issues
        joined in the detail message.

        :raises InvalidSyntaxException: For syntax issues.
        :raises MutabilityException: For mutability issues.
        :raises InvalidPathException: For path issues.
        :raises InvalidFilterException: For filter issues.
        """
        if self._syntax_issues:
            raise InvalidSyntaxException(detail=", ".join(self._syntax_issues))
        if self._mutability_issues:
            raise MutabilityException(detail=", ".join(self._mutability_issues))
        if self._path_issues:
            raise InvalidPathException(detail=", ".join(self._path_issues))
        if self._filter_issues:
            raise InvalidFilterException(detail=", ".join(self._filter_issues))

    def __repr__(self) -> str:
        return (
            f"Results(syntax_issues={self._syntax_issues!r}, "
            f"mutability_issues={self._mutability_issues!r}, "
            f"path_issues={self._path_issues!r}, "
            f"filter_issues={self._filter_issues!r})"
        )


class SchemaEnforcer:
    """Check resources and PATCH operations against the schemas of a resource type.

    Documents are never modified: they are copied before being checked.

    :param resource_type: The resource type holding the core and extension schemas.
    :param options: The :class:`Option` to enable.
    """

    def __init__(self, resource_type: ResourceType, options: Iterable[Option] = ()):
        self.resource_type = resource_type
        self._enabled_options = frozenset(options)

    @property
    def enabled_options(self) -> frozenset[Option]:
        return self._enabled_options

    def enable(self, option: Option) -> "SchemaEnforcer":
        """Build a new enforcer with an option enabled.

        Enforcers are never modified once built, so they can be shared
        between threads.
        """
        return SchemaEnforcer(self.resource_type, self._enabled_options | {option})

    def disable(self, option: Option) -> "SchemaEnforcer":
        """Build a new enforcer with an option disabled."""
        return SchemaEnforcer(self.resource_type, self._enabled_options - {option})

    def check_create(self, document: dict[str, Any]) -> Results:
        """Check a resource about to be created.

        :param document: The resource as sent by the client. Read-only
            attributes are reported, so they should be removed beforehand
            with :meth:`remove_read_only_attributes`.
        """
        results = Results()
        self._check_resource("", copy.deepcopy(document), results, None, False)
        return results

    def check_replace(
        self, document: dict[str, Any], current: dict[str, Any] | None = None
    ) -> Results:
        """Check a resource replacing an existing one, as in a PUT request.

        :param document: The replacement resource.
        :param current: The resource being replaced, used to detect changes of
            immutable attributes.
        """
        results = Results()
        current_copy = copy.deepcopy(current) if current is not None else None
        self._check_resource("", copy.deepcopy(document), results, current_copy, True)
        return results

    def check_modify(
        self,
        operations: Iterable[PatchOperation],
        current: dict[str, Any] | None = None,
    ) -> Results:
        """Check the operations of a PATCH request.

        Each operation is checked on its own. When the current resource is
        given, the operations are then applied in sequence on a copy of it,
        and the outcome is checked as a whole resource.

        :param operations: The PATCH operations, in request order.
        :param current: The resource being modified.
        :raises SCIMException: If applying an operation fails for another
            reason than a missing target.
        """
        current_copy = copy.deepcopy(current) if current is not None else None
        applied = (
            self.remove_read_only_attributes(current) if current is not None else None
        )
        results = Results()

        for index, operation in enumerate(operations):
            prefix = f"Patch op[{index}]: "
            path = operation.path
            if path is not None:
                path = self.resource_type.normalize_path(path)
            value_filter = path.value_filter if path is not None else None
            attribute = None
            if path is not None and not path.is_root:
                attribute = self.resource_type.get_attribute_definition(path)
                if attribute is None:
                    self._add_message_for_undefined_attribute(
                        path, prefix, results._path_issues
                    )
                    continue

            if value_filter is not None and attribute is not None:
                if not attribute.multi_valued:
                    results._path_issues.append(
                        f"{prefix}Attribute {path[0]} in path {path} must not "
                        "have a value selection filter because it is not multi-valued"
                    )
                self._check_value_filter(path.without_filters(), value_filter, results)

            if operation.op == PatchOperation.Op.remove:
                if attribute is not None:
                    self._check_attribute_mutability(
                        prefix, _MISSING, path, attribute, results, current_copy, False, False, False
                    )
                    if value_filter is None:
                        self._check_attribute_required(prefix, path, attribute, results)
            else:
                is_replace = operation.op == PatchOperation.Op.replace_
                value = copy.deepcopy(operation.value)
                if attribute is None:
                    if path is not None and path.schema_urn is not None:
                        value = {path.schema_urn: value}
                    self._check_partial_resource(
                        prefix, value, results, current_copy, is_replace, not is_replace
                    )
                else:
                    self._check_attribute_mutability(
                        prefix, value, path, attribute, results, current_copy,
                        is_replace, not is_replace, False,
                    )
                    if value_filter is not None:
                        self._check_attribute_value(
                            prefix, value, path, attribute, results, current_copy,
                            is_replace, not is_replace,
                        )
                    else:
                        self._check_attribute_values(
                            prefix, value, path, attribute, results, current_copy,
                            is_replace, not is_replace,
                        )

            if applied is not None:
                try:
                    operation.apply(applied, self.resource_type.schema_.id)
                except NoTargetException as exc:
                    # a missing target is an operational error, not a schema one
                    logger.debug("Ignoring patch op[%d] with no target: %s", index, exc)

        if applied is not None:
            self._check_resource(
                "Applying patch ops results in an invalid resource: ",
                applied,
                results,
                current_copy,
                False,
            )

        return results

    def check_search(self, filter: "Filter | str") -> Results:
        """Check that a search filter only references defined attributes.

        :raises InvalidFilterException: If the filter cannot be parsed.
        """
        results = Results()
        if isinstance(filter, str):
            filter = Filter.from_string(filter)

        if {
            Option.allow_undefined_attributes,
            Option.allow_undefined_sub_attributes,
        } <= self._enabled_options:
            return results

        for attribute_path in _filter_attribute_paths(filter):
            if self.resource_type.get_attribute_definition(attribute_path) is None:
                self._add_message_for_undefined_attribute(
                    attribute_path, "", results._filter_issues
                )
        return results

    def remove_read_only_attributes(self, document: dict[str, Any]) -> dict[str, Any]:
        """Build a copy of a document without its read-only attributes."""
        document = copy.deepcopy(document)
        for extension in self.resource_type.schema_extensions:
            key = _find_key(document, extension.schema_.id)
            if key is not None and isinstance(document[key], dict):
                _remove_read_only_attributes(extension.schema_.attributes, document[key])

        _remove_read_only_attributes(
            self.resource_type.core_and_common_attributes, document
        )
        return document

    def _add_message_for_undefined_attribute(
        self, path: Path, prefix: str, messages: list[str]
    ) -> None:
        path = self.resource_type.normalize_path(path)
        offset = 1 if path.schema_urn is not None else 0
        if len(path) > offset + 1 and (
            self.resource_type.get_attribute_definition(path.sub_path(offset + 1))
            is not None
        ):
            if Option.allow_undefined_sub_attributes not in self._enabled_options:
                messages.append(
                    f"{prefix}Sub-attribute {path[offset + 1]} in path {path} is undefined"
                )
        elif Option.allow_undefined_attributes not in self._enabled_options:
            messages.append(
                f"{prefix}Attribute {path[offset]} in path {path} is undefined"
            )

    def _check_value_filter(
        self, parent_path: Path, value_filter: Filter, results: Results
    ) -> None:
        """Check that the attributes of a value filter are sub-attributes of the filtered attribute."""
        if Option.allow_undefined_sub_attributes in self._enabled_options:
            return

        parent = self.resource_type.get_attribute_definition(parent_path)
        for attribute_path in _filter_attribute_paths(value_filter):
            # simple multi-valued attributes use "value" to reference their values
            if (
                attribute_path[0].attribute.lower() == "value"
                and parent is not None
                and parent.multi_valued
                and parent.type != Attribute.Type.complex
            ):
                continue

            full_path = parent_path.attribute_path(attribute_path)
            if self.resource_type.get_attribute_definition(full_path) is None:
                results._filter_issues.append(
                    f"Sub-attribute {attribute_path[0]} in value filter for path "
                    f"{parent_path} is undefined"
                )

    def _check_partial_resource(
        self,
        prefix: str,
        node: dict[str, Any],
        results: Results,
        current: dict[str, Any] | None,
        is_partial_replace: bool,
        is_partial_add: bool,
    ) -> None:
        core_schema = self.resource_type.schema_.id
        for key in [key for key in node if is_urn(key)]:
            extension_node = node.pop(key)
            if not isinstance(extension_node, dict):
                results._syntax_issues.append(
                    f"{prefix}Extended attributes namespace {key} must be a JSON object"
                )
                continue

            # core attributes may be given under the core schema urn
            if key.lower() == core_schema.lower():
                self._check_object_node(
                    prefix, Path.root(), self.resource_type.core_and_common_attributes,
                    extension_node, results, current,
                    is_partial_replace, is_partial_add, False,
                )
                continue

            extension = self.resource_type.get_schema_extension(key)
            if extension is not None:
                self._check_object_node(
                    prefix, Path.root(key), extension.schema_.attributes,
                    extension_node, results, current,
                    is_partial_replace, is_partial_add, False,
                )
            elif Option.allow_undefined_attributes not in self._enabled_options:
                results._syntax_issues.append(
                    f"{prefix}Undefined extended attributes namespace {key}"
                )

        self._check_object_node(
            prefix, Path.root(), self.resource_type.core_and_common_attributes,
            node, results, current, is_partial_replace, is_partial_add, False,
        )

    def _check_resource(
        self,
        prefix: str,
        node: dict[str, Any],
        results: Results,
        current: dict[str, Any] | None,
        is_replace: bool,
    ) -> None:
        core_schema = self.resource_type.schema_
        schemas_key = _find_key(node, SCHEMAS_ATTRIBUTE.name)
        schemas = node.get(schemas_key) if schemas_key is not None else None
        if isinstance(schemas, list):
            core_found = False
            for schema in schemas:
                # invalid values are reported with the schemas attribute values
                if not isinstance(schema, str):
                    continue

                key = _find_key(node, schema)
                extension_node = node.pop(key) if key is not None else {}
                if not isinstance(extension_node, dict):
                    results._syntax_issues.append(
                        f"{prefix}Extended attributes namespace {schema} must be a JSON object"
                    )
                    continue

                if schema == core_schema.id:
                    core_found = True
                    continue

                extension = self.resource_type.get_schema_extension(schema)
                if extension is None:
                    continue

                self._check_object_node(
                    prefix, Path.root(schema), extension.schema_.attributes,
                    extension_node, results, current, False, False, is_replace,
                )

            if not core_found:
                results._syntax_issues.append(
                    f"{prefix}Value for attribute schemas must contain schema URI "
                    f"{core_schema.id} because it is the core schema for this resource type"
                )

            for extension in self.resource_type.required_extensions:
                if extension.id not in schemas:
                    results._syntax_issues.append(
                        f"{prefix}Value for attribute schemas must contain schema URI "
                        f"{extension.id} because it is a required schema extension "
                        "for this resource type"
                    )

        for key in [key for key in node if is_urn(key)]:
            results._syntax_issues.append(
                f"{prefix}Extended attributes namespace {key} must be included "
                "in the schemas attribute"
            )
            del node[key]

        self._check_object_node(
            prefix, Path.root(), self.resource_type.core_and_common_attributes,
            node, results, current, False, False, is_replace,
        )

    def _check_object_node(
        self,
        prefix: str,
        parent_path: Path,
        attributes: Iterable[Attribute],
        node: dict[str, Any],
        results: Results,
        current: dict[str, Any] | None,
        is_partial_replace: bool,
        is_partial_add: bool,
        is_replace: bool,
    ) -> None:
        """Check the attributes of a JSON object, removing them once checked.

        Whatever remains in the object afterwards is undefined.
        """
        for attribute in attributes:
            key = _find_key(node, attribute.name)
            value = node.pop(key) if key is not None else _MISSING
            path = parent_path.attribute(attribute.name)

            # absent, null and empty arrays are the same
            if value is _MISSING or value is None or value == []:
                if not is_partial_add and not is_partial_replace:
                    self._check_attribute_required(prefix, path, attribute, results)

            if value is not _MISSING:
                self._check_attribute_mutability(
                    prefix, value, path, attribute, results, current,
                    is_partial_replace, is_partial_add, is_replace,
                )
                self._check_attribute_values(
                    prefix, value, path, attribute, results, current,
                    is_partial_replace, is_partial_add,
                )

        for undefined in list(node):
            if not len(parent_path):
                if Option.allow_undefined_attributes not in self._enabled_options:
                    results._syntax_issues.append(
                        f"{prefix}Core attribute {undefined} is undefined for schema "
                        f"{self.resource_type.schema_.id}"
                    )
            elif parent_path.is_root and parent_path.schema_urn is not None:
                if Option.allow_undefined_attributes not in self._enabled_options:
                    results._syntax_issues.append(
                        f"{prefix}Extended attribute {undefined} is undefined for schema "
                        f"{parent_path.schema_urn}"
                    )
            elif Option.allow_undefined_sub_attributes not in self._enabled_options:
                results._syntax_issues.append(
                    f"{prefix}Sub-attribute {undefined} is undefined for attribute {parent_path}"
                )
            del node[undefined]

    def _check_attribute_mutability(
        self,
        prefix: str,
        node: Any,
        path: Path,
        attribute: Attribute,
        results: Results,
        current: dict[str, Any] | None,
        is_partial_replace: bool,
        is_partial_add: bool,
        is_replace: bool,
    ) -> None:
        """Check that a value can be written.

        :param node: The new value, or ``_MISSING`` for a removal.
        """
        if attribute.mutability == Mutability.read_only:
            results._mutability_issues.append(f"{prefix}Attribute {path} is read-only")

        if attribute.mutability == Mutability.immutable:
            if node is _MISSING:
                results._mutability_issues.append(
                    f"{prefix}Attribute {path} is immutable and value(s) may not be removed"
                )

            if is_partial_replace and not is_replace:
                results._mutability_issues.append(
                    f"{prefix}Attribute {path} is immutable and value(s) may not be replaced"
                )
            elif is_partial_add and current is not None and path_exists(path, current):
                results._mutability_issues.append(
                    f"{prefix}Attribute {path} is immutable and value(s) may not be added"
                )
            elif current is not None:
                current_values = find_matching_paths(path, current)
                if len(current_values) > 1 or (
                    len(current_values) == 1 and current_values[0] != node
                ):
                    results._mutability_issues.append(
                        f"{prefix}Attribute {path} is immutable and it already has a value"
                    )

        value_filter = path.value_filter
        if attribute == SCHEMAS_ATTRIBUTE and value_filter is not None:
            core_schema_id = self.resource_type.schema_.id
            if evaluate(value_filter, core_schema_id):
                results._syntax_issues.append(
                    f"{prefix}Attribute value(s) {path} may not be removed or replaced "
                    f"because the core schema {core_schema_id} is required for this "
                    "resource type"
                )
            for extension in self.resource_type.required_extensions:
                if evaluate(value_filter, extension.id):
                    results._syntax_issues.append(
                        f"{prefix}Attribute value(s) {path} may not be removed or replaced "
                        f"because the schema extension {extension.id} is required for "
                        "this resource type"
                    )

    def _check_attribute_required(
        self, prefix: str, path: Path, attribute: Attribute, results: Results
    ) -> None:
        if attribute.required:
            results._syntax_issues.append(
                f"{prefix}Attribute {path} is required and must have a value"
            )

    def _check_attribute_values(
        self,
        prefix: str,
        node: Any,
        path: Path,
        attribute: Attribute,
        results: Results,
        current: dict[str, Any] | None,
        is_partial_replace: bool,
        is_partial_add: bool,
    ) -> None:
        """Check the cardinality of a value, then each of its items."""
        if node is None:
            return

        if attribute.multi_valued and not isinstance(node, list):
            results._syntax_issues.append(
                f"{prefix}Value for multi-valued attribute {path} must be a JSON array"
            )
            return

        if not attribute.multi_valued and isinstance(node, list):
            results._syntax_issues.append(
                f"{prefix}Value for single-valued attribute {path} must not be a JSON array"
            )
            return

        if not isinstance(node, list):
            self._check_attribute_value(
                prefix, node, path, attribute, results, current,
                is_partial_replace, is_partial_add,
            )
            return

        # array items are reported as attr[index]
        parent_path = path.sub_path(len(path) - 1)
        for index, value in enumerate(node):
            value_path = parent_path.attribute(f"{path.last_element.attribute}[{index}]")
            self._check_attribute_value(
                prefix, value, value_path, attribute, results, current,
                is_partial_replace, is_partial_add,
            )

    def _check_attribute_value(
        self,
        prefix: str,
        node: Any,
        path: Path,
        attribute: Attribute,
        results: Results,
        current: dict[str, Any] | None,
        is_partial_replace: bool,
        is_partial_add: bool,
    ) -> None:
        """Check the type of a single value, then its content."""
        if node is None:
            return

        expected = _expected_json_type(attribute.type, node)
        if expected is not None:
            results._syntax_issues.append(
                f"{prefix}Value for attribute {path} must be a JSON {expected}"
            )
            return

        if attribute.type == Attribute.Type.date_time:
            try:
                parse_datetime(node)
            except ValueError as exc:
                logger.debug("Invalid xsd:dateTime string during schema checking: %s", exc)
                results._syntax_issues.append(
                    f"{prefix}Value for attribute {path} is not a valid xsd:dateTime formatted string"
                )

        elif attribute.type == Attribute.Type.binary:
            try:
                check_base64(node)
            except ValueError as exc:
                logger.debug("Invalid base64 string during schema checking: %s", exc)
                results._syntax_issues.append(
                    f"{prefix}Value for attribute {path} is not a valid base64 encoded string"
                )

        elif attribute.type == Attribute.Type.reference:
            try:
                check_uri(node)
            except ValueError as exc:
                logger.debug("Invalid URI string during schema checking: %s", exc)
                results._syntax_issues.append(
                    f"{prefix}Value for attribute {path} is not a valid URI string"
                )

        elif attribute.type == Attribute.Type.integer:
            if not isinstance(node, int):
                results._syntax_issues.append(
                    f"{prefix}Value for attribute {path} is not an integral number"
                )

        elif attribute.type == Attribute.Type.complex:
            self._check_object_node(
                prefix, path, attribute.sub_attributes or [], node, results, current,
                is_partial_replace, is_partial_add, False,
            )

        elif attribute.type == Attribute.Type.string and attribute.canonical_values:
            if attribute.case_exact:
                found = node in attribute.canonical_values
            else:
                found = node.lower() in (value.lower() for value in attribute.canonical_values)
            if not found:
                results._syntax_issues.append(
                    f"{prefix}Value {node} is not valid for attribute {path} because it "
                    "is not one of the canonical types: "
                    + ", ".join(attribute.canonical_values)
                )

        # only the schemas of the resource type can be listed
        if attribute == SCHEMAS_ATTRIBUTE and len(path) == 1:
            known = {self.resource_type.schema_.id} | {
                extension.schema_.id for extension in self.resource_type.schema_extensions
            }
            if (
                node not in known
                and Option.allow_undefined_attributes not in self._enabled_options
            ):
                results._syntax_issues.append(
                    f"{prefix}Schema URI {node} is not a valid value for attribute {path} "
                    "because it is undefined as a core or schema extension for this "
                    "resource type"
                )


def _expected_json_type(attribute_type: Attribute.Type, node: Any) -> str | None:
    """Give the JSON type a value should have, or None if it already has it."""
    if attribute_type in (
        Attribute.Type.string,
        Attribute.Type.date_time,
        Attribute.Type.reference,
        Attribute.Type.binary,
    ):
        return None if isinstance(node, str) else "string"

    if attribute_type == Attribute.Type.boolean:
        return None if isinstance(node, bool) else "boolean"

    if attribute_type in (Attribute.Type.decimal, Attribute.Type.integer):
        return None if is_json_number(node) else "number"

    return None if isinstance(node, dict) else "object"


def _filter_attribute_paths(filter: Filter) -> Iterator[Path]:
    """Iterate over the attribute paths a filter references.

    The sub-filters of complex value filters are not walked into.
    """
    if isinstance(filter, CombiningFilter):
        for component in filter.filters:
            yield from _filter_attribute_paths(component)
    elif isinstance(filter, NotFilter):
        yield from _filter_attribute_paths(filter.inverted_filter)
    elif isinstance(filter, ComparisonFilter | PresentFilter | ComplexValueFilter):
        yield filter.attribute_path


def _remove_read_only_attributes(
    attributes: Iterable[Attribute], node: dict[str, Any]
) -> None:
    for attribute in attributes:
        key = _find_key(node, attribute.name)
        if key is None:
            continue

        if attribute.mutability == Mutability.read_only:
            del node[key]
            continue

        if attribute.sub_attributes:
            value = node[key]
            if isinstance(value, dict):
                _remove_read_only_attributes(attribute.sub_attributes, value)
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, dict):
                        _remove_read_only_attributes(attribute.sub_attributes, item)
