from collections.abc import Iterable
from collections.abc import Iterator
from typing import TYPE_CHECKING
from typing import Any
from typing import NamedTuple
from typing import overload

from pydantic import GetCoreSchemaHandler
from pydantic import GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema

from .exceptions import InvalidPathException
from .utils import is_urn

if TYPE_CHECKING:
    from .filters import Filter


class PathElement(NamedTuple):
    """One step of a path: an attribute name and an optional value filter."""

    attribute: str
    value_filter: "Filter | None" = None

    def __str__(self) -> str:
        if self.value_filter is None:
            return self.attribute
        return f"{self.attribute}[{self.value_filter}]"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PathElement):
            return NotImplemented
        return (
            self.attribute.lower() == other.attribute.lower()
            and self.value_filter == other.value_filter
        )

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self) -> int:
        return hash((self.attribute.lower(), self.value_filter))


class Path:
    """A SCIM attribute path, as defined in :rfc:`RFC7644 §3.10 <7644#section-3.10>`.

    A path is an immutable sequence of :class:`PathElement`. When the path
    addresses an attribute of a schema extension, the first element holds the
    extension schema URN::

        Path.root().attribute("name").attribute("familyName")  # name.familyName
        Path.root("urn:ietf:params:scim:schemas:extension:enterprise:2.0:User").attribute(
            "manager"
        )  # urn:...:User:manager

    Attribute names are compared case-insensitively.
    """

    __slots__ = ("_elements",)

    def __init__(self, elements: Iterable[PathElement] = ()):
        self._elements: tuple[PathElement, ...] = tuple(elements)

    @classmethod
    def root(cls, extension_schema: str | None = None) -> "Path":
        """Build the path to the root of a resource, or of an extension namespace.

        :param extension_schema: The URN of the extension schema.
        :raises ValueError: If the extension schema is not a URN.
        """
        if extension_schema is None:
            return cls()

        if not is_urn(extension_schema):
            raise ValueError(f"Invalid extension schema URN: {extension_schema}")

        return cls((PathElement(extension_schema),))

    @classmethod
    def from_string(cls, path: "str | Path | None") -> "Path":
        """Parse a path string such as ``emails[type eq "work"].value``.

        :raises InvalidPathException: If the path is malformed.
        """
        from .parser import parse_path

        if isinstance(path, Path):
            return path
        return parse_path(path)

    @classmethod
    def _validate(cls, value: Any) -> "Path":
        if not isinstance(value, str | Path):
            raise ValueError(f"Expected a path string, got {type(value).__name__}")
        try:
            return cls.from_string(value)
        except InvalidPathException as exc:
            raise exc.as_pydantic_error() from exc

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        _source_type: type[Any],
        _handler: GetCoreSchemaHandler,
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls,
        _core_schema: core_schema.CoreSchema,
        _handler: GetJsonSchemaHandler,
    ) -> JsonSchemaValue:
        return {"type": "string"}

    @property
    def elements(self) -> tuple[PathElement, ...]:
        return self._elements

    def attribute(self, attribute: str, value_filter: "Filter | None" = None) -> "Path":
        """Build a new path by appending an attribute to this one."""
        return Path((*self._elements, PathElement(attribute, value_filter)))

    def attribute_path(self, path: "Path") -> "Path":
        """Build a new path by appending all the elements of another path."""
        return Path((*self._elements, *path.elements))

    def parent(self) -> "Path | None":
        """The path without its last element, or None for the root path."""
        if self.is_root:
            return None
        return Path(self._elements[:-1])

    def sub_path(self, index: int) -> "Path":
        """The path made of the first ``index`` elements."""
        return Path(self._elements[:index])

    def without_filters(self) -> "Path":
        """The same path with every value filter dropped."""
        return Path(PathElement(element.attribute) for element in self._elements)

    @property
    def schema_urn(self) -> str | None:
        """The extension schema URN this path belongs to, if any."""
        if self._elements and is_urn(self._elements[0].attribute):
            return self._elements[0].attribute
        return None

    @property
    def is_root(self) -> bool:
        """Whether this path points to the resource root or an extension root."""
        return not self._elements or (
            len(self._elements) == 1 and self.schema_urn is not None
        )

    @property
    def last_element(self) -> PathElement | None:
        return self._elements[-1] if self._elements else None

    @property
    def value_filter(self) -> "Filter | None":
        """The value filter of the last element."""
        last = self.last_element
        return last.value_filter if last else None

    def __len__(self) -> int:
        return len(self._elements)

    @property
    def size(self) -> int:
        return len(self._elements)

    @overload
    def __getitem__(self, index: int) -> PathElement: ...

    @overload
    def __getitem__(self, index: slice) -> "Path": ...

    def __getitem__(self, index: int | slice) -> "PathElement | Path":
        if isinstance(index, slice):
            return Path(self._elements[index])
        return self._elements[index]

    def __iter__(self) -> Iterator[PathElement]:
        return iter(self._elements)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            try:
                other = Path.from_string(other)
            except InvalidPathException:
                return False
        if not isinstance(other, Path):
            return NotImplemented
        return self._elements == other._elements

    def __hash__(self) -> int:
        return hash(self._elements)

    def __str__(self) -> str:
        if not self._elements:
            return ""

        first, *others = self._elements
        if self.schema_urn is not None:
            prefix = str(first)
            return f"{prefix}:{'.'.join(map(str, others))}" if others else prefix

        return ".".join(map(str, self._elements))

    def __repr__(self) -> str:
        return f"Path({str(self)!r})"
