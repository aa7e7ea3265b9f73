from collections.abc import Iterable
from enum import Enum
from typing import Any
from typing import Optional

from pydantic import ConfigDict
from pydantic import Field
from pydantic import PrivateAttr
from pydantic import ValidationError
from pydantic import ValidationInfo
from pydantic import field_validator
from pydantic_core import Url
from typing_extensions import Self

from .annotations import Mutability
from .annotations import Returned
from .annotations import Uniqueness
from .base import BaseModel
from .path import Path


class Attribute(BaseModel):
    """Definition of a SCIM attribute, as defined in :rfc:`RFC7643 §7 <7643#section-7>`."""

    model_config = ConfigDict(frozen=True)

    class Type(str, Enum):
        string = "string"
        complex = "complex"
        boolean = "boolean"
        decimal = "decimal"
        integer = "integer"
        date_time = "dateTime"
        reference = "reference"
        binary = "binary"

    name: str
    """The attribute's name."""

    type: Type = Field(Type.string, examples=[item.value for item in Type])
    """The attribute's data type."""

    multi_valued: bool = False
    """A Boolean value indicating the attribute's plurality."""

    description: str | None = None
    """The attribute's human-readable description."""

    required: bool = False
    """A Boolean value that specifies whether or not the attribute is
    required."""

    canonical_values: list[str] | None = None
    """A collection of suggested canonical values that MAY be used (e.g.,
    "work" and "home")."""

    case_exact: bool = False
    """A Boolean value that specifies whether or not a string attribute is case
    sensitive."""

    mutability: Mutability = Field(
        Mutability.read_write, examples=[item.value for item in Mutability]
    )
    """A single keyword indicating the circumstances under which the value of
    the attribute can be (re)defined."""

    returned: Returned = Field(
        Returned.default, examples=[item.value for item in Returned]
    )
    """A single keyword that indicates when an attribute and associated values
    are returned in response to a GET request or in response to a PUT, POST, or
    PATCH request."""

    uniqueness: Uniqueness = Field(
        Uniqueness.none, examples=[item.value for item in Uniqueness]
    )
    """A single keyword value that specifies how the service provider enforces
    uniqueness of attribute values."""

    reference_types: list[str] | None = None
    """A multi-valued array of JSON strings that indicate the SCIM resource
    types that may be referenced."""

    sub_attributes: list["Attribute"] | None = Field(None, validate_default=True)
    """When an attribute is of type "complex", "subAttributes" defines a set of
    sub-attributes."""

    @field_validator("sub_attributes")
    @classmethod
    def check_sub_attributes(
        cls, value: list["Attribute"] | None, info: ValidationInfo
    ) -> list["Attribute"] | None:
        """Only complex attributes have sub-attributes, and they always have a list of them."""
        if info.data.get("type") == Attribute.Type.complex:
            return value if value is not None else []

        if value is not None:
            raise ValueError(
                f"Attribute {info.data.get('name')} is not complex and cannot have sub-attributes"
            )
        return None

    def get_attribute(self, attribute_name: str) -> Optional["Attribute"]:
        """Find a sub-attribute by its name, ignoring case."""
        for sub_attribute in self.sub_attributes or []:
            if sub_attribute.name.lower() == attribute_name.lower():
                return sub_attribute
        return None

    def __getitem__(self, name: str) -> "Attribute":
        """Find a sub-attribute by its name."""
        if attribute := self.get_attribute(name):
            return attribute
        raise KeyError(f"This attribute has no '{name}' sub-attribute")


class Schema(BaseModel):
    """A SCIM schema, as served by the ``/Schemas`` endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    """The unique URI of the schema."""

    name: str | None = None
    """The schema's human-readable name."""

    description: str | None = None
    """The schema's human-readable description."""

    attributes: list[Attribute] = []
    """A complex type that defines service provider attributes and their
    qualities via the following set of sub-attributes."""

    @field_validator("id")
    @classmethod
    def uri_id(cls, value: str) -> str:
        """Ensure that schema ids are URI, as defined in RFC7643 §7."""
        try:
            Url(value)
        except ValidationError as exc:
            raise ValueError(f"Schema id {value!r} is not a valid URI") from exc
        return value

    def get_attribute(self, attribute_name: str) -> Attribute | None:
        """Find an attribute by its name, ignoring case."""
        for attribute in self.attributes:
            if attribute.name.lower() == attribute_name.lower():
                return attribute
        return None

    def __getitem__(self, name: str) -> Attribute:
        """Find an attribute by its name."""
        if attribute := self.get_attribute(name):
            return attribute
        raise KeyError(f"This schema has no '{name}' attribute")


SCHEMAS_ATTRIBUTE = Attribute(
    name="schemas",
    type=Attribute.Type.reference,
    multi_valued=True,
    description="The schemas attribute is an array of Strings which allows "
    "introspection of the supported schema version for a SCIM representation "
    "as well any schema extensions supported by that representation.",
    required=True,
    case_exact=True,
    mutability=Mutability.read_write,
    returned=Returned.always,
    reference_types=["uri"],
)

ID_ATTRIBUTE = Attribute(
    name="id",
    description="A unique identifier for a SCIM resource as defined by the "
    "service provider.",
    case_exact=True,
    mutability=Mutability.read_only,
    returned=Returned.always,
    uniqueness=Uniqueness.server,
)

EXTERNAL_ID_ATTRIBUTE = Attribute(
    name="externalId",
    description="A String that is an identifier for the resource as defined "
    "by the provisioning client.",
    case_exact=True,
)

META_ATTRIBUTE = Attribute(
    name="meta",
    type=Attribute.Type.complex,
    description="A complex attribute containing resource metadata.",
    mutability=Mutability.read_only,
    sub_attributes=[
        Attribute(
            name="resourceType",
            description="The name of the resource type of the resource.",
            case_exact=True,
            mutability=Mutability.read_only,
        ),
        Attribute(
            name="created",
            type=Attribute.Type.date_time,
            description='The "DateTime" that the resource was added to the '
            "service provider.",
            mutability=Mutability.read_only,
        ),
        Attribute(
            name="lastModified",
            type=Attribute.Type.date_time,
            description="The most recent DateTime that the details of this "
            "resource were updated at the service provider.",
            mutability=Mutability.read_only,
        ),
        Attribute(
            name="location",
            type=Attribute.Type.reference,
            description="The URI of the resource being returned.",
            case_exact=True,
            mutability=Mutability.read_only,
            reference_types=["uri"],
        ),
        Attribute(
            name="version",
            description="The version of the resource being returned.",
            case_exact=True,
            mutability=Mutability.read_only,
        ),
    ],
)

COMMON_ATTRIBUTES: tuple[Attribute, ...] = (
    SCHEMAS_ATTRIBUTE,
    ID_ATTRIBUTE,
    EXTERNAL_ID_ATTRIBUTE,
    META_ATTRIBUTE,
)
"""Attributes shared by every resource, as defined in :rfc:`RFC7643 §3.1 <7643#section-3.1>`."""


class SchemaExtension(BaseModel):
    model_config = ConfigDict(frozen=True)

    schema_: Schema = Field(alias="schema")
    """The schema extension."""

    required: bool = False
    """A Boolean value that specifies whether or not the schema extension is
    required for the resource type.

    If true, a resource of this type MUST include this schema extension
    and also include any attributes declared as required in this schema
    extension. If false, a resource of this type MAY omit this schema
    extension.
    """


class ResourceType(BaseModel):
    """A resource type with its core schema and schema extensions.

    Every attribute and sub-attribute of the common attributes, of the core
    schema and of the extensions is indexed by its path, so definitions can
    be looked up with :meth:`get_attribute_definition`.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    """The resource type name, e.g. 'User'."""

    endpoint: str
    """The resource type's HTTP-addressable endpoint relative to the Base URL,
    e.g., '/Users'."""

    id: str | None = None
    """The resource type's server unique id.

    This is often the same value as the "name" attribute.
    """

    description: str | None = None
    """The resource type's human-readable description."""

    schema_: Schema = Field(alias="schema")
    """The resource type's primary/base schema."""

    schema_extensions: list[SchemaExtension] = []
    """The resource type's schema extensions."""

    _attributes_by_path: dict[Path, Attribute] = PrivateAttr(default_factory=dict)

    def model_post_init(self, context: Any) -> None:
        self._index_attributes(Path.root(), COMMON_ATTRIBUTES)
        self._index_attributes(Path.root(), self.schema_.attributes)
        for extension in self.schema_extensions:
            self._index_attributes(
                Path.root(extension.schema_.id), extension.schema_.attributes
            )

    def _index_attributes(self, parent: Path, attributes: Iterable[Attribute]) -> None:
        for attribute in attributes:
            path = parent.attribute(attribute.name)
            self._attributes_by_path[path] = attribute
            if attribute.sub_attributes:
                self._index_attributes(path, attribute.sub_attributes)

    @classmethod
    def from_schemas(
        cls,
        name: str,
        endpoint: str,
        core_schema: Schema,
        required_extensions: Iterable[Schema] = (),
        optional_extensions: Iterable[Schema] = (),
        description: str | None = None,
    ) -> Self:
        """Build a resource type from a core schema and its extension schemas."""
        return cls(
            name=name,
            endpoint=endpoint,
            id=name,
            description=description,
            schema_=core_schema,
            schema_extensions=[
                *(SchemaExtension(schema_=schema, required=True) for schema in required_extensions),
                *(SchemaExtension(schema_=schema, required=False) for schema in optional_extensions),
            ],
        )

    @property
    def core_schema(self) -> Schema:
        return self.schema_

    @property
    def core_and_common_attributes(self) -> list[Attribute]:
        return [*COMMON_ATTRIBUTES, *self.schema_.attributes]

    @property
    def required_extensions(self) -> list[Schema]:
        return [extension.schema_ for extension in self.schema_extensions if extension.required]

    def get_schema_extension(self, schema_id: str) -> SchemaExtension | None:
        """Find a schema extension by its URN."""
        for extension in self.schema_extensions:
            if extension.schema_.id == schema_id:
                return extension
        return None

    def normalize_path(self, path: Path) -> Path:
        """Drop the core schema URN prefix from a path, if present."""
        urn = path.schema_urn
        if urn is not None and urn.lower() == self.schema_.id.lower():
            return path[1:]
        return path

    def get_attribute_definition(self, path: Path) -> Attribute | None:
        """Find the definition of the attribute a path points to.

        Attribute names are case-insensitive and value filters are ignored::

            resource_type.get_attribute_definition(Path.from_string('emails[type eq "work"].value'))

        :param path: The attribute path.
        :returns: The attribute definition, or None if the path is not defined
            by the resource type.
        """
        return self._attributes_by_path.get(self.normalize_path(path).without_filters())

    def to_scim_resource(self) -> dict[str, Any]:
        """Build the ``/ResourceTypes`` representation of this resource type."""
        payload: dict[str, Any] = {
            "schemas": ["urn:ietf:params:scim:schemas:core:2.0:ResourceType"],
            "id": self.id or self.name,
            "name": self.name,
            "endpoint": self.endpoint,
            "schema": self.schema_.id,
        }
        if self.description:
            payload["description"] = self.description
        if self.schema_extensions:
            payload["schemaExtensions"] = [
                {"schema": extension.schema_.id, "required": extension.required}
                for extension in self.schema_extensions
            ]
        return payload
