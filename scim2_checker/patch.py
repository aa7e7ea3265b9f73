from enum import Enum
from typing import Any

from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator
from typing_extensions import Self

from .base import BaseModel
from .exceptions import InvalidPathException
from .exceptions import InvalidValueException
from .json_utils import add_value
from .json_utils import remove_values
from .json_utils import replace_value
from .path import Path

PATCH_OP_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:PatchOp"


class PatchOperation(BaseModel):
    """A single PATCH operation, as defined in :rfc:`RFC7644 §3.5.2 <7644#section-3.5.2>`.

    Operations are applied on plain JSON documents::

        operation = PatchOperation.replace('emails[type eq "work"].value', "bjensen@example.com")
        operation.apply(document)
    """

    class Op(str, Enum):
        replace_ = "replace"
        remove = "remove"
        add = "add"

    op: Op
    """Each PATCH operation object MUST have exactly one "op" member, whose
    value indicates the operation to perform and MAY be one of "add", "remove",
    or "replace".

    .. note::

        For the sake of compatibility with Microsoft Entra,
        despite :rfc:`RFC7644 §3.5.2 <7644#section-3.5.2>`, op is case-insensitive.
    """

    path: Path | None = None
    """The "path" attribute value is a String containing an attribute path
    describing the target of the operation."""

    value: Any = None
    """The value to add, or the replacement value."""

    @field_validator("op", mode="before")
    @classmethod
    def normalize_op(cls, v: Any) -> Any:
        """Ignore case for op.

        Microsoft Entra ID emits the values of op as Add, Replace, and Remove.
        """
        if isinstance(v, str):
            return v.lower()
        return v

    @model_validator(mode="after")
    def validate_operation_requirements(self) -> Self:
        """Validate operation requirements according to RFC 7644."""
        # RFC 7644 Section 3.5.2.2: "If "path" is unspecified, the operation fails"
        if self.op == PatchOperation.Op.remove and not self.path:
            raise InvalidPathException(
                detail="A path is required for remove operations"
            ).as_pydantic_error()

        if self.op == PatchOperation.Op.remove:
            return self

        # RFC 7644 Section 3.5.2.1: "The operation MUST contain a "value" member"
        if "value" not in self.model_fields_set:
            raise InvalidValueException(
                detail=f"A value is required for {self.op.value} operations"
            ).as_pydantic_error()

        if not self.path and not isinstance(self.value, dict):
            raise InvalidValueException(
                detail=f"The value of a {self.op.value} operation without a path must be a JSON object"
            ).as_pydantic_error()

        return self

    @classmethod
    def add(cls, path: "Path | str | None", value: Any) -> Self:
        """Build an add operation."""
        return cls(op=cls.Op.add, path=path, value=value)

    @classmethod
    def replace(cls, path: "Path | str | None", value: Any) -> Self:
        """Build a replace operation."""
        return cls(op=cls.Op.replace_, path=path, value=value)

    @classmethod
    def remove(cls, path: "Path | str") -> Self:
        """Build a remove operation."""
        return cls(op=cls.Op.remove, path=path)

    @property
    def parsed_path(self) -> Path:
        """The target path, the resource root when the operation has no path."""
        return self.path if self.path is not None else Path.root()

    def apply(self, document: dict[str, Any], core_schema: str | None = None) -> None:
        """Apply the operation on a JSON document, which is modified in place.

        :param document: The resource to modify.
        :param core_schema: The core schema URN of the resource, which the path
            may start with.
        :raises NoTargetException: If the path does not lead to a value that
            can be modified.
        """
        if self.op == PatchOperation.Op.add:
            add_value(self.parsed_path, document, self.value, core_schema)
        elif self.op == PatchOperation.Op.replace_:
            replace_value(self.parsed_path, document, self.value, core_schema)
        else:
            remove_values(self.parsed_path, document, core_schema)


class PatchRequest(BaseModel):
    """Body of a PATCH request, as defined in :rfc:`RFC7644 §3.5.2 <7644#section-3.5.2>`."""

    schemas: list[str] = [PATCH_OP_SCHEMA]

    operations: list[PatchOperation] = Field(
        serialization_alias="Operations", min_length=1
    )
    """The body of an HTTP PATCH request MUST contain the attribute
    "Operations", whose value is an array of one or more PATCH operations."""

    @field_validator("schemas")
    @classmethod
    def check_schemas(cls, value: list[str]) -> list[str]:
        if PATCH_OP_SCHEMA not in value:
            raise ValueError(f"The schemas attribute must contain {PATCH_OP_SCHEMA}")
        return value

    def apply(self, document: dict[str, Any], core_schema: str | None = None) -> None:
        """Apply all the operations in sequence on a JSON document, in place.

        Each operation sees the changes of the previous ones.
        """
        for operation in self.operations:
            operation.apply(document, core_schema)
