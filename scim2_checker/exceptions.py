"""Errors raised by the checker, mapped to the RFC 7644 ``scimType`` keywords.

Schema violations are not raised: they are collected in
:class:`~scim2_checker.Results`. Exceptions are kept for inputs that cannot
be processed at all, such as a malformed path or filter, or a patch
operation with no target, and for :meth:`~scim2_checker.Results.raise_for_issues`
when a caller wants the collected issues as a single error response.
"""

from typing import Any
from typing import ClassVar

from pydantic_core import PydanticCustomError

ERROR_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:Error"


class SCIMException(Exception):
    """An error that can be returned to a SCIM client.

    :param detail: A human-readable description of the error. When missing,
        the generic description of the error type is used.
    :param context: Extra values made available to pydantic error messages.
    """

    status: ClassVar[int] = 400
    scim_type: ClassVar[str] = ""
    _default_detail: ClassVar[str] = "A SCIM error occurred"

    _registry: ClassVar[dict[str, type["SCIMException"]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.scim_type:
            SCIMException._registry.setdefault(cls.scim_type, cls)

    def __init__(self, *, detail: str | None = None, **context: Any):
        self.context = context
        self._detail = detail
        super().__init__(detail or self._default_detail)

    @property
    def detail(self) -> str:
        return self._detail or self._default_detail

    def to_dict(self) -> dict[str, Any]:
        """Build the JSON body of the error response, as in :rfc:`RFC7644 §3.12 <7644#section-3.12>`."""
        payload: dict[str, Any] = {
            "schemas": [ERROR_SCHEMA],
            "status": str(self.status),
            "detail": str(self),
        }
        if self.scim_type:
            payload["scimType"] = self.scim_type
        return payload

    def as_pydantic_error(self) -> PydanticCustomError:
        """Wrap the error so it can be raised from a pydantic validator."""
        return PydanticCustomError(
            f"scim_{self.scim_type}" if self.scim_type else "scim_error",
            str(self),
            {"scim_type": self.scim_type, "status": self.status, **self.context},
        )

    @classmethod
    def from_scim_type(cls, scim_type: str, detail: str | None = None) -> "SCIMException":
        """Build the exception matching a ``scimType`` keyword.

        Unknown keywords give a plain :class:`SCIMException`.
        """
        return cls._registry.get(scim_type, cls)(detail=detail)


class InvalidFilterException(SCIMException):
    """A filter could not be parsed, or cannot be evaluated.

    :param filter: The filter string, when known.
    """

    scim_type = "invalidFilter"
    _default_detail = "The specified filter syntax was invalid"

    def __init__(self, *, filter: str | None = None, **kw: Any):
        self.filter = filter
        super().__init__(**kw)


class MutabilityException(SCIMException):
    """A request writes an attribute that is read-only, or an immutable attribute that already has a value."""

    scim_type = "mutability"
    _default_detail = "The attempted modification is not compatible with the attribute mutability"


class InvalidSyntaxException(SCIMException):
    """A document does not conform to the schemas of its resource type."""

    scim_type = "invalidSyntax"
    _default_detail = "The request body does not conform to the resource schemas"


class InvalidPathException(SCIMException):
    """An attribute path is malformed, or references an undefined attribute.

    :param path: The path string, when known.
    """

    scim_type = "invalidPath"
    _default_detail = "The path attribute was invalid or malformed"

    def __init__(self, *, path: str | None = None, **kw: Any):
        self.path = path
        super().__init__(**kw)


class NoTargetException(SCIMException):
    """A path matches no value that an operation could modify.

    :param path: The path, or the path element, that has no target.
    """

    scim_type = "noTarget"
    _default_detail = "The specified path did not yield a value that could be operated on"

    def __init__(self, *, path: str | None = None, **kw: Any):
        self.path = path
        super().__init__(**kw)


class InvalidValueException(SCIMException):
    """A value is missing, or is not compatible with the operation."""

    scim_type = "invalidValue"
    _default_detail = "A required value was missing, or the value is not compatible with the operation"
