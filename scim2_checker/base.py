from typing import Any

from pydantic import AliasGenerator
from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict
from pydantic import ValidatorFunctionWrapHandler
from pydantic import model_validator
from typing_extensions import Self

from scim2_checker.utils import _normalize_attribute_name
from scim2_checker.utils import _to_camel


class BaseModel(PydanticBaseModel):
    """Base Model for schema definitions and protocol messages."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(
            validation_alias=_normalize_attribute_name,
            serialization_alias=_to_camel,
        ),
        populate_by_name=True,
        use_attribute_docstrings=True,
        extra="forbid",
    )

    @model_validator(mode="wrap")
    @classmethod
    def normalize_attribute_names(
        cls, value: Any, handler: ValidatorFunctionWrapHandler
    ) -> Self:
        """Normalize payload attribute names.

        :rfc:`RFC7643 §2.1 <7643#section-2.1>` indicate that attribute
        names should be case-insensitive. Top-level keys of the payload are
        transformed so "subAttributes", "subattributes" and "sub_attributes"
        are handled the same way. Nested models normalize their own keys.
        """
        if isinstance(value, dict):
            value = {
                _normalize_attribute_name(key) if key not in cls.model_fields else key: val
                for key, val in value.items()
            }

        obj = handler(value)
        assert isinstance(obj, cls)
        return obj

    def model_dump(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        """Dump the model as a SCIM JSON payload, with camelCase keys and no null values."""
        kwargs.setdefault("by_alias", True)
        kwargs.setdefault("exclude_none", True)
        kwargs.setdefault("mode", "json")
        return super().model_dump(*args, **kwargs)
