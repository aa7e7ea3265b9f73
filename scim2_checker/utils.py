import base64
import binascii
import re
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError
from pydantic.alias_generators import to_snake

_UNDERSCORE_ALPHANUMERIC = re.compile(r"_+([0-9A-Za-z]+)")
_NON_WORD_UNDERSCORE = re.compile(r"[\W_]+")
_URI_CHARACTERS = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]*$")
_PERCENT_ENCODING = re.compile(r"%(?![0-9A-Fa-f]{2})")
_XSD_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")

_DATETIME_ADAPTER: TypeAdapter[datetime] = TypeAdapter(datetime)


def _to_camel(string: str) -> str:
    """Transform strings to camelCase.

    This method is used for attribute name serialization. This is more
    or less the pydantic implementation, but it does not add uppercase
    on alphanumerical characters after specials characters. For instance
    '$ref' stays '$ref'.
    """
    snake = to_snake(string)
    camel = _UNDERSCORE_ALPHANUMERIC.sub(lambda m: m.group(1).title(), snake)
    return camel


def _normalize_attribute_name(attribute_name: str) -> str:
    """Remove all non-alphabetical characters and lowerise a string.

    This method is used for attribute name validation.
    """
    is_extension_attribute = ":" in attribute_name
    if not is_extension_attribute:
        attribute_name = _NON_WORD_UNDERSCORE.sub("", attribute_name)

    return attribute_name.lower()


def is_urn(value: str) -> bool:
    """Tell whether a string looks like a schema URN, e.g. an extension namespace."""
    return value.lower().startswith("urn:") and len(value) > 4


def _find_key(node: dict[str, Any], name: str) -> str | None:
    """Find the actual key of a JSON object from an attribute name.

    SCIM attribute names are case-insensitive, so "username" finds the
    "userName" key.

    :param node: The JSON object to search in
    :param name: The attribute name to find
    :returns: The key as spelled in the object, or None if absent
    """
    if name in node:
        return name

    lowered = name.lower()
    for key in node:
        if key.lower() == lowered:
            return key

    return None


def is_json_number(value: Any) -> bool:
    """Tell whether a JSON value is a number, booleans excluded."""
    return isinstance(value, int | float) and not isinstance(value, bool)


def parse_datetime(value: str) -> datetime:
    """Parse an xsd:dateTime string.

    :raises ValueError: If the string is not a valid date-time.
    """
    if not _XSD_DATETIME.match(value):
        raise ValueError(f"Invalid xsd:dateTime value: {value!r}")

    try:
        return _DATETIME_ADAPTER.validate_strings(value, strict=True)
    except ValidationError as exc:
        raise ValueError(f"Invalid xsd:dateTime value: {value!r}") from exc


def check_base64(value: str) -> bytes:
    """Decode a base64 string.

    :raises ValueError: If the string is not valid base64.
    """
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Base64 decoding error: {exc}") from exc


def check_uri(value: str) -> str:
    """Check that a string is a syntactically valid URI reference.

    Relative references such as "../Users/2819c223" are accepted.

    :raises ValueError: If the string contains characters a URI cannot hold.
    """
    if not _URI_CHARACTERS.match(value) or _PERCENT_ENCODING.search(value):
        raise ValueError(f"Invalid URI: {value!r}")
    return value
