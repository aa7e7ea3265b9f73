import pytest

from scim2_checker.utils import _find_key
from scim2_checker.utils import _normalize_attribute_name
from scim2_checker.utils import _to_camel
from scim2_checker.utils import check_base64
from scim2_checker.utils import check_uri
from scim2_checker.utils import is_json_number
from scim2_checker.utils import is_urn
from scim2_checker.utils import parse_datetime


def test_to_camel():
    """Test camilization utility."""
    assert _to_camel("foo") == "foo"
    assert _to_camel("Foo") == "foo"
    assert _to_camel("fooBar") == "fooBar"
    assert _to_camel("FooBar") == "fooBar"
    assert _to_camel("foo_bar") == "fooBar"
    assert _to_camel("Foo_Bar") == "fooBar"
    assert _to_camel("multi_valued") == "multiValued"

    assert _to_camel("$foo$") == "$foo$"


def test_normalize_attribute_name():
    assert _normalize_attribute_name("subAttributes") == "subattributes"
    assert _normalize_attribute_name("sub_attributes") == "subattributes"
    assert (
        _normalize_attribute_name("urn:ietf:params:scim:schemas:extension:enterprise:2.0:User")
        == "urn:ietf:params:scim:schemas:extension:enterprise:2.0:user"
    )


def test_is_urn():
    assert is_urn("urn:ietf:params:scim:schemas:core:2.0:User")
    assert is_urn("URN:foo")
    assert not is_urn("urn:")
    assert not is_urn("userName")


def test_find_key():
    node = {"userName": "bjensen"}
    assert _find_key(node, "userName") == "userName"
    assert _find_key(node, "USERNAME") == "userName"
    assert _find_key(node, "nickName") is None


def test_is_json_number():
    assert is_json_number(1)
    assert is_json_number(1.5)
    assert not is_json_number(True)
    assert not is_json_number("1")


def test_parse_datetime():
    value = parse_datetime("2011-05-13T04:42:34Z")
    assert (value.year, value.month, value.day) == (2011, 5, 13)
    assert parse_datetime("2011-05-13T04:42:34.123+02:00").utcoffset().total_seconds() == 7200


@pytest.mark.parametrize("value", ["2011-05-13", "yesterday", "2011-13-45T04:42:34Z"])
def test_parse_invalid_datetime(value):
    with pytest.raises(ValueError, match="Invalid xsd:dateTime"):
        parse_datetime(value)


def test_check_base64():
    assert check_base64("aGVsbG8=") == b"hello"
    with pytest.raises(ValueError, match="Base64 decoding error"):
        check_base64("not base64!")


def test_check_uri():
    assert check_uri("https://example.com/v2/Users/2819c223")
    assert check_uri("../Users/2819c223")
    assert check_uri("urn:ietf:params:scim:schemas:core:2.0:User")
    with pytest.raises(ValueError, match="Invalid URI"):
        check_uri("not a uri")
    with pytest.raises(ValueError, match="Invalid URI"):
        check_uri("https://example.com/%zz")
