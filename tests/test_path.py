import pytest

from scim2_checker import InvalidPathException
from scim2_checker import Path
from scim2_checker import PathElement
from scim2_checker.filters import eq

ENTERPRISE_SCHEMA = "urn:ietf:params:scim:schemas:extension:enterprise:2.0:User"


def test_root_path():
    """The root path has no element and renders as an empty string."""
    path = Path.root()
    assert len(path) == 0
    assert path.is_root
    assert path.schema_urn is None
    assert path.last_element is None
    assert path.parent() is None
    assert str(path) == ""


def test_empty_string_is_root():
    assert Path.from_string("") == Path.root()
    assert Path.from_string(None) == Path.root()
    assert Path.from_string("   ") == Path.root()


def test_simple_paths():
    path = Path.from_string("name.familyName")
    assert path.elements == (PathElement("name"), PathElement("familyName"))
    assert path.size == 2
    assert str(path) == "name.familyName"
    assert not path.is_root


def test_builder():
    """Paths can be built attribute by attribute."""
    path = Path.root().attribute("name").attribute("givenName")
    assert path == Path.from_string("name.givenName")
    assert path == "name.givenName"


def test_case_insensitive_equality():
    """Attribute names are compared ignoring case, and hash the same way."""
    first = Path.from_string("Name.FamilyName")
    second = Path.from_string("name.familyName")
    assert first == second
    assert hash(first) == hash(second)
    assert {first: 1}[second] == 1


def test_extension_path():
    path = Path.from_string(f"{ENTERPRISE_SCHEMA}:manager.value")
    assert path.schema_urn == ENTERPRISE_SCHEMA
    assert len(path) == 3
    assert path[1] == PathElement("manager")
    assert str(path) == f"{ENTERPRISE_SCHEMA}:manager.value"
    assert not path.is_root


def test_extension_root():
    """A trailing colon designates the extension namespace itself."""
    path = Path.from_string(f"{ENTERPRISE_SCHEMA}:")
    assert path == Path.root(ENTERPRISE_SCHEMA)
    assert path.is_root
    assert path.schema_urn == ENTERPRISE_SCHEMA
    assert str(path) == ENTERPRISE_SCHEMA


def test_root_with_invalid_urn():
    with pytest.raises(ValueError, match="Invalid extension schema URN"):
        Path.root("enterprise")


def test_value_filter():
    path = Path.from_string('emails[type eq "work"].value')
    assert path[0].attribute == "emails"
    assert path[0].value_filter == eq("type", "work")
    assert path.value_filter is None
    assert str(path) == 'emails[type eq "work"].value'


def test_value_filter_on_last_element():
    path = Path.from_string('emails[type eq "work"]')
    assert path.value_filter == eq("type", "work")
    assert path.last_element.attribute == "emails"


def test_urn_path_with_value_filter():
    """The URN split ignores the colons of the value filter."""
    path = Path.from_string(f'{ENTERPRISE_SCHEMA}:manager[value eq "a:b"]')
    assert path.schema_urn == ENTERPRISE_SCHEMA
    assert path[1].attribute == "manager"
    assert path.value_filter == eq("value", "a:b")


def test_without_filters():
    path = Path.from_string('emails[type eq "work"].value')
    assert path.without_filters() == Path.from_string("emails.value")
    assert path != path.without_filters()


def test_parent_and_sub_path():
    path = Path.from_string("name.familyName")
    assert path.parent() == Path.from_string("name")
    assert path.sub_path(1) == Path.from_string("name")
    assert path.sub_path(0) == Path.root()
    assert path[1:] == Path.from_string("familyName")


def test_attribute_path():
    parent = Path.from_string("emails")
    assert parent.attribute_path(Path.from_string("value")) == "emails.value"


def test_iteration():
    path = Path.from_string("name.familyName")
    assert [element.attribute for element in path] == ["name", "familyName"]


def test_from_string_returns_paths_unchanged():
    path = Path.from_string("userName")
    assert Path.from_string(path) is path


@pytest.mark.parametrize(
    "path,message",
    [
        ("name..familyName", "Unexpected character '.'"),
        ("name.", "Unexpected end of path string"),
        ("name familyName", "Unexpected character ' '"),
        ('emails[type eq "work"', "Invalid value filter"),
        ("emails[type]", "Invalid value filter"),
        ("[type pr]", "Unexpected character '\\['"),
    ],
)
def test_invalid_paths(path, message):
    with pytest.raises(InvalidPathException, match=message) as exc_info:
        Path.from_string(path)
    assert exc_info.value.path == path


def test_comparison_with_invalid_string():
    """Comparing with an unparsable string is simply not equal."""
    assert Path.from_string("userName") != "user..name"


def test_repr():
    assert repr(Path.from_string("name.familyName")) == "Path('name.familyName')"
