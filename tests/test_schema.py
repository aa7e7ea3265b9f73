import pytest
from pydantic import ValidationError

from scim2_checker import Attribute
from scim2_checker import Mutability
from scim2_checker import Path
from scim2_checker import Returned
from scim2_checker import Schema

USER_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:User"
ENTERPRISE_SCHEMA = "urn:ietf:params:scim:schemas:extension:enterprise:2.0:User"


def test_attribute_defaults():
    attribute = Attribute(name="nickName")
    assert attribute.type == Attribute.Type.string
    assert not attribute.multi_valued
    assert not attribute.required
    assert not attribute.case_exact
    assert attribute.mutability == Mutability.read_write
    assert attribute.returned == Returned.default
    assert attribute.sub_attributes is None


def test_complex_attributes_have_sub_attributes():
    assert Attribute(name="name", type=Attribute.Type.complex).sub_attributes == []


def test_simple_attributes_cannot_have_sub_attributes():
    with pytest.raises(ValidationError, match="is not complex"):
        Attribute(name="nickName", sub_attributes=[Attribute(name="value")])


def test_attribute_from_payload():
    """Attribute definitions are read from /Schemas payloads."""
    attribute = Attribute.model_validate(
        {
            "name": "emails",
            "type": "complex",
            "multiValued": True,
            "caseExact": False,
            "mutability": "readWrite",
            "returned": "default",
            "uniqueness": "none",
            "subAttributes": [
                {"name": "value", "type": "string"},
                {"name": "type", "canonicalValues": ["work", "home"]},
            ],
        }
    )
    assert attribute.multi_valued
    assert attribute["TYPE"].canonical_values == ["work", "home"]
    assert attribute.get_attribute("missing") is None


def test_attribute_dump():
    assert Attribute(name="nickName", case_exact=True).model_dump() == {
        "name": "nickName",
        "type": "string",
        "multiValued": False,
        "required": False,
        "caseExact": True,
        "mutability": "readWrite",
        "returned": "default",
        "uniqueness": "none",
    }


def test_schema_from_payload():
    """Unknown payload keys, such as meta, are ignored."""
    schema = Schema.model_validate(
        {
            "schemas": ["urn:ietf:params:scim:schemas:core:2.0:Schema"],
            "id": USER_SCHEMA,
            "name": "User",
            "attributes": [{"name": "userName", "required": True}],
            "meta": {"resourceType": "Schema"},
        }
    )
    assert schema["username"].required
    with pytest.raises(KeyError):
        schema["missing"]


def test_schema_id_must_be_uri():
    with pytest.raises(ValidationError, match="is not a valid URI"):
        Schema(id="not a uri")


def test_attribute_definitions(resource_type):
    assert resource_type.get_attribute_definition(Path.from_string("userName")).required
    assert (
        resource_type.get_attribute_definition(Path.from_string("NAME.FAMILYNAME")).name
        == "familyName"
    )
    assert (
        resource_type.get_attribute_definition(Path.from_string('emails[type eq "work"].value')).name
        == "value"
    )
    assert resource_type.get_attribute_definition(Path.from_string("meta.created")).type == (
        Attribute.Type.date_time
    )
    assert resource_type.get_attribute_definition(Path.from_string("missing")) is None
    assert resource_type.get_attribute_definition(Path.root()) is None


def test_core_urn_prefix_is_ignored(resource_type):
    path = Path.from_string(f"{USER_SCHEMA}:userName")
    assert resource_type.get_attribute_definition(path).name == "userName"
    assert resource_type.normalize_path(path) == Path.from_string("userName")


def test_extension_attribute_definitions(resource_type):
    path = Path.from_string(f"{ENTERPRISE_SCHEMA}:manager.displayName")
    assert resource_type.get_attribute_definition(path).mutability == Mutability.read_only
    assert (
        resource_type.get_attribute_definition(Path.from_string("manager.displayName"))
        is None
    )


def test_schema_extensions(resource_type, strict_resource_type):
    assert resource_type.core_schema.id == USER_SCHEMA
    assert resource_type.get_schema_extension(ENTERPRISE_SCHEMA).required is False
    assert resource_type.get_schema_extension("urn:other") is None
    assert resource_type.required_extensions == []
    assert [schema.id for schema in strict_resource_type.required_extensions] == [
        ENTERPRISE_SCHEMA
    ]


def test_core_and_common_attributes(resource_type):
    names = [attribute.name for attribute in resource_type.core_and_common_attributes]
    assert names[:4] == ["schemas", "id", "externalId", "meta"]
    assert "userName" in names


def test_to_scim_resource(strict_resource_type):
    assert strict_resource_type.to_scim_resource() == {
        "schemas": ["urn:ietf:params:scim:schemas:core:2.0:ResourceType"],
        "id": "User",
        "name": "User",
        "endpoint": "/Users",
        "schema": USER_SCHEMA,
        "schemaExtensions": [{"schema": ENTERPRISE_SCHEMA, "required": True}],
    }
