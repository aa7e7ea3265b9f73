import pytest

from scim2_checker import Attribute
from scim2_checker import Mutability
from scim2_checker import ResourceType
from scim2_checker import Schema

USER_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:User"
ENTERPRISE_SCHEMA = "urn:ietf:params:scim:schemas:extension:enterprise:2.0:User"


@pytest.fixture
def user_schema():
    return Schema(
        id=USER_SCHEMA,
        name="User",
        attributes=[
            Attribute(name="userName", required=True),
            Attribute(name="displayName"),
            Attribute(name="nickName"),
            Attribute(name="active", type=Attribute.Type.boolean),
            Attribute(name="birthDate", type=Attribute.Type.date_time),
            Attribute(name="photo", type=Attribute.Type.binary),
            Attribute(name="profileUrl", type=Attribute.Type.reference),
            Attribute(name="loginCount", type=Attribute.Type.integer),
            Attribute(name="employeeNumber", mutability=Mutability.immutable),
            Attribute(name="password", mutability=Mutability.write_only),
            Attribute(
                name="name",
                type=Attribute.Type.complex,
                sub_attributes=[
                    Attribute(name="familyName"),
                    Attribute(name="givenName"),
                ],
            ),
            Attribute(
                name="emails",
                type=Attribute.Type.complex,
                multi_valued=True,
                sub_attributes=[
                    Attribute(name="value"),
                    Attribute(name="type", canonical_values=["work", "home", "other"]),
                    Attribute(name="primary", type=Attribute.Type.boolean),
                ],
            ),
            Attribute(
                name="groups",
                type=Attribute.Type.complex,
                multi_valued=True,
                mutability=Mutability.read_only,
                sub_attributes=[
                    Attribute(name="value"),
                    Attribute(name="display"),
                ],
            ),
            Attribute(name="tags", multi_valued=True),
        ],
    )


@pytest.fixture
def enterprise_schema():
    return Schema(
        id=ENTERPRISE_SCHEMA,
        name="EnterpriseUser",
        attributes=[
            Attribute(name="employeeNumber"),
            Attribute(name="costCenter", required=True),
            Attribute(
                name="manager",
                type=Attribute.Type.complex,
                sub_attributes=[
                    Attribute(name="value"),
                    Attribute(name="displayName", mutability=Mutability.read_only),
                ],
            ),
        ],
    )


@pytest.fixture
def resource_type(user_schema, enterprise_schema):
    return ResourceType.from_schemas(
        "User",
        "/Users",
        user_schema,
        optional_extensions=[enterprise_schema],
    )


@pytest.fixture
def strict_resource_type(user_schema, enterprise_schema):
    """A resource type where the enterprise extension is required."""
    return ResourceType.from_schemas(
        "User",
        "/Users",
        user_schema,
        required_extensions=[enterprise_schema],
    )
