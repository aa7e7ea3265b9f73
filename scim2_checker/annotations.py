from enum import Enum


class Mutability(str, Enum):
    """A single keyword indicating the circumstances under which the value of the attribute can be (re)defined."""

    read_only = "readOnly"
    """The attribute SHALL NOT be modified by clients."""

    read_write = "readWrite"
    """The attribute MAY be updated and read at any time."""

    immutable = "immutable"
    """The attribute MAY be defined at resource creation (e.g., POST) or at
    record replacement via a request (e.g., a PUT).

    The attribute SHALL NOT be updated once it holds a value.
    """

    write_only = "writeOnly"
    """The attribute MAY be updated at any time, but its values are never
    returned."""

    _default = read_write


class Returned(str, Enum):
    """A single keyword that indicates when an attribute and associated values are returned in responses."""

    always = "always"  # cannot be excluded
    never = "never"  # always excluded
    default = "default"  # included by default but can be excluded
    request = "request"  # excluded by default but can be included

    _default = default


class Uniqueness(str, Enum):
    """A single keyword value that specifies how the service provider enforces uniqueness of attribute values."""

    none = "none"
    server = "server"
    global_ = "global"

    _default = none
