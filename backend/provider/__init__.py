"""FortiOS resource definitions.

Each resource maps a declarative attribute schema onto one FortiOS CMDB
endpoint through create/read/update/delete callbacks.
"""

from .schema import (
    FieldSchema,
    Resource,
    ResourceData,
    ResourceError,
    SchemaError,
    import_state_passthrough,
    int_between,
    string_len_between,
)
from .system_arp_table import resource_system_arp_table

# Resource registry mapping resource type names to definitions
RESOURCES = {
    resource_system_arp_table.name: resource_system_arp_table,
}


def get_resource(name: str) -> Resource:
    """Get a resource definition by type name.

    Raises:
        ValueError: If name is not registered
    """
    resource = RESOURCES.get(name)
    if resource is None:
        raise ValueError(
            f"Unknown resource: {name}. Available: {', '.join(RESOURCES.keys())}"
        )
    return resource


__all__ = [
    "FieldSchema",
    "Resource",
    "ResourceData",
    "ResourceError",
    "SchemaError",
    "import_state_passthrough",
    "int_between",
    "string_len_between",
    "resource_system_arp_table",
    "RESOURCES",
    "get_resource",
]
