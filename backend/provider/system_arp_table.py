"""
Resource: fortios_system_arptable

Configure ARP table. Maps the resource attributes onto the
``/api/v2/cmdb/system/arp-table`` endpoint. Attribute values are passed
through unchanged in both directions.
"""

import logging
from typing import Any, Dict, Optional

from fortios.client import FortiAPIError, FortiOSClient
from provider.schema import (
    FieldSchema,
    Resource,
    ResourceData,
    ResourceError,
    SchemaError,
    import_state_passthrough,
    int_between,
    string_len_between,
)

logger = logging.getLogger(__name__)

RESOURCE_NAME = "fortios_system_arptable"

# Placeholder id used when the device does not return a management key
DEFAULT_ID = "SystemArpTable"

SCHEMA: Dict[str, FieldSchema] = {
    "fosid": FieldSchema(int, required=True, validate=int_between(0, 4294967295)),
    "interface": FieldSchema(str, required=True, validate=string_len_between(0, 15)),
    "ip": FieldSchema(str, required=True),
    "mac": FieldSchema(str, required=True),
}


def forti_api_patch(value: Any) -> bool:
    """True when the API returned a plain value that may safely be left as-is on a set failure."""
    # JSON booleans decode to bool, which is an int subclass
    if value is None or isinstance(value, bool):
        return False
    return isinstance(value, (str, int, float, list))


def _id_from_response(o: Optional[Dict[str, Any]]) -> str:
    mkey = (o or {}).get("mkey")
    if mkey is None or mkey == "":
        return DEFAULT_ID
    try:
        return str(int(mkey))
    except (TypeError, ValueError):
        return str(mkey)


# ── Lifecycle ─────────────────────────────────────────────────────────

async def create(d: ResourceData, client: FortiOSClient) -> None:
    client.retries = 1

    try:
        obj = get_object(d)
    except (SchemaError, ValueError) as e:
        raise ResourceError(
            f"Error creating SystemArpTable resource while getting object: {e}"
        ) from e

    try:
        o = await client.create_system_arp_table(obj)
    except FortiAPIError as e:
        raise ResourceError(f"Error creating SystemArpTable resource: {e}") from e

    d.set_id(_id_from_response(o))

    await read(d, client)


async def update(d: ResourceData, client: FortiOSClient) -> None:
    mkey = d.id
    client.retries = 1

    try:
        obj = get_object(d)
    except (SchemaError, ValueError) as e:
        raise ResourceError(
            f"Error updating SystemArpTable resource while getting object: {e}"
        ) from e

    try:
        o = await client.update_system_arp_table(obj, mkey)
    except FortiAPIError as e:
        raise ResourceError(f"Error updating SystemArpTable resource: {e}") from e

    logger.debug(f"Updated {RESOURCE_NAME} {mkey}", extra={"mkey": mkey})
    d.set_id(_id_from_response(o))

    await read(d, client)


async def delete(d: ResourceData, client: FortiOSClient) -> None:
    mkey = d.id
    client.retries = 1

    try:
        await client.delete_system_arp_table(mkey)
    except FortiAPIError as e:
        raise ResourceError(f"Error deleting SystemArpTable resource: {e}") from e

    d.set_id("")


async def read(d: ResourceData, client: FortiOSClient) -> None:
    mkey = d.id
    client.retries = 1

    try:
        o = await client.read_system_arp_table(mkey)
    except FortiAPIError as e:
        raise ResourceError(f"Error reading SystemArpTable resource: {e}") from e

    if o is None:
        logger.warning(f"resource ({d.id}) not found, removing from state")
        d.set_id("")
        return

    try:
        refresh_object(d, o)
    except ResourceError as e:
        raise ResourceError(
            f"Error reading SystemArpTable resource from API: {e}"
        ) from e


# ── Field mappers ─────────────────────────────────────────────────────

def flatten_id(v, d, pre):
    return v


def flatten_interface(v, d, pre):
    return v


def flatten_ip(v, d, pre):
    return v


def flatten_mac(v, d, pre):
    return v


def expand_id(d, v, pre):
    return v


def expand_interface(d, v, pre):
    return v


def expand_ip(d, v, pre):
    return v


def expand_mac(d, v, pre):
    return v


# (schema attribute, API key, flatten, expand)
FIELDS = (
    ("fosid", "id", flatten_id, expand_id),
    ("interface", "interface", flatten_interface, expand_interface),
    ("ip", "ip", flatten_ip, expand_ip),
    ("mac", "mac", flatten_mac, expand_mac),
)


def refresh_object(d: ResourceData, o: Dict[str, Any]) -> None:
    """Copy API object values into the resource state."""
    for attr, api_key, flatten, _ in FIELDS:
        value = o.get(api_key)
        try:
            d.set(attr, flatten(value, d, attr))
        except SchemaError as e:
            if not forti_api_patch(value):
                raise ResourceError(f"Error reading {attr}: {e}") from e


def get_object(d: ResourceData) -> Dict[str, Any]:
    """Build the API payload from the resource state."""
    obj: Dict[str, Any] = {}
    for attr, api_key, _, expand in FIELDS:
        v, ok = d.get_ok(attr)
        if not ok:
            continue
        t = expand(d, v, attr)
        if t is not None:
            obj[api_key] = t
    return obj


resource_system_arp_table = Resource(
    name=RESOURCE_NAME,
    schema=SCHEMA,
    create=create,
    read=read,
    update=update,
    delete=delete,
    importer=import_state_passthrough,
    description="Configure ARP table.",
)
