#!/usr/bin/env python3
"""
FortiState command line interface.

Runs one resource lifecycle operation directly against the device and prints
the resulting state as JSON. Local state is not consulted; the caller passes
the management key and attributes explicitly.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from config import settings
from fortios.client import FortiOSClient
from provider import ResourceData, ResourceError, get_resource
from utils.audit import audit
from utils.logging_utils import setup_logging, get_logger

logger = get_logger(__name__)

ARP_TABLE = "fortios_system_arptable"


def _attributes(args: argparse.Namespace) -> Dict[str, Any]:
    attrs = {}
    for key in ("fosid", "interface", "ip", "mac"):
        value = getattr(args, key, None)
        if value is not None:
            attrs[key] = value
    return attrs


async def run(args: argparse.Namespace, client: FortiOSClient) -> ResourceData:
    """Execute the requested operation and return the resulting state."""
    resource = get_resource(ARP_TABLE)
    d = resource.data(id=getattr(args, "id", "") or "", attributes=_attributes(args))

    if args.action in ("create", "update"):
        problems = d.validate()
        if problems:
            raise ResourceError("Invalid attributes: " + "; ".join(problems))

    if args.action == "create":
        await resource.create(d, client)
        audit.log_resource_change("CREATE", resource.name, d.id, d.attributes())
    elif args.action == "read":
        await resource.read(d, client)
    elif args.action == "update":
        await resource.update(d, client)
        audit.log_resource_change("UPDATE", resource.name, d.id, d.attributes())
    elif args.action == "delete":
        await resource.delete(d, client)
        audit.log_resource_change("DELETE", resource.name, args.id)
    elif args.action == "import":
        d = (await resource.importer(d, client))[0]
        await resource.read(d, client)
        audit.log_resource_change("IMPORT", resource.name, d.id, d.attributes())
    return d


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fortistate",
        description="FortiState: manage FortiOS configuration objects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fortistate arp-table create --fosid 1 --interface port1 --ip 10.0.0.5 --mac 00:11:22:33:44:55
  fortistate arp-table read 1
  fortistate arp-table update 1 --fosid 1 --interface port2 --ip 10.0.0.5 --mac 00:11:22:33:44:55
  fortistate arp-table delete 1
  fortistate arp-table import 1
        """,
    )
    parser.add_argument(
        "--hostname", default=settings.FORTIOS_HOSTNAME,
        help=f"FortiGate address (default: {settings.FORTIOS_HOSTNAME})",
    )
    parser.add_argument("--vdom", default=settings.FORTIOS_VDOM, help="Target VDOM")
    parser.add_argument(
        "--insecure", action="store_true", default=settings.FORTIOS_INSECURE,
        help="Skip TLS certificate verification",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Log level")

    resources = parser.add_subparsers(dest="resource", required=True)
    arp = resources.add_parser("arp-table", help="Static ARP table entries")
    actions = arp.add_subparsers(dest="action", required=True)

    def add_attributes(p: argparse.ArgumentParser, required: bool) -> None:
        p.add_argument("--fosid", type=int, required=required, help="Entry id")
        p.add_argument("--interface", required=required, help="Interface name (max 15 chars)")
        p.add_argument("--ip", required=required, help="IPv4 address")
        p.add_argument("--mac", required=required, help="MAC address")

    create = actions.add_parser("create", help="Create an entry")
    add_attributes(create, required=True)

    update = actions.add_parser("update", help="Update an entry")
    update.add_argument("id", help="Management key")
    add_attributes(update, required=True)

    for name, help_text in (
        ("read", "Read an entry"),
        ("delete", "Delete an entry"),
        ("import", "Import an existing entry"),
    ):
        p = actions.add_parser(name, help=help_text)
        p.add_argument("id", help="Management key")

    return parser


async def _main(args: argparse.Namespace) -> ResourceData:
    async with FortiOSClient(
        hostname=args.hostname,
        token=settings.FORTIOS_TOKEN,
        vdom=args.vdom,
        insecure=args.insecure,
        cabundlefile=settings.FORTIOS_CABUNDLEFILE,
        timeout=settings.FORTIOS_HTTP_TIMEOUT,
        retries=settings.FORTIOS_RETRIES,
    ) as client:
        return await run(args, client)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, stream=sys.stderr)

    try:
        d = asyncio.run(_main(args))
    except ResourceError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not d.id and args.action != "delete":
        print(f"Error: resource ({getattr(args, 'id', '')}) not found", file=sys.stderr)
        return 1

    print(json.dumps(d.state(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
