"""FortiOS REST API client package."""

from .client import (
    ARP_TABLE_PATH,
    FortiAPIError,
    FortiOSClient,
)

__all__ = [
    "ARP_TABLE_PATH",
    "FortiAPIError",
    "FortiOSClient",
]
