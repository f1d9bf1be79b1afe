"""
Pydantic v2 schemas with strict input validation and lenient output serialization.

Architecture:
  - *Fields classes: pure field definitions, no validators.  Shared by both
    input (Create/Update) and output (Response) schemas.
  - *Create / *Update classes: inherit from *Fields and ADD strict validators
    so bad data is rejected before anything is pushed to the device.
  - *Response classes: inherit from *Fields directly (no validators) so any
    value the device hands back serializes without crashing.
"""

from datetime import datetime
from typing import Optional, List, Any
from ipaddress import IPv4Address
import re

from pydantic import BaseModel, Field, field_validator


MAC_RE = re.compile(r"^([0-9A-Fa-f]{2}[:\-]){5}[0-9A-Fa-f]{2}$")

INTERFACE_MAX_LENGTH = 15
FOSID_MAX = 4294967295


def _validate_ipv4(value: str) -> str:
    """Validate an IPv4 address string."""
    try:
        IPv4Address(value)
    except ValueError:
        raise ValueError(
            f"Invalid IP address '{value}'. Expected IPv4 (e.g. 192.168.1.1)"
        )
    return value


def _validate_mac(value: str) -> str:
    """Validate a MAC address string and normalize it to colon notation."""
    if not MAC_RE.match(value):
        raise ValueError(
            f"Invalid MAC address '{value}'. "
            "Expected format: XX:XX:XX:XX:XX:XX or XX-XX-XX-XX-XX-XX"
        )
    return value.replace("-", ":").lower()


def _validate_interface(value: str) -> str:
    if not value.strip():
        raise ValueError("Interface name must not be blank")
    return value


# ═══════════════════════════════════════════════════════════════════════
# ARP TABLE SCHEMAS
# ═══════════════════════════════════════════════════════════════════════

class ArpTableFields(BaseModel):
    """Pure field definitions for ARP table entries.  No validators."""

    fosid: int = Field(..., ge=0, le=FOSID_MAX)
    interface: str = Field(..., max_length=INTERFACE_MAX_LENGTH)
    ip: str
    mac: str


class _ArpTableValidators:
    """Mixin-style validators reused by ArpTableCreate and ArpTableUpdate."""

    @field_validator("ip")
    @classmethod
    def validate_ip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _validate_ipv4(v)

    @field_validator("mac")
    @classmethod
    def validate_mac(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _validate_mac(v)

    @field_validator("interface")
    @classmethod
    def validate_interface(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _validate_interface(v)


class ArpTableCreate(ArpTableFields, _ArpTableValidators):
    """Schema for creating an ARP table entry with strict validation."""
    pass


class ArpTableUpdate(BaseModel, _ArpTableValidators):
    """Schema for updating an ARP table entry (all fields optional, with validation)."""

    fosid: Optional[int] = Field(None, ge=0, le=FOSID_MAX)
    interface: Optional[str] = Field(None, max_length=INTERFACE_MAX_LENGTH)
    ip: Optional[str] = None
    mac: Optional[str] = None


class ArpTableResponse(BaseModel):
    """Schema for ARP table entry responses, serialization only."""

    id: str
    fosid: Optional[int] = None
    interface: Optional[str] = None
    ip: Optional[str] = None
    mac: Optional[str] = None
    updated_at: Optional[datetime] = None


class ImportRequest(BaseModel):
    """Schema for adopting an existing device object into local state."""

    id: str = Field(..., min_length=1, max_length=255)


class PaginatedResponse(BaseModel):
    """Generic paginated response."""

    total: int
    skip: int
    limit: int
    items: List[Any]
