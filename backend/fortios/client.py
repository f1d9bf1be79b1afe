"""
Async FortiOS REST API client.

Talks to the CMDB (``/api/v2/cmdb/...``) and monitor (``/api/v2/monitor/...``)
endpoints of a FortiGate using ``httpx``. Authentication uses a REST API
admin token sent as a bearer header. Every call may be scoped to a VDOM.
"""

import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from config import settings
from utils.logging_utils import LogTimer

logger = logging.getLogger(__name__)

ARP_TABLE_PATH = "/api/v2/cmdb/system/arp-table"
SYSTEM_STATUS_PATH = "/api/v2/monitor/system/status"

# Seconds to wait between transport-level retry attempts
RETRY_DELAY_SECONDS = 1.0

_HTTP_STATUS_TEXT = {
    400: "Bad Request: Request cannot be processed by the API",
    401: "Not Authorized: Request without successful login session",
    403: "Forbidden: Request is missing CSRF token or administrator is missing access profile permissions",
    404: "Resource Not Found: Unable to find the specified resource",
    405: "Method Not Allowed: Specified HTTP method is not allowed for this resource",
    413: "Request Entity Too Large: Request cannot be processed due to large entity",
    424: "Failed Dependency: Fail dependency can be duplicate resource, missing required parameter, missing required attribute, invalid attribute value",
    429: "Access temporarily blocked: Maximum failed authentications reached",
    500: "Internal Server Error: Internal error when processing the request",
}

_FORTIOS_ERROR_TEXT = {
    -1: "Invalid length of value",
    -2: "Index value out of range",
    -3: "Entry not found",
    -4: "Maximum number of entries has been reached",
    -5: "A duplicate entry already exists",
    -6: "Failed memory allocation",
    -7: "File error",
    -8: "Invalid IP address",
    -9: "Invalid IP netmask",
    -15: "Invalid value",
    -23: "Entry is used",
}


class FortiAPIError(Exception):
    """Raised when a FortiOS API call fails at the transport or API level."""

    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        error_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.http_status = http_status
        self.error_code = error_code


def _error_message(http_status: Optional[int], body: Dict[str, Any]) -> str:
    """Build a readable message from an unsuccessful API response."""
    parts = []
    if http_status is not None:
        parts.append(
            f"HTTP {http_status} {_HTTP_STATUS_TEXT.get(http_status, 'Unexpected response')}"
        )
    code = body.get("error")
    if code is not None:
        text = _FORTIOS_ERROR_TEXT.get(code)
        parts.append(f"error {code}" + (f" ({text})" if text else ""))
    cli_error = body.get("cli_error")
    if cli_error:
        parts.append(str(cli_error).strip())
    return "; ".join(parts) or "Unknown FortiOS API error"


class FortiOSClient:
    """
    Thin async wrapper around the FortiOS REST API.

    ``retries`` is the total number of attempts made for a request when the
    connection itself fails. HTTP error responses are never retried.
    """

    def __init__(
        self,
        hostname: str,
        token: Optional[str] = None,
        vdom: Optional[str] = None,
        insecure: bool = False,
        cabundlefile: Optional[str] = None,
        timeout: float = 30.0,
        retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.hostname = hostname
        self.vdom = vdom
        self.retries = retries

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        if insecure:
            verify: Any = False
        elif cabundlefile:
            verify = cabundlefile
        else:
            verify = True

        base_url = hostname if hostname.startswith(("http://", "https://")) else f"https://{hostname}"
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            verify=verify,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "FortiOSClient":
        """Build a client from the application settings."""
        return cls(
            hostname=settings.FORTIOS_HOSTNAME,
            token=settings.FORTIOS_TOKEN,
            vdom=settings.FORTIOS_VDOM,
            insecure=settings.FORTIOS_INSECURE,
            cabundlefile=settings.FORTIOS_CABUNDLEFILE,
            timeout=settings.FORTIOS_HTTP_TIMEOUT,
            retries=settings.FORTIOS_RETRIES,
            transport=transport,
        )

    async def __aenter__(self) -> "FortiOSClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send one request, retrying on transport errors."""
        query = dict(params or {})
        if self.vdom:
            query["vdom"] = self.vdom

        attempts = max(1, self.retries)
        for attempt in range(1, attempts + 1):
            try:
                with LogTimer(
                    logger, f"{method} {path}", attempt=attempt, max_attempts=attempts
                ) as timer:
                    response = await self._http.request(method, path, json=json, params=query)
                    timer.set_http_status(response.status_code)
                return response
            except httpx.TransportError as e:
                if attempt == attempts:
                    raise FortiAPIError(
                        f"Error connecting to {self.hostname}: {e}"
                    ) from e
                logger.warning(
                    f"Transport error on {method} {path}, retrying: {e}",
                    extra={"attempt": attempt, "max_attempts": attempts},
                )
                await asyncio.sleep(RETRY_DELAY_SECONDS)

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send a request and return the decoded JSON body.

        Raises:
            FortiAPIError: on transport failure, an HTTP error status, or a
                body whose ``status`` is not ``success``.
        """
        response = await self._send(method, path, json=json, params=params)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not isinstance(body, dict):
            body = {"results": body}

        http_status = body.get("http_status", response.status_code)
        if response.is_error or body.get("status", "success") != "success":
            raise FortiAPIError(
                _error_message(http_status, body),
                http_status=http_status,
                error_code=body.get("error"),
            )
        return body

    # ── Generic CMDB helpers ──────────────────────────────────────────

    async def create_object(self, path: str, obj: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", path, json=obj)

    async def update_object(self, path: str, obj: Dict[str, Any], mkey: str) -> Dict[str, Any]:
        return await self.request("PUT", f"{path}/{quote(str(mkey), safe='')}", json=obj)

    async def delete_object(self, path: str, mkey: str) -> None:
        await self.request("DELETE", f"{path}/{quote(str(mkey), safe='')}")

    async def read_object(self, path: str, mkey: str) -> Optional[Dict[str, Any]]:
        """
        Read one CMDB object by management key.

        Returns None when the device reports the object does not exist.
        """
        try:
            body = await self.request("GET", f"{path}/{quote(str(mkey), safe='')}")
        except FortiAPIError as e:
            if e.http_status == 404:
                return None
            raise

        results = body.get("results")
        if isinstance(results, list):
            return results[0] if results else None
        if isinstance(results, dict):
            return results
        return None

    # ── system arp-table ──────────────────────────────────────────────

    async def create_system_arp_table(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        return await self.create_object(ARP_TABLE_PATH, obj)

    async def update_system_arp_table(self, obj: Dict[str, Any], mkey: str) -> Dict[str, Any]:
        return await self.update_object(ARP_TABLE_PATH, obj, mkey)

    async def delete_system_arp_table(self, mkey: str) -> None:
        await self.delete_object(ARP_TABLE_PATH, mkey)

    async def read_system_arp_table(self, mkey: str) -> Optional[Dict[str, Any]]:
        return await self.read_object(ARP_TABLE_PATH, mkey)

    # ── monitor ───────────────────────────────────────────────────────

    async def system_status(self) -> Dict[str, Any]:
        """Return firmware version, serial and hostname of the device."""
        body = await self.request("GET", SYSTEM_STATUS_PATH)
        results = body.get("results") or {}
        return {
            "version": body.get("version"),
            "serial": body.get("serial"),
            "build": body.get("build"),
            "hostname": results.get("hostname") if isinstance(results, dict) else None,
        }
