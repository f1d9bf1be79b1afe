"""
Tests for the FortiOS REST API client.

Covers:
- CMDB create/read/update/delete against the fake device
- Bearer token and VDOM scoping
- Error translation into FortiAPIError
- Retry behaviour on connection failures
"""

import json

import httpx
import pytest

from fortios.client import ARP_TABLE_PATH, FortiAPIError, FortiOSClient

ENTRY = {"id": 1, "interface": "port1", "ip": "10.0.0.5", "mac": "00:11:22:33:44:55"}


class TestCrud:
    """CMDB operations on system arp-table."""

    @pytest.mark.asyncio
    async def test_create_returns_mkey(self, forti_client, fortigate):
        body = await forti_client.create_system_arp_table(ENTRY)
        assert body["mkey"] == 1
        assert fortigate.entries[1]["mac"] == "00:11:22:33:44:55"

        request = fortigate.requests[-1]
        assert request.method == "POST"
        assert request.url.path == ARP_TABLE_PATH
        assert json.loads(request.content) == ENTRY

    @pytest.mark.asyncio
    async def test_sends_bearer_token(self, forti_client, fortigate):
        await forti_client.create_system_arp_table(ENTRY)
        assert fortigate.requests[-1].headers["authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_read_returns_first_result(self, forti_client, fortigate):
        fortigate.entries[1] = dict(ENTRY)
        o = await forti_client.read_system_arp_table("1")
        assert o == ENTRY
        assert fortigate.requests[-1].url.path == f"{ARP_TABLE_PATH}/1"

    @pytest.mark.asyncio
    async def test_read_missing_returns_none(self, forti_client):
        assert await forti_client.read_system_arp_table("42") is None

    @pytest.mark.asyncio
    async def test_read_empty_results_returns_none(self, forti_client, fortigate):
        fortigate.next_response = httpx.Response(
            200, json={"status": "success", "http_status": 200, "results": []}
        )
        assert await forti_client.read_system_arp_table("1") is None

    @pytest.mark.asyncio
    async def test_update_puts_to_mkey(self, forti_client, fortigate):
        fortigate.entries[1] = dict(ENTRY)
        body = await forti_client.update_system_arp_table(
            {**ENTRY, "interface": "port2"}, "1"
        )
        assert body["mkey"] == 1
        assert fortigate.entries[1]["interface"] == "port2"
        assert fortigate.requests[-1].method == "PUT"

    @pytest.mark.asyncio
    async def test_delete(self, forti_client, fortigate):
        fortigate.entries[1] = dict(ENTRY)
        await forti_client.delete_system_arp_table("1")
        assert fortigate.entries == {}
        assert fortigate.requests[-1].method == "DELETE"

    @pytest.mark.asyncio
    async def test_mkey_is_url_escaped(self, forti_client, fortigate):
        await forti_client.read_system_arp_table("a/b c")
        assert fortigate.requests[-1].url.raw_path.startswith(
            f"{ARP_TABLE_PATH}/a%2Fb%20c".encode()
        )


class TestVdom:
    """VDOM scoping."""

    @pytest.mark.asyncio
    async def test_vdom_query_param(self, fortigate):
        async with FortiOSClient(
            hostname="fgt.test",
            token=fortigate.token,
            vdom="customer1",
            transport=httpx.MockTransport(fortigate.handle),
        ) as client:
            await client.create_system_arp_table(ENTRY)
        assert fortigate.requests[-1].url.params["vdom"] == "customer1"

    @pytest.mark.asyncio
    async def test_no_vdom_by_default(self, forti_client, fortigate):
        await forti_client.create_system_arp_table(ENTRY)
        assert "vdom" not in fortigate.requests[-1].url.params


class TestErrors:
    """Error responses become FortiAPIError."""

    @pytest.mark.asyncio
    async def test_duplicate_create(self, forti_client, fortigate):
        fortigate.entries[1] = dict(ENTRY)
        with pytest.raises(FortiAPIError) as exc_info:
            await forti_client.create_system_arp_table(ENTRY)
        assert exc_info.value.http_status == 500
        assert exc_info.value.error_code == -5
        assert "duplicate entry" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unauthorized(self, fortigate):
        async with FortiOSClient(
            hostname="fgt.test",
            token="wrong",
            transport=httpx.MockTransport(fortigate.handle),
        ) as client:
            with pytest.raises(FortiAPIError) as exc_info:
                await client.read_system_arp_table("1")
        assert exc_info.value.http_status == 401

    @pytest.mark.asyncio
    async def test_error_status_in_body(self, forti_client, fortigate):
        fortigate.next_response = httpx.Response(
            200,
            json={"status": "error", "http_status": 500, "error": -8, "cli_error": "invalid ip"},
        )
        with pytest.raises(FortiAPIError) as exc_info:
            await forti_client.create_system_arp_table(ENTRY)
        message = str(exc_info.value)
        assert "Invalid IP address" in message
        assert "invalid ip" in message

    @pytest.mark.asyncio
    async def test_read_server_error_is_raised(self, forti_client, fortigate):
        fortigate.next_response = httpx.Response(500, json={"status": "error", "http_status": 500})
        with pytest.raises(FortiAPIError):
            await forti_client.read_system_arp_table("1")

    @pytest.mark.asyncio
    async def test_non_json_body(self, forti_client, fortigate):
        fortigate.next_response = httpx.Response(502, text="Bad Gateway")
        with pytest.raises(FortiAPIError) as exc_info:
            await forti_client.delete_system_arp_table("1")
        assert exc_info.value.http_status == 502


class TestRetries:
    """Connection failures are retried up to the configured attempt count."""

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, forti_client, fortigate):
        fortigate.fail_connections = 2
        body = await forti_client.create_system_arp_table(ENTRY)
        assert body["mkey"] == 1
        assert len(fortigate.requests) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self, forti_client, fortigate):
        forti_client.retries = 2
        fortigate.fail_connections = 5
        with pytest.raises(FortiAPIError) as exc_info:
            await forti_client.read_system_arp_table("1")
        assert "Error connecting to fgt.test" in str(exc_info.value)
        assert exc_info.value.http_status is None
        assert len(fortigate.requests) == 2

    @pytest.mark.asyncio
    async def test_single_attempt(self, forti_client, fortigate):
        forti_client.retries = 1
        fortigate.fail_connections = 1
        with pytest.raises(FortiAPIError):
            await forti_client.read_system_arp_table("1")
        assert len(fortigate.requests) == 1

    @pytest.mark.asyncio
    async def test_http_errors_are_not_retried(self, forti_client, fortigate):
        await forti_client.read_system_arp_table("7")
        assert len(fortigate.requests) == 1


class TestMonitor:
    """Monitor endpoints."""

    @pytest.mark.asyncio
    async def test_system_status(self, forti_client):
        status = await forti_client.system_status()
        assert status["version"] == "v7.2.5"
        assert status["hostname"] == "fgt-lab"
