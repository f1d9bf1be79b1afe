"""
Pytest configuration and fixtures for FortiState tests.

Provides:
- FakeFortiGate: an in-process emulation of the FortiOS arp-table REST API
  served through httpx.MockTransport
- FortiOSClient wired to the fake device
- Async SQLite in-memory state database
- FastAPI app with dependency overrides and an AsyncClient against it
"""

import json
import re

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from database import Base, get_db
from fortios import client as client_module
from fortios.client import FortiOSClient
from fortios.dependencies import get_forti_client
from main import app

ARP_ITEM_RE = re.compile(r"^/api/v2/cmdb/system/arp-table/(?P<mkey>[^/]+)$")


class FakeFortiGate:
    """Minimal FortiOS REST API for system arp-table."""

    def __init__(self, token: str = "test-token"):
        self.token = token
        self.entries: dict[int, dict] = {}
        self.requests: list[httpx.Request] = []
        # Number of upcoming requests that fail with a connection error
        self.fail_connections = 0
        # Forces a fixed response for the next request
        self.next_response: httpx.Response | None = None
        # Number of upcoming item reads that fail with an internal error
        self.failing_reads = 0

    def _reply(self, http_status: int, method: str, **extra) -> httpx.Response:
        body = {
            "http_method": method,
            "status": "success" if http_status == 200 else "error",
            "http_status": http_status,
            "vdom": "root",
            "build": 1517,
            "version": "v7.2.5",
            "serial": "FGVM01TM00000000",
        }
        body.update(extra)
        return httpx.Response(http_status, json=body)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.fail_connections > 0:
            self.fail_connections -= 1
            raise httpx.ConnectError("connection refused", request=request)

        if self.next_response is not None:
            response, self.next_response = self.next_response, None
            return response

        method = request.method
        if request.headers.get("authorization") != f"Bearer {self.token}":
            return self._reply(401, method)

        path = request.url.path
        if path == "/api/v2/monitor/system/status" and method == "GET":
            return self._reply(200, method, results={"hostname": "fgt-lab"})

        if path == "/api/v2/cmdb/system/arp-table" and method == "POST":
            obj = json.loads(request.content)
            if obj["id"] in self.entries:
                return self._reply(500, method, error=-5)
            self.entries[obj["id"]] = dict(obj)
            return self._reply(200, method, mkey=obj["id"])

        match = ARP_ITEM_RE.match(path)
        if match is None:
            return self._reply(404, method)
        try:
            mkey = int(match.group("mkey"))
        except ValueError:
            return self._reply(404, method, error=-3)
        if mkey not in self.entries:
            return self._reply(404, method, error=-3)

        if method == "GET":
            if self.failing_reads > 0:
                self.failing_reads -= 1
                return self._reply(500, method, error=-1)
            return self._reply(200, method, results=[dict(self.entries[mkey])], mkey=mkey)
        if method == "PUT":
            obj = json.loads(request.content)
            entry = self.entries.pop(mkey)
            entry.update(obj)
            self.entries[entry["id"]] = entry
            return self._reply(200, method, mkey=entry["id"])
        if method == "DELETE":
            del self.entries[mkey]
            return self._reply(200, method, mkey=mkey)
        return self._reply(405, method)


@pytest.fixture
def fortigate():
    """A fresh fake FortiGate with no ARP entries."""
    return FakeFortiGate()


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    """Skip the pause between transport retries."""
    monkeypatch.setattr(client_module, "RETRY_DELAY_SECONDS", 0)


@pytest_asyncio.fixture
async def forti_client(fortigate):
    """FortiOSClient talking to the fake device."""
    client = FortiOSClient(
        hostname="fgt.test",
        token=fortigate.token,
        retries=3,
        transport=httpx.MockTransport(fortigate.handle),
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def async_client(forti_client):
    """
    Create an AsyncClient pointing to the FastAPI app with an in-memory
    state database and the fake FortiGate. The database is created fresh
    for each test and cleaned up after the test completes.

    Yields:
        httpx.AsyncClient: Async HTTP client for making requests to the app.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        future=True,
    )

    async_session = sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        future=True,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def override_get_db():
        async with async_session() as session:
            yield session

    async def override_get_forti_client():
        yield forti_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_forti_client] = override_get_forti_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    await engine.dispose()
