"""
FastAPI dependencies for FortiOS API access.

Usage in routers::

    from fortios.dependencies import get_forti_client

    @router.get("/status")
    async def status_endpoint(client: FortiOSClient = Depends(get_forti_client)):
        ...
"""

from typing import AsyncGenerator

from .client import FortiOSClient


async def get_forti_client() -> AsyncGenerator[FortiOSClient, None]:
    """Yield a client configured from settings, closed after the request."""
    async with FortiOSClient.from_settings() as client:
        yield client
