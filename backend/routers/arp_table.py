"""
ARP table API endpoints.

Drives the fortios_system_arptable resource lifecycle against the device and
keeps the local resource state in sync with what the device reports.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from fortios.client import FortiOSClient
from fortios.dependencies import get_forti_client
from models import ResourceState
from provider import ResourceData, ResourceError, resource_system_arp_table
from schemas import (
    ArpTableCreate,
    ArpTableUpdate,
    ArpTableResponse,
    ImportRequest,
    PaginatedResponse,
)
from services import state_store
from utils.audit import audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/system/arp-table", tags=["arp-table"])

RESOURCE = resource_system_arp_table


def _to_response(d: ResourceData, row: Optional[ResourceState] = None) -> ArpTableResponse:
    return ArpTableResponse(
        id=d.id,
        **d.attributes(),
        updated_at=row.updated_at if row is not None else None,
    )


def _row_to_response(row: ResourceState) -> ArpTableResponse:
    return ArpTableResponse(id=row.resource_id, **row.attributes, updated_at=row.updated_at)


async def _load_or_404(db: AsyncSession, entry_id: str) -> ResourceData:
    d = await state_store.load(db, RESOURCE, entry_id)
    if d is None:
        raise HTTPException(status_code=404, detail=f"ARP table entry {entry_id} is not managed")
    return d


async def _forget(db: AsyncSession, entry_id: str) -> None:
    """Drop state for an object that vanished from the device and answer 404."""
    await state_store.remove(db, RESOURCE, entry_id)
    audit.log_drift(RESOURCE.name, entry_id)
    raise HTTPException(
        status_code=404,
        detail=f"ARP table entry {entry_id} no longer exists on the device",
    )


@router.get("", response_model=PaginatedResponse)
async def list_arp_table(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """
    List managed ARP table entries from local state.

    Does not contact the device.
    """
    total, rows = await state_store.list_states(db, RESOURCE, skip=skip, limit=limit)
    return {
        "total": total,
        "skip": skip,
        "limit": limit,
        "items": [_row_to_response(row) for row in rows],
    }


@router.post("", response_model=ArpTableResponse, status_code=201)
async def create_arp_table(
    entry: ArpTableCreate,
    db: AsyncSession = Depends(get_db),
    client: FortiOSClient = Depends(get_forti_client),
):
    """
    Create an ARP table entry on the device and start managing it.
    """
    d = RESOURCE.data(attributes=entry.model_dump())
    problems = d.validate()
    if problems:
        raise HTTPException(status_code=422, detail=problems)

    try:
        await RESOURCE.create(d, client)
    except ResourceError as e:
        audit.log_resource_change("CREATE", RESOURCE.name, d.id, entry.model_dump(), str(e))
        if d.id:
            # Created on the device but the read-back failed; track the
            # requested attributes so refresh, update and delete still work
            await state_store.save(db, RESOURCE, d)
        raise

    if not d.id:
        raise HTTPException(
            status_code=502,
            detail=(
                f"ARP table entry {entry.fosid} was created but could not be read back "
                "from the device; import it once it is readable"
            ),
        )

    row = await state_store.save(db, RESOURCE, d)
    audit.log_resource_change("CREATE", RESOURCE.name, d.id, d.attributes())
    return _to_response(d, row)


@router.post("/import", response_model=ArpTableResponse, status_code=201)
async def import_arp_table(
    request: ImportRequest,
    db: AsyncSession = Depends(get_db),
    client: FortiOSClient = Depends(get_forti_client),
):
    """
    Adopt an ARP table entry that already exists on the device.

    The import id is used verbatim as the management key.
    """
    if await state_store.load(db, RESOURCE, request.id) is not None:
        raise HTTPException(
            status_code=409,
            detail=f"ARP table entry {request.id} is already managed",
        )

    imported = await RESOURCE.importer(RESOURCE.data(id=request.id), client)
    d = imported[0]
    await RESOURCE.read(d, client)
    if not d.id:
        raise HTTPException(
            status_code=404,
            detail=f"ARP table entry {request.id} does not exist on the device",
        )

    row = await state_store.save(db, RESOURCE, d)
    audit.log_resource_change("IMPORT", RESOURCE.name, d.id, d.attributes())
    return _to_response(d, row)


@router.get("/{entry_id}", response_model=ArpTableResponse)
async def read_arp_table(
    entry_id: str,
    db: AsyncSession = Depends(get_db),
    client: FortiOSClient = Depends(get_forti_client),
):
    """
    Refresh a managed entry from the device.

    Entries that no longer exist on the device are dropped from local state.
    """
    d = await _load_or_404(db, entry_id)

    await RESOURCE.read(d, client)
    if not d.id:
        await _forget(db, entry_id)

    row = await state_store.save(db, RESOURCE, d, previous_id=entry_id)
    return _to_response(d, row)


@router.put("/{entry_id}", response_model=ArpTableResponse)
async def update_arp_table(
    entry_id: str,
    entry_update: ArpTableUpdate,
    db: AsyncSession = Depends(get_db),
    client: FortiOSClient = Depends(get_forti_client),
):
    """
    Update a managed entry on the device.

    Only provided fields change; the rest keep their stored values.
    """
    d = await _load_or_404(db, entry_id)

    changes = entry_update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        d.set(field, value)

    problems = d.validate()
    if problems:
        raise HTTPException(status_code=422, detail=problems)

    try:
        await RESOURCE.update(d, client)
    except ResourceError as e:
        audit.log_resource_change("UPDATE", RESOURCE.name, entry_id, changes, str(e))
        raise

    if not d.id:
        await _forget(db, entry_id)

    row = await state_store.save(db, RESOURCE, d, previous_id=entry_id)
    audit.log_resource_change("UPDATE", RESOURCE.name, d.id, changes)
    return _to_response(d, row)


@router.delete("/{entry_id}", status_code=204)
async def delete_arp_table(
    entry_id: str,
    db: AsyncSession = Depends(get_db),
    client: FortiOSClient = Depends(get_forti_client),
):
    """
    Delete a managed entry from the device and stop managing it.
    """
    d = await _load_or_404(db, entry_id)

    try:
        await RESOURCE.delete(d, client)
    except ResourceError as e:
        audit.log_resource_change("DELETE", RESOURCE.name, entry_id, None, str(e))
        raise

    await state_store.remove(db, RESOURCE, entry_id)
    audit.log_resource_change("DELETE", RESOURCE.name, entry_id)
