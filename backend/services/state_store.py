"""
Local resource state persistence.

Stores the last known attributes of every managed device object so that
updates and deletes can be issued against the right management key and
drift (objects removed on the device) can be detected on refresh.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from models import ResourceState
from provider import Resource, ResourceData

logger = logging.getLogger(__name__)


async def _get_row(
    db: AsyncSession, resource_type: str, resource_id: str
) -> Optional[ResourceState]:
    result = await db.execute(
        select(ResourceState).where(
            ResourceState.resource_type == resource_type,
            ResourceState.resource_id == resource_id,
        )
    )
    return result.scalar_one_or_none()


async def load(
    db: AsyncSession, resource: Resource, resource_id: str
) -> Optional[ResourceData]:
    """Load stored state for one object, or None when it is not tracked."""
    row = await _get_row(db, resource.name, resource_id)
    if row is None:
        return None
    return resource.data(id=row.resource_id, attributes=row.attributes)


async def save(
    db: AsyncSession,
    resource: Resource,
    d: ResourceData,
    previous_id: Optional[str] = None,
) -> ResourceState:
    """
    Persist ``d`` under its current id.

    ``previous_id`` is the id the state was stored under before the
    operation; the device may hand back a different management key on
    update, in which case the stored row is re-keyed. A row already stored
    under the new id describes an object the device no longer has and is
    replaced.
    """
    row = None
    if previous_id:
        row = await _get_row(db, resource.name, previous_id)
    existing = await _get_row(db, resource.name, d.id)
    if row is None:
        row = existing
    elif existing is not None and existing is not row:
        logger.warning(
            f"Replacing stale {resource.name} state {d.id}",
            extra={"mkey": d.id},
        )
        await db.delete(existing)
        # The unit of work orders UPDATEs before DELETEs
        await db.flush()

    if row is None:
        row = ResourceState(resource_type=resource.name, resource_id=d.id)
        db.add(row)
    elif row.resource_id != d.id:
        logger.info(
            f"Re-keying {resource.name} state {row.resource_id} -> {d.id}",
            extra={"mkey": d.id},
        )
        row.resource_id = d.id

    row.attributes = d.attributes()
    await db.commit()
    await db.refresh(row)
    return row


async def remove(db: AsyncSession, resource: Resource, resource_id: str) -> bool:
    """Drop stored state. Returns True if a row was removed."""
    result = await db.execute(
        delete(ResourceState).where(
            ResourceState.resource_type == resource.name,
            ResourceState.resource_id == resource_id,
        )
    )
    await db.commit()
    return result.rowcount > 0


async def list_states(
    db: AsyncSession, resource: Resource, skip: int = 0, limit: int = 50
) -> Tuple[int, List[ResourceState]]:
    """Return ``(total, rows)`` for one resource type, oldest first."""
    total = await db.scalar(
        select(func.count(ResourceState.id)).where(
            ResourceState.resource_type == resource.name
        )
    )
    result = await db.execute(
        select(ResourceState)
        .where(ResourceState.resource_type == resource.name)
        .order_by(ResourceState.id)
        .offset(skip)
        .limit(limit)
    )
    return total or 0, list(result.scalars().all())
