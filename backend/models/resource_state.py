from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResourceState(Base):
    """Last known state of one managed device object."""

    __tablename__ = "resource_states"

    id = Column(Integer, primary_key=True, index=True)

    # e.g. "fortios_system_arptable"
    resource_type = Column(String(100), nullable=False, index=True)
    # Management key on the device
    resource_id = Column(String(255), nullable=False)

    # Attribute values as last read back from the device
    attributes = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("resource_type", "resource_id", name="uq_resource_type_id"),
    )

    def __repr__(self):
        return f"<ResourceState(type={self.resource_type}, id={self.resource_id})>"
