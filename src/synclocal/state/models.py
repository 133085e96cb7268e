"""Database models for the resource state store."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResourceStateModel(Base):
    """Persisted state of one managed resource."""

    __tablename__ = "resource_states"

    id = Column(Integer, primary_key=True, index=True)
    address = Column(String(255), nullable=False, unique=True, index=True)  # "<type>.<name>"
    resource_type = Column(String(50), nullable=False, index=True)
    resource_id = Column(String(4096), nullable=False)  # file:// identity
    attributes = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<ResourceStateModel(address='{self.address}', resource_id='{self.resource_id}')>"


@dataclass
class ResourceState:
    """Identity plus attributes of a resource, as exchanged with the resources layer.

    ``id`` is None for a resource that does not exist (never created, or its
    backing file disappeared).
    """

    id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def exists(self) -> bool:
        return bool(self.id)
