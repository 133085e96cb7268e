"""Database operations for resource state."""

from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from .models import ResourceStateModel


class StateRepository:
    """Repository for resource state rows."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_address(self, address: str) -> Optional[ResourceStateModel]:
        """Get the state row for a resource address."""
        return self.session.query(ResourceStateModel).filter(ResourceStateModel.address == address).first()

    def get_all(self, resource_type: Optional[str] = None) -> List[ResourceStateModel]:
        """Get all state rows, optionally of one resource type."""
        query = self.session.query(ResourceStateModel)
        if resource_type:
            query = query.filter(ResourceStateModel.resource_type == resource_type)
        return query.order_by(ResourceStateModel.address).all()

    def upsert(
        self,
        address: str,
        resource_type: str,
        resource_id: str,
        attributes: Dict[str, Any]
    ) -> ResourceStateModel:
        """Create or replace the state row for ``address``."""
        row = self.get_by_address(address)
        if row is None:
            row = ResourceStateModel(address=address, resource_type=resource_type)
            self.session.add(row)

        row.resource_type = resource_type
        row.resource_id = resource_id
        row.attributes = dict(attributes)
        self.session.flush()
        return row

    def delete(self, address: str) -> bool:
        """Delete the state row for ``address``."""
        row = self.get_by_address(address)
        if row is None:
            return False
        self.session.delete(row)
        return True


def get_state_repository(session: Session) -> StateRepository:
    """Get state repository instance."""
    return StateRepository(session)
