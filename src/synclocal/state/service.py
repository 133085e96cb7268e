"""High-level state store service."""

from contextlib import contextmanager
from typing import Dict, Optional

from .database import DatabaseManager, get_db_manager
from .models import ResourceState
from .operations import get_state_repository
from ..utils.logging import LoggerMixin


class StateService(LoggerMixin):
    """Persists resource identities and computed attributes between runs."""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self.db_manager = db_manager or get_db_manager()

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        with self.db_manager.session_scope() as session:
            yield session

    def get(self, address: str) -> ResourceState:
        """State for ``address``; an empty state if nothing is recorded."""
        with self.transaction() as session:
            row = get_state_repository(session).get_by_address(address)
            if row is None:
                return ResourceState()
            return ResourceState(id=row.resource_id, attributes=dict(row.attributes or {}))

    def save(self, address: str, resource_type: str, state: ResourceState) -> None:
        """Record ``state`` for ``address``, or forget it if the state has no identity."""
        with self.transaction() as session:
            repo = get_state_repository(session)
            if not state.exists:
                repo.delete(address)
                self.logger.debug("Forgot resource without identity", address=address)
                return
            repo.upsert(address, resource_type, state.id, state.attributes)
        self.logger.debug("Resource state saved", address=address, resource_id=state.id)

    def remove(self, address: str) -> bool:
        """Forget the state for ``address``."""
        with self.transaction() as session:
            removed = get_state_repository(session).delete(address)
        if removed:
            self.logger.debug("Resource state removed", address=address)
        return removed

    def list_states(self) -> Dict[str, ResourceState]:
        """All recorded states keyed by address."""
        with self.transaction() as session:
            return {
                row.address: ResourceState(id=row.resource_id, attributes=dict(row.attributes or {}))
                for row in get_state_repository(session).get_all()
            }

    def resource_types(self) -> Dict[str, str]:
        """Resource type of every recorded address."""
        with self.transaction() as session:
            return {row.address: row.resource_type for row in get_state_repository(session).get_all()}
