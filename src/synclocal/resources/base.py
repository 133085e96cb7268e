"""Base resource interface shared by all resource types."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, FrozenSet, List

from ..engines.base import BaseSyncEngine
from ..engines.errors import UnsupportedOperationError
from ..state.models import ResourceState
from ..utils.logging import get_logger


class BaseResource(ABC):
    """Abstract base class for managed resources.

    A resource adapts one sync engine to the create/read/update/delete
    lifecycle. ``force_new_fields`` lists the inputs whose change cannot be
    applied in place; the lifecycle driver replaces the resource instead.
    """

    type_name: ClassVar[str] = ""
    force_new_fields: ClassVar[FrozenSet[str]] = frozenset()
    supports_update: ClassVar[bool] = True

    def __init__(self, engine: BaseSyncEngine):
        self.engine = engine
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    async def create(self, config: Any) -> ResourceState:
        """Bring the resource into existence and return its state."""
        pass

    @abstractmethod
    async def read(self, state: ResourceState) -> ResourceState:
        """Refresh ``state`` from the backing file.

        Returns an empty state (no id) if the backing file is gone.
        """
        pass

    @abstractmethod
    async def has_drift(self, config: Any, state: ResourceState) -> bool:
        """True if applying ``config`` would change the destination."""
        pass

    async def update(self, config: Any, state: ResourceState) -> ResourceState:
        """Apply changed inputs in place."""
        raise UnsupportedOperationError(
            f"{self.type_name} resources cannot be updated in place",
            detail="changed inputs force the resource to be replaced"
        )

    async def reconcile(self, config: Any, state: ResourceState) -> ResourceState:
        """Re-check an existing resource whose inputs did not change."""
        return await self.update(config, state)

    async def delete(self, state: ResourceState) -> None:
        """Remove the backing file. Missing files are not an error."""
        if state.exists:
            self.engine.delete(state.id)

    def changed_fields(self, config: Any, state: ResourceState) -> List[str]:
        """Input fields whose configured value differs from the recorded one."""
        return sorted(
            name for name, value in config.inputs().items()
            if state.attributes.get(name) != value
        )

    def replacement_fields(self, config: Any, state: ResourceState) -> List[str]:
        """Changed fields that force the resource to be recreated."""
        changed = self.changed_fields(config, state)
        if not self.supports_update:
            return changed
        return [name for name in changed if name in self.force_new_fields]
