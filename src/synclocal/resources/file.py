"""Local file resource: a destination copied from a local source.

Local copy engine calls do blocking file I/O and run in the default thread
pool.
"""

import asyncio
from typing import Any, Callable, Optional

from ..config.schema import FileResourceConfig
from ..engines.base import LocalSyncTarget
from ..engines.identity import file_to_id
from ..engines.local_copy import LocalCopyEngine
from ..state.models import ResourceState
from .base import BaseResource


class FileResource(BaseResource):
    """Keeps ``destination`` byte-identical to ``source``."""

    type_name = "file"
    force_new_fields = frozenset({"destination"})
    supports_update = True

    def __init__(self, engine: Optional[LocalCopyEngine] = None):
        super().__init__(engine or LocalCopyEngine())

    @staticmethod
    async def _run(func: Callable[..., Any], *args) -> Any:
        return await asyncio.get_event_loop().run_in_executor(None, func, *args)

    @staticmethod
    def _target(config: FileResourceConfig) -> LocalSyncTarget:
        return LocalSyncTarget(
            source=config.source,
            destination=config.destination,
            file_mode=config.file_mode
        )

    async def create(self, config: FileResourceConfig) -> ResourceState:
        result = await self._run(self.engine.ensure_copy, self._target(config))
        identity = file_to_id(config.destination)
        return ResourceState(
            id=identity,
            attributes={**config.inputs(), "content_sha256": result.content_sha256}
        )

    async def read(self, state: ResourceState) -> ResourceState:
        if not state.exists:
            return ResourceState()
        content_sha256 = await self._run(self.engine.read, state.id)
        if content_sha256 is None:
            return ResourceState()
        return ResourceState(id=state.id, attributes={**state.attributes, "content_sha256": content_sha256})

    async def update(self, config: FileResourceConfig, state: ResourceState) -> ResourceState:
        result = await self._run(self.engine.ensure_copy, self._target(config))
        return ResourceState(
            id=state.id or file_to_id(config.destination),
            attributes={**config.inputs(), "content_sha256": result.content_sha256}
        )

    async def has_drift(self, config: FileResourceConfig, state: ResourceState) -> bool:
        return await self._run(self.engine.has_drift, self._target(config))
