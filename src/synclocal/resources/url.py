"""URL resource: a destination downloaded from an HTTP(S) URL."""

from typing import Optional

from ..config.schema import UrlResourceConfig
from ..engines.base import CachedMetadata, RemoteSyncTarget
from ..engines.identity import file_to_id
from ..engines.remote_fetch import RemoteFetchEngine
from ..state.models import ResourceState
from .base import BaseResource


class UrlResource(BaseResource):
    """Keeps ``filename`` in sync with ``url`` using conditional requests.

    Every input is identity-determining: a changed URL, header set, filename
    or mode replaces the resource rather than updating it.
    """

    type_name = "url"
    force_new_fields = frozenset({"url", "headers", "filename", "file_mode"})
    supports_update = False

    def __init__(self, engine: Optional[RemoteFetchEngine] = None):
        super().__init__(engine or RemoteFetchEngine.from_settings())

    @staticmethod
    def _target(config: UrlResourceConfig) -> RemoteSyncTarget:
        return RemoteSyncTarget(
            url=config.url,
            filename=config.filename,
            headers=dict(config.headers),
            file_mode=config.file_mode
        )

    @staticmethod
    def _cached(state: ResourceState) -> CachedMetadata:
        return CachedMetadata(
            etag=state.attributes.get("etag"),
            last_modified=state.attributes.get("last_modified")
        )

    async def create(self, config: UrlResourceConfig) -> ResourceState:
        result = await self.engine.fetch(self._target(config))
        identity = file_to_id(config.filename)
        return ResourceState(
            id=identity,
            attributes={
                **config.inputs(),
                "etag": result.metadata.etag,
                "last_modified": result.metadata.last_modified,
                "content_sha256": result.content_sha256
            }
        )

    async def reconcile(self, config: UrlResourceConfig, state: ResourceState) -> ResourceState:
        """Re-check the remote with a conditional GET.

        A 304 returns ``state`` unchanged; a 200 replaces the file, the cache
        validators and the fingerprint.
        """
        result = await self.engine.fetch(self._target(config), self._cached(state))
        if not result.changed:
            return state
        return ResourceState(
            id=state.id,
            attributes={
                **state.attributes,
                "etag": result.metadata.etag,
                "last_modified": result.metadata.last_modified,
                "content_sha256": result.content_sha256
            }
        )

    async def read(self, state: ResourceState) -> ResourceState:
        if not state.exists or not self.engine.read(state.id):
            return ResourceState()
        return state

    async def has_drift(self, config: UrlResourceConfig, state: ResourceState) -> bool:
        probe = await self.engine.probe(self._target(config), self._cached(state))
        return probe.changed

    async def close(self) -> None:
        """Release the HTTP session held by the engine."""
        await self.engine.close()
