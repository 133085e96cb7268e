"""Lifecycle driver: plan and apply a manifest of resources against the state store."""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config.schema import ManifestConfig
from ..config.settings import get_settings
from ..engines.errors import Diagnostic, Severity, SyncError
from ..engines.local_copy import LocalCopyEngine
from ..engines.remote_fetch import RemoteFetchEngine
from ..resources import BaseResource, ResourceFactory
from ..state import ResourceState, StateService
from ..utils.logging import get_logger, log_async_execution_time


class PlanAction(str, Enum):
    """What applying a resource will do."""
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    REFRESH = "refresh"
    NOOP = "noop"
    DELETE = "delete"


@dataclass
class ResourcePlan:
    """Planned action for one resource address."""

    address: str
    resource_type: str
    action: Optional[PlanAction] = None  # None when planning failed
    reasons: List[str] = field(default_factory=list)
    config: Optional[Any] = None
    state: ResourceState = field(default_factory=ResourceState)
    error: Optional[SyncError] = None


@dataclass
class SyncResult:
    """Result of applying one resource."""

    address: str
    action: Optional[PlanAction]
    success: bool
    changed: bool = False
    resource_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    sync_duration: Optional[float] = None


@dataclass
class SyncStats:
    """Statistics for one apply/destroy run."""

    total_resources: int
    successful_syncs: int
    failed_syncs: int
    total_changed: int
    total_duration: float
    results: List[SyncResult] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total_resources == 0:
            return 0.0
        return (self.successful_syncs / self.total_resources) * 100


def resource_address(config: Any) -> str:
    """State address of a resource block, e.g. ``file.copy``."""
    return f"{config.type}.{config.name}"


class SyncEngine:
    """Plans and applies resource manifests."""

    def __init__(
        self,
        state_service: StateService,
        local_engine: Optional[LocalCopyEngine] = None,
        remote_engine: Optional[RemoteFetchEngine] = None
    ):
        """Initialize sync engine.

        Args:
            state_service: Store for resource identities and attributes
            local_engine: Engine shared by all ``file`` resources
            remote_engine: Engine (and HTTP session) shared by all ``url`` resources
        """
        settings = get_settings()
        self.state_service = state_service
        self.local_engine = local_engine or LocalCopyEngine(chunk_size=settings.http.chunk_size)
        self.remote_engine = remote_engine or RemoteFetchEngine.from_settings(settings.http)
        self.logger = get_logger(self.__class__.__name__)

        self._engines = {
            "file": self.local_engine,
            "url": self.remote_engine,
        }

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Release the HTTP session."""
        await self.remote_engine.close()

    def _resource(self, resource_type: str) -> BaseResource:
        engine = self._engines.get(resource_type)
        if engine is None:
            return ResourceFactory.create_resource(resource_type)
        return ResourceFactory.create_resource(resource_type, engine=engine)

    async def plan_resource(self, config: Any, probe_remote: bool = True) -> ResourcePlan:
        """Decide what applying ``config`` would do.

        With ``probe_remote`` False, resources that cannot be updated in place
        are planned as REFRESH (a conditional request) instead of being probed.
        """
        address = resource_address(config)
        plan = ResourcePlan(address=address, resource_type=config.type, config=config)
        resource = self._resource(config.type)

        state = self.state_service.get(address)
        if not state.exists:
            plan.action = PlanAction.CREATE
            plan.reasons.append("not yet created")
            return plan

        state = await resource.read(state)
        if not state.exists:
            plan.action = PlanAction.CREATE
            plan.reasons.append("backing file no longer exists")
            return plan
        plan.state = state

        replace = resource.replacement_fields(config, state)
        if replace:
            plan.action = PlanAction.REPLACE
            plan.reasons.extend(f"{name} changed" for name in replace)
            return plan

        changed = resource.changed_fields(config, state)
        if changed:
            plan.action = PlanAction.UPDATE
            plan.reasons.extend(f"{name} changed" for name in changed)
            return plan

        if not resource.supports_update and not probe_remote:
            plan.action = PlanAction.REFRESH
            plan.reasons.append("conditional request on apply")
            return plan

        if await resource.has_drift(config, state):
            if resource.supports_update:
                plan.action = PlanAction.UPDATE
                plan.reasons.append("destination content differs from source")
            else:
                plan.action = PlanAction.REFRESH
                plan.reasons.append("remote content changed")
            return plan

        plan.action = PlanAction.NOOP
        return plan

    async def plan(self, manifest: ManifestConfig, probe_remote: bool = True) -> List[ResourcePlan]:
        """Plan every resource in ``manifest`` plus deletion of resources no longer listed."""
        plans = []
        for config in manifest.resources:
            try:
                plans.append(await self.plan_resource(config, probe_remote=probe_remote))
            except SyncError as e:
                plans.append(ResourcePlan(
                    address=resource_address(config),
                    resource_type=config.type,
                    config=config,
                    error=e
                ))

        plans.extend(self._orphan_plans(manifest))
        return plans

    def _orphan_plans(self, manifest: Optional[ManifestConfig]) -> List[ResourcePlan]:
        wanted = {resource_address(c) for c in manifest.resources} if manifest else set()
        types = self.state_service.resource_types()
        return [
            ResourcePlan(
                address=address,
                resource_type=types[address],
                action=PlanAction.DELETE,
                reasons=["no longer in manifest"] if manifest else ["destroy"],
                state=state
            )
            for address, state in self.state_service.list_states().items()
            if address not in wanted
        ]

    @log_async_execution_time
    async def apply(self, manifest: ManifestConfig) -> SyncStats:
        """Bring every resource in ``manifest`` up to date.

        Resources are independent: they run concurrently, local copies in
        worker threads, and one failure does not stop the others.
        """
        start_time = time.monotonic()
        self.logger.info("Starting apply", resources=len(manifest.resources))

        tasks = [self.sync_resource(config) for config in manifest.resources]
        tasks.extend(self._delete_planned(plan) for plan in self._orphan_plans(manifest))
        results = await asyncio.gather(*tasks)

        stats = self._calculate_sync_stats(results, start_time)
        self.logger.info(
            "Apply completed",
            total_resources=stats.total_resources,
            successful_syncs=stats.successful_syncs,
            failed_syncs=stats.failed_syncs,
            changed=stats.total_changed,
            duration=f"{stats.total_duration:.2f}s"
        )
        return stats

    @log_async_execution_time
    async def destroy(self, manifest: Optional[ManifestConfig] = None) -> SyncStats:
        """Delete the resources of ``manifest``, or every recorded resource."""
        start_time = time.monotonic()
        types = self.state_service.resource_types()
        states = self.state_service.list_states()

        if manifest is None:
            addresses = list(states)
        else:
            addresses = [resource_address(c) for c in manifest.resources if resource_address(c) in states]

        plans = [
            ResourcePlan(
                address=address,
                resource_type=types[address],
                action=PlanAction.DELETE,
                reasons=["destroy"],
                state=states[address]
            )
            for address in addresses
        ]
        results = await asyncio.gather(*(self._delete_planned(plan) for plan in plans))
        return self._calculate_sync_stats(results, start_time)

    async def sync_resource(self, config: Any) -> SyncResult:
        """Plan and apply a single resource block."""
        start_time = time.monotonic()
        address = resource_address(config)
        result = SyncResult(address=address, action=None, success=False)

        try:
            plan = await self.plan_resource(config, probe_remote=False)
            result.action = plan.action
            resource = self._resource(config.type)

            if plan.action == PlanAction.CREATE:
                new_state = await resource.create(config)
            elif plan.action == PlanAction.REPLACE:
                await resource.delete(plan.state)
                self.state_service.remove(address)
                new_state = await resource.create(config)
            elif plan.action == PlanAction.UPDATE:
                new_state = await resource.update(config, plan.state)
            elif plan.action == PlanAction.REFRESH:
                new_state = await resource.reconcile(config, plan.state)
            else:
                new_state = plan.state

            self.state_service.save(address, config.type, new_state)

            result.success = True
            result.changed = (
                plan.action in (PlanAction.CREATE, PlanAction.REPLACE)
                or new_state.attributes != plan.state.attributes
            )
            result.resource_id = new_state.id
            result.attributes = dict(new_state.attributes)

        except SyncError as e:
            result.error_message = str(e)
            result.diagnostics = e.to_diagnostics()
            self.logger.error("Resource sync failed", address=address, error=str(e))

        except Exception as e:
            error_msg = f"Unexpected error during sync: {e}"
            result.error_message = error_msg
            result.diagnostics = [Diagnostic(severity=Severity.ERROR, summary=error_msg)]
            self.logger.error("Resource sync failed with unexpected error", address=address, error=error_msg)

        finally:
            result.sync_duration = time.monotonic() - start_time

        self.logger.info(
            "Resource synced" if result.success else "Resource not synced",
            address=address,
            action=result.action.value if result.action else None,
            changed=result.changed,
            duration=f"{result.sync_duration:.3f}s"
        )
        return result

    async def _delete_planned(self, plan: ResourcePlan) -> SyncResult:
        start_time = time.monotonic()
        result = SyncResult(address=plan.address, action=PlanAction.DELETE, success=False)

        try:
            resource = self._resource(plan.resource_type)
            await resource.delete(plan.state)
            self.state_service.remove(plan.address)
            result.success = True
            result.changed = True

        except SyncError as e:
            result.error_message = str(e)
            result.diagnostics = e.to_diagnostics()
            self.logger.error("Resource delete failed", address=plan.address, error=str(e))

        except Exception as e:
            error_msg = f"Unexpected error during delete: {e}"
            result.error_message = error_msg
            result.diagnostics = [Diagnostic(severity=Severity.ERROR, summary=error_msg)]
            self.logger.error("Resource delete failed with unexpected error", address=plan.address, error=error_msg)

        finally:
            result.sync_duration = time.monotonic() - start_time

        return result

    def _calculate_sync_stats(self, results: List[SyncResult], start_time: float) -> SyncStats:
        """Calculate overall sync statistics."""
        successful = [r for r in results if r.success]
        return SyncStats(
            total_resources=len(results),
            successful_syncs=len(successful),
            failed_syncs=len(results) - len(successful),
            total_changed=sum(1 for r in successful if r.changed),
            total_duration=time.monotonic() - start_time,
            results=list(results)
        )
