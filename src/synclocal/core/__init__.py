"""Core lifecycle logic package."""

from .sync_engine import (
    PlanAction,
    ResourcePlan,
    SyncEngine,
    SyncResult,
    SyncStats,
    resource_address
)

__all__ = [
    "PlanAction",
    "ResourcePlan",
    "SyncEngine",
    "SyncResult",
    "SyncStats",
    "resource_address"
]
