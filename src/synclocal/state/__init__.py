"""Resource state store."""

from .database import (
    DatabaseManager,
    get_db_manager,
    init_database,
    close_database
)

from .models import ResourceStateModel, ResourceState
from .operations import StateRepository, get_state_repository
from .service import StateService

__all__ = [
    "DatabaseManager",
    "get_db_manager",
    "init_database",
    "close_database",

    "ResourceStateModel",
    "ResourceState",

    "StateRepository",
    "get_state_repository",

    "StateService"
]
