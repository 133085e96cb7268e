"""Shared test fixtures."""

import pytest

from synclocal.state import DatabaseManager, StateService


@pytest.fixture
def db_manager():
    """In-memory SQLite state store."""
    manager = DatabaseManager("sqlite:///:memory:")
    manager.create_tables()
    yield manager
    manager.engine.dispose()


@pytest.fixture
def state_service(db_manager):
    return StateService(db_manager)


@pytest.fixture
def write_file(tmp_path):
    """Write ``content`` to ``tmp_path / name`` and return the path as a string."""

    def _write(name: str, content: bytes = b"hello", mode: int = None) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        if mode is not None:
            path.chmod(mode)
        return str(path)

    return _write
