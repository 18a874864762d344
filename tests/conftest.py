"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
from rich.console import Console
from tenacity import wait_none

from auto_elite_admin.api_client import AutoEliteAPIClient
from auto_elite_admin.config import AdminConfig
from auto_elite_admin.routing import Router
from auto_elite_admin.storage import MemoryStorage, SessionStore
from auto_elite_admin.ui import Notifier

AUTH_URL = "http://api.test/api/v1"
CARS_URL = "http://api.test/api/v1/cars"
API_URL = "http://api.test/api"


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Retry transient GET failures immediately."""
    monkeypatch.setattr(AutoEliteAPIClient._get_json.retry, "wait", wait_none())


@pytest.fixture
def config(tmp_path: Path) -> AdminConfig:
    return AdminConfig(
        auth_base_url=AUTH_URL,
        cars_base_url=CARS_URL,
        api_base_url=API_URL,
        state_dir=tmp_path / "state",
    )


@pytest.fixture
def store() -> SessionStore:
    """Session store over two empty in-memory tiers."""
    return SessionStore(local=MemoryStorage(), session=MemoryStorage())


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=160, color_system=None)


@pytest.fixture
def notifier(console: Console) -> Notifier:
    return Notifier(console)


@pytest.fixture
def photos(tmp_path: Path) -> list[Path]:
    """Three small image files A, B and C, in selection order."""
    paths = []
    for name in ("a.jpg", "b.png", "c.gif"):
        path = tmp_path / name
        path.write_bytes(f"fake {name} content".encode())
        paths.append(path)
    return paths
