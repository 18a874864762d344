"""Client configuration loaded from the environment."""

import os
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_AUTH_URL = "http://localhost:8080/api/v1"
DEFAULT_CARS_URL = "http://localhost:8080/api/v1/cars"
DEFAULT_STATE_DIR = Path.home() / ".config" / "auto-elite-admin"
DEFAULT_TIMEOUT = 30.0


def _env_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _strip_url(url: str) -> str:
    return url.strip().rstrip("/")


@dataclass(frozen=True)
class AdminConfig:
    """Endpoint and storage settings.

    Attributes:
        auth_base_url: Base URL of the authentication service
        cars_base_url: Base URL of the car inventory service
        api_base_url: Base URL for dashboard statistics and car makes
        state_dir: Directory holding the persisted session tiers
        timeout: HTTP timeout in seconds
    """

    auth_base_url: str = DEFAULT_AUTH_URL
    cars_base_url: str = DEFAULT_CARS_URL
    api_base_url: str = DEFAULT_AUTH_URL
    state_dir: Path = DEFAULT_STATE_DIR
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "auth_base_url", _strip_url(self.auth_base_url))
        object.__setattr__(self, "cars_base_url", _strip_url(self.cars_base_url))
        object.__setattr__(self, "api_base_url", _strip_url(self.api_base_url))
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")

    @classmethod
    def from_env(cls) -> "AdminConfig":
        """Build a config from ``AUTO_ELITE_*`` environment variables."""
        auth_url = os.getenv("AUTO_ELITE_AUTH_URL") or DEFAULT_AUTH_URL
        state_dir = os.getenv("AUTO_ELITE_STATE_DIR")
        return cls(
            auth_base_url=auth_url,
            cars_base_url=os.getenv("AUTO_ELITE_CARS_URL") or DEFAULT_CARS_URL,
            api_base_url=os.getenv("AUTO_ELITE_API_URL") or auth_url,
            state_dir=Path(state_dir).expanduser() if state_dir else DEFAULT_STATE_DIR,
            timeout=_env_float(os.getenv("AUTO_ELITE_TIMEOUT"), DEFAULT_TIMEOUT),
        )

    def with_overrides(
        self, auth_base_url: str | None = None, cars_base_url: str | None = None
    ) -> "AdminConfig":
        """Return a copy with command-line URL overrides applied."""
        return replace(
            self,
            auth_base_url=auth_base_url or self.auth_base_url,
            cars_base_url=cars_base_url or self.cars_base_url,
        )

    @property
    def local_storage_path(self) -> Path:
        """Durable tier: survives across shells."""
        return self.state_dir / "local.json"

    @property
    def session_storage_path(self) -> Path:
        """Session tier: scoped to the invoking shell process."""
        return self.state_dir / f"session-{os.getppid()}.json"
