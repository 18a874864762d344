"""Exception hierarchy for the Auto Elite admin client."""

from pathlib import Path


class AdminError(Exception):
    """Base exception for all admin client errors."""

    pass


class ValidationError(AdminError):
    """Missing or invalid local input, detected before any request is sent."""

    pass


class ImageReadError(ValidationError):
    """A selected image could not be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not read image {path.name}: {reason}")


class AdminAPIError(AdminError):
    """Base exception for failures reported by, or on the way to, the API."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        server_message: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.server_message = server_message
        super().__init__(message)


class AuthError(AdminAPIError):
    """Credentials rejected, or the session token is no longer accepted."""

    pass


class NetworkError(AdminAPIError):
    """The request never produced a response (offline, DNS, timeout)."""

    pass


class ServerError(AdminAPIError):
    """Non-OK response; the message is the server's own when it sent one."""

    @property
    def is_transient(self) -> bool:
        return self.status_code is not None and self.status_code >= 500
