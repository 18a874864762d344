"""Auto Elite API client using httpx for async HTTP calls."""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from auto_elite_admin.config import AdminConfig
from auto_elite_admin.exceptions import (
    AdminAPIError,
    AuthError,
    NetworkError,
    ServerError,
)

logger = logging.getLogger(__name__)


def _is_transient(error: BaseException) -> bool:
    if isinstance(error, NetworkError):
        return True
    return isinstance(error, ServerError) and error.is_transient


class AutoEliteAPIClient:
    """Client for the Auto Elite authentication and inventory endpoints."""

    def __init__(self, config: AdminConfig, token: str | None = None) -> None:
        """Initialize the API client.

        Args:
            config: Endpoint configuration
            token: Session token sent as a bearer credential, if known
        """
        self.config = config
        self.token = token
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AutoEliteAPIClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
        self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the httpx AsyncClient instance.

        Raises:
            RuntimeError: If client is used outside of async context manager
        """
        if self._client is None:
            raise RuntimeError("Client must be used within async context manager")
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def login(self, username: str, password: str) -> dict[str, Any]:
        """Verify credentials.

        Never retried: a failed login must be resubmitted by the user.

        Returns:
            Response body, possibly containing ``token`` and ``userData``

        Raises:
            AuthError: If the credentials are rejected
            NetworkError: If the request fails to complete
        """
        url = f"{self.config.auth_base_url}/auth/login"
        try:
            response = await self.client.post(
                url, json={"username": username, "password": password}
            )
        except httpx.RequestError as e:
            logger.error(f"Network error while logging in: {e}")
            raise NetworkError(f"Network error: {e}", endpoint=url) from e

        if response.is_success:
            result = self._parse_json_response(response, "logging in", url)
            logger.info(f"Credentials accepted for {username}")
            return result if isinstance(result, dict) else {}

        message = self._error_message(response)
        logger.warning(f"Login rejected for {username} (HTTP {response.status_code})")
        raise AuthError(
            message or "", status_code=response.status_code, endpoint=url
        )

    async def create_car(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a car listing. Never retried.

        Args:
            payload: Car draft serialised for the API

        Returns:
            The created car as returned by the API (empty if no body)
        """
        url = f"{self.config.cars_base_url}/create"
        result = await self._request("POST", url, "creating car", json=payload)
        return result if isinstance(result, dict) else {}

    async def delete_car(self, car_id: str) -> None:
        """Delete a car listing. Never retried."""
        url = f"{self.config.cars_base_url}/delete/{car_id}"
        await self._request("DELETE", url, f"deleting car {car_id}")

    async def get_cars(self) -> list[dict[str, Any]]:
        result = await self._get_json(f"{self.config.cars_base_url}/get-cars", "listing cars")
        return _as_list(result, "cars")

    async def get_car(self, car_id: str) -> dict[str, Any]:
        result = await self._get_json(
            f"{self.config.cars_base_url}/get-car/{car_id}", f"fetching car {car_id}"
        )
        return result if isinstance(result, dict) else {}

    async def get_car_images(self, car_id: str) -> list[Any]:
        result = await self._get_json(
            f"{self.config.cars_base_url}/{car_id}/images",
            f"fetching images of car {car_id}",
        )
        return _as_list(result, "images")

    async def get_car_features(self) -> list[Any]:
        result = await self._get_json(
            f"{self.config.cars_base_url}/get-car-feature", "fetching car features"
        )
        return _as_list(result, "features")

    async def get_car_count(self) -> int:
        result = await self._get_json(
            f"{self.config.cars_base_url}/get-car-count", "counting cars"
        )
        if isinstance(result, dict):
            result = result.get("count", 0)
        try:
            return int(result or 0)
        except (TypeError, ValueError):
            raise AdminAPIError(f"Unexpected car count: {result!r}") from None

    async def get_dashboard_stats(self) -> dict[str, Any]:
        result = await self._get_json(
            f"{self.config.api_base_url}/dashboard/stats", "fetching dashboard stats"
        )
        return result if isinstance(result, dict) else {}

    async def get_car_makes(self) -> list[Any]:
        result = await self._get_json(f"{self.config.api_base_url}/car-makes", "fetching car makes")
        return _as_list(result, "makes")

    @retry(
        retry=retry_if_exception(_is_transient),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _get_json(self, url: str, context: str) -> Any:
        """GET with retries on network failures and 5xx responses."""
        return await self._request("GET", url, context)

    async def _request(
        self, method: str, url: str, context: str, json: Any | None = None
    ) -> Any:
        try:
            response = await self.client.request(
                method, url, headers=self._headers(), json=json
            )
        except httpx.RequestError as e:
            logger.warning(f"Network error while {context}: {e}")
            raise NetworkError(f"Network error: {e}", endpoint=url) from e

        if response.status_code >= 400:
            self._handle_error_response(response, context, url)

        if response.status_code == 204 or not response.content:
            return None
        return self._parse_json_response(response, context, url)

    def _parse_json_response(
        self, response: httpx.Response, context: str, url: str
    ) -> Any:
        """Parse JSON response, handling non-JSON responses gracefully.

        Raises:
            ServerError: If the body is not valid JSON
        """
        try:
            return response.json()
        except ValueError:
            raise ServerError(
                f"Invalid API response while {context}: {response.text[:200]}",
                status_code=response.status_code,
                endpoint=url,
            ) from None

    @staticmethod
    def _error_message(response: httpx.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error")
            if isinstance(message, str) and message:
                return message
        return None

    def _handle_error_response(
        self, response: httpx.Response, context: str, url: str
    ) -> None:
        """Map an error response onto the exception hierarchy.

        Raises:
            AuthError: For 401 and 403
            ServerError: For every other error status
        """
        status = response.status_code
        message = self._error_message(response)

        if status in (401, 403):
            logger.warning(f"Session rejected while {context} (HTTP {status})")
            raise AuthError(
                message or "Session expired", status_code=status, endpoint=url
            )

        if status >= 500:
            logger.warning(f"Server error while {context} (HTTP {status})")
        else:
            logger.error(f"API error while {context} (HTTP {status}): {message}")
        raise ServerError(
            message or f"HTTP error! Status: {status}",
            status_code=status,
            endpoint=url,
            server_message=message,
        )


def _as_list(result: Any, key: str) -> list[Any]:
    """Accept either a bare JSON array or an object wrapping one."""
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        for candidate in (key, "data", "content", "items"):
            value = result.get(candidate)
            if isinstance(value, list):
                return value
    return []
