"""Login state machine and page guards."""

import enum
import logging

from auto_elite_admin.api_client import AutoEliteAPIClient
from auto_elite_admin.exceptions import AdminAPIError, AuthError
from auto_elite_admin.models import (
    ANONYMOUS_SESSION,
    DEFAULT_PROFILE_NAME,
    DEFAULT_PROFILE_ROLE,
    LoginResult,
    Session,
    StorageTier,
    UserProfile,
)
from auto_elite_admin.routing import Page, Router
from auto_elite_admin.storage import SessionStore

logger = logging.getLogger(__name__)

LOGIN_SUCCESS_MESSAGE = "Login successful! Redirecting..."
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password. Please try again."
LOGIN_ERROR_MESSAGE = "An error occurred. Please try again later."
MISSING_CREDENTIALS_MESSAGE = "Please enter both username and password."
LOGIN_IN_PROGRESS_MESSAGE = "A login request is already in progress."


class AuthState(enum.Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class AuthSessionMachine:
    """Owns the Session value and every transition between auth states.

    Storage is the only shared resource and is mutated nowhere else.
    """

    def __init__(
        self,
        store: SessionStore,
        api_client: AutoEliteAPIClient,
        router: Router,
    ) -> None:
        self.store = store
        self.api_client = api_client
        self.router = router
        self.state = AuthState.ANONYMOUS
        self._session = store.load()
        self.api_client.token = self._session.token

    @property
    def session(self) -> Session:
        return self._session

    def _become_anonymous(self) -> None:
        self.state = AuthState.ANONYMOUS
        self._session = ANONYMOUS_SESSION
        self.api_client.token = None

    def check_login_status(self) -> bool:
        """Login-page precondition.

        Returns:
            True if a persisted login flag says the user is already signed in
        """
        self._session = self.store.load()
        if not self._session.logged_in:
            self._become_anonymous()
            self.router.navigate(Page.LOGIN)
            return False

        self.state = AuthState.AUTHENTICATED
        self.api_client.token = self._session.token
        return True

    async def login(
        self, username: str, password: str, remember_me: bool = False
    ) -> LoginResult:
        """Verify credentials and persist the session on success.

        Args:
            username: Account name
            password: Account password
            remember_me: Persist in durable storage instead of session storage

        Returns:
            Result carrying a user-facing message; failures never raise
        """
        username = username.strip()
        if not username or not password.strip():
            return LoginResult(success=False, message=MISSING_CREDENTIALS_MESSAGE)

        if self.state is AuthState.AUTHENTICATING:
            logger.warning("Ignoring login while another one is in flight")
            return LoginResult(success=False, message=LOGIN_IN_PROGRESS_MESSAGE)

        self.state = AuthState.AUTHENTICATING
        try:
            result = await self.api_client.login(username, password)
        except AuthError as e:
            self._become_anonymous()
            return LoginResult(
                success=False, message=str(e) or INVALID_CREDENTIALS_MESSAGE
            )
        except AdminAPIError as e:
            logger.error(f"Login error: {e}")
            self._become_anonymous()
            return LoginResult(success=False, message=LOGIN_ERROR_MESSAGE)

        token = result.get("token")
        user_data = result.get("userData")
        session = Session(
            logged_in=True,
            username=username,
            token=str(token) if token else None,
            profile=UserProfile.from_api(user_data) if isinstance(user_data, dict) else None,
            persistence=StorageTier.LOCAL if remember_me else StorageTier.SESSION,
        )
        self.store.persist(session, session.persistence)
        self._session = session
        self.api_client.token = session.token
        self.state = AuthState.AUTHENTICATED
        logger.info(f"Logged in as {username}")
        self.router.navigate(Page.DASHBOARD)
        return LoginResult(success=True, message=LOGIN_SUCCESS_MESSAGE, session=session)

    def check_authentication(self) -> bool:
        """Protected-page guard.

        Returns:
            True if the page may render; otherwise the router points at login
        """
        self._session = self.store.load()
        if not self._session.is_authenticated:
            self._become_anonymous()
            self.router.navigate(Page.LOGIN)
            return False

        self.state = AuthState.AUTHENTICATED
        self.api_client.token = self._session.token
        return True

    def display_profile(self) -> dict[str, str | None]:
        """Header fields for the current user, with dashboard defaults."""
        profile = self._session.profile
        if profile is None:
            return {
                "name": DEFAULT_PROFILE_NAME,
                "role": DEFAULT_PROFILE_ROLE,
                "avatar": None,
            }
        return {
            "name": profile.display_name,
            "role": profile.display_role,
            "avatar": profile.avatar_url,
        }

    def logout(self) -> None:
        """Clear every session key from both tiers and return to login."""
        self.store.clear()
        self._become_anonymous()
        logger.info("Logged out")
        self.router.navigate(Page.LOGIN)

    def invalidate(self) -> None:
        """Drop a session whose token the API no longer accepts."""
        logger.warning("Session token rejected by the API, signing out")
        self.logout()
