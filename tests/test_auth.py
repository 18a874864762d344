"""White-box tests for the login state machine."""

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from auto_elite_admin.api_client import AutoEliteAPIClient
from auto_elite_admin.auth import (
    INVALID_CREDENTIALS_MESSAGE,
    LOGIN_ERROR_MESSAGE,
    LOGIN_IN_PROGRESS_MESSAGE,
    LOGIN_SUCCESS_MESSAGE,
    MISSING_CREDENTIALS_MESSAGE,
    AuthSessionMachine,
    AuthState,
)
from auto_elite_admin.config import AdminConfig
from auto_elite_admin.models import Session, StorageTier
from auto_elite_admin.routing import Page, Router
from auto_elite_admin.storage import (
    LOGGED_IN_KEY,
    PROFILE_KEY,
    TOKEN_KEY,
    USERNAME_KEY,
    SessionStore,
)


def login_url(config: AdminConfig) -> str:
    return f"{config.auth_base_url}/auth/login"


@pytest.mark.asyncio
class TestLogin:
    """Test login transitions and persistence."""

    async def test_session_scoped_login(
        self, config: AdminConfig, store: SessionStore, router: Router, httpx_mock: HTTPXMock
    ) -> None:
        """Test token and profile land in session storage when not remembered."""
        httpx_mock.add_response(
            method="POST",
            url=login_url(config),
            json={"token": "t1", "userData": {"name": "Jane"}},
            status_code=200,
        )
        local_before = store.local.snapshot()

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            result = await auth.login("jane", "secret", remember_me=False)

            assert client.token == "t1"

        assert result.success
        assert result.message == LOGIN_SUCCESS_MESSAGE
        assert auth.state is AuthState.AUTHENTICATED
        session_items = store.session.snapshot()
        assert session_items[LOGGED_IN_KEY] == "true"
        assert session_items[USERNAME_KEY] == "jane"
        assert session_items[TOKEN_KEY] == "t1"
        assert json.loads(session_items[PROFILE_KEY])["name"] == "Jane"
        assert store.local.snapshot() == local_before
        assert router.current is Page.DASHBOARD

    async def test_remembered_login_uses_durable_storage(
        self, config: AdminConfig, store: SessionStore, router: Router, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            method="POST", url=login_url(config), json={"token": "t2"}, status_code=200
        )

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            result = await auth.login("jane", "secret", remember_me=True)

        assert result.success
        assert result.session.persistence is StorageTier.LOCAL
        assert store.local.get(LOGGED_IN_KEY) == "true"
        assert store.session.get(LOGGED_IN_KEY) is None

    async def test_request_body(
        self, config: AdminConfig, store: SessionStore, router: Router, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(method="POST", url=login_url(config), json={})

        async with AutoEliteAPIClient(config) as client:
            await AuthSessionMachine(store, client, router).login("  jane ", "secret")

        request = httpx_mock.get_request()
        assert json.loads(request.content) == {"username": "jane", "password": "secret"}
        assert "Authorization" not in request.headers

    async def test_login_without_token_is_legacy_session(
        self, config: AdminConfig, store: SessionStore, router: Router, httpx_mock: HTTPXMock
    ) -> None:
        """Test that a response without token still signs the user in."""
        httpx_mock.add_response(method="POST", url=login_url(config), json={})

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            result = await auth.login("jane", "secret")

        assert result.success
        assert store.session.get(TOKEN_KEY) is None
        assert auth.check_authentication()

    async def test_invalid_credentials_write_nothing(
        self, config: AdminConfig, store: SessionStore, router: Router, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            method="POST", url=login_url(config), json={}, status_code=401
        )
        before = (store.local.snapshot(), store.session.snapshot())

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            result = await auth.login("jane", "wrong", remember_me=True)

        assert not result.success
        assert result.message == INVALID_CREDENTIALS_MESSAGE
        assert auth.state is AuthState.ANONYMOUS
        assert (store.local.snapshot(), store.session.snapshot()) == before

    async def test_server_message_passed_through(
        self, config: AdminConfig, store: SessionStore, router: Router, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            method="POST",
            url=login_url(config),
            json={"message": "Account locked"},
            status_code=403,
        )

        async with AutoEliteAPIClient(config) as client:
            result = await AuthSessionMachine(store, client, router).login("jane", "pw")

        assert result.message == "Account locked"

    async def test_network_error(
        self, config: AdminConfig, store: SessionStore, router: Router, httpx_mock: HTTPXMock
    ) -> None:
        """Test that a network failure is reported once and never retried."""
        httpx_mock.add_exception(httpx.ConnectError("offline"), url=login_url(config))

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            result = await auth.login("jane", "secret")

        assert not result.success
        assert result.message == LOGIN_ERROR_MESSAGE
        assert auth.state is AuthState.ANONYMOUS
        assert len(httpx_mock.get_requests()) == 1
        assert store.session.snapshot() == {}

    async def test_blank_credentials_skip_request(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            result = await auth.login("jane", "   ")

        assert not result.success
        assert result.message == MISSING_CREDENTIALS_MESSAGE

    async def test_login_in_flight_is_rejected(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            auth.state = AuthState.AUTHENTICATING
            result = await auth.login("jane", "secret")

        assert not result.success
        assert result.message == LOGIN_IN_PROGRESS_MESSAGE


@pytest.mark.asyncio
class TestGuards:
    """Test page guards and logout."""

    async def test_check_login_status_without_flag(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)

            assert not auth.check_login_status()

        assert auth.state is AuthState.ANONYMOUS
        assert router.current is Page.LOGIN

    async def test_check_login_status_flag_false(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        store.local.set(LOGGED_IN_KEY, "false")

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)

            assert not auth.check_login_status()

        assert router.current is Page.LOGIN

    async def test_check_login_status_signed_in(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        store.persist(Session(logged_in=True, username="jane"), StorageTier.SESSION)

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)

            assert auth.check_login_status()

        assert auth.state is AuthState.AUTHENTICATED
        assert router.history == []

    async def test_check_authentication_redirects_anonymous(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)

            assert not auth.check_authentication()

        assert router.current is Page.LOGIN

    async def test_check_authentication_with_token_only(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        store.local.set(TOKEN_KEY, "legacy")

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)

            assert auth.check_authentication()
            assert client.token == "legacy"

        assert auth.state is AuthState.AUTHENTICATED

    async def test_display_profile_defaults(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        store.persist(Session(logged_in=True, username="jane"), StorageTier.LOCAL)

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            auth.check_authentication()

        assert auth.display_profile() == {
            "name": "Admin User",
            "role": "Administrator",
            "avatar": None,
        }

    async def test_logout_is_idempotent(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        store.persist(Session(logged_in=True, username="a", token="x"), StorageTier.LOCAL)
        store.persist(Session(logged_in=True, username="b", token="y"), StorageTier.SESSION)

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            auth.logout()
            once = (store.local.snapshot(), store.session.snapshot())
            auth.logout()
            twice = (store.local.snapshot(), store.session.snapshot())

            assert client.token is None

        assert once == twice == ({}, {})
        assert auth.state is AuthState.ANONYMOUS
        assert auth.session == Session()
        assert router.current is Page.LOGIN

    async def test_invalidate_clears_session(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        store.persist(Session(logged_in=True, username="a", token="x"), StorageTier.LOCAL)

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            auth.invalidate()

        assert store.local.snapshot() == {}
        assert router.current is Page.LOGIN


@pytest.mark.asyncio
class TestRepeatedLogin:
    """Test that a second login fully replaces the first one."""

    @pytest.mark.parametrize(
        ("first_remembered", "second_remembered"),
        [(False, True), (True, False), (False, False), (True, True)],
    )
    async def test_second_login_wins(
        self,
        config: AdminConfig,
        store: SessionStore,
        router: Router,
        httpx_mock: HTTPXMock,
        first_remembered: bool,
        second_remembered: bool,
    ) -> None:
        httpx_mock.add_response(
            method="POST",
            url=login_url(config),
            json={"token": "tX", "userData": {"name": "Xavier"}},
        )
        httpx_mock.add_response(method="POST", url=login_url(config), json={})

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            await auth.login("xavier", "secret", remember_me=first_remembered)
            await auth.login("yolanda", "secret", remember_me=second_remembered)

        async with AutoEliteAPIClient(config) as client:
            reloaded = AuthSessionMachine(store, client, router)

            assert reloaded.check_authentication()
            assert client.token is None

        assert reloaded.session == Session(
            logged_in=True,
            username="yolanda",
            persistence=StorageTier.LOCAL if second_remembered else StorageTier.SESSION,
        )
        assert reloaded.display_profile()["name"] == "Admin User"

    async def test_second_token_replaces_first(
        self, config: AdminConfig, store: SessionStore, router: Router, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(method="POST", url=login_url(config), json={"token": "tX"})
        httpx_mock.add_response(
            method="POST",
            url=login_url(config),
            json={"token": "tY", "userData": {"name": "Yolanda"}},
        )

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)
            await auth.login("xavier", "secret", remember_me=True)
            await auth.login("yolanda", "secret", remember_me=False)

        session = store.load()
        assert (session.username, session.token) == ("yolanda", "tY")
        assert session.profile.name == "Yolanda"

    async def test_check_login_status_sees_session_login_under_durable_false(
        self, config: AdminConfig, store: SessionStore, router: Router
    ) -> None:
        store.local.set(LOGGED_IN_KEY, "false")
        store.persist(Session(logged_in=True, username="jane"), StorageTier.SESSION)

        async with AutoEliteAPIClient(config) as client:
            auth = AuthSessionMachine(store, client, router)

            assert auth.check_login_status()

        assert auth.state is AuthState.AUTHENTICATED
