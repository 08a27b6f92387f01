import asyncio
import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from src.client import (
    AuthError,
    AuthErrorCode,
    InMemoryTokenStorage,
    SessionClient,
    SessionState,
    SingleFlight,
    StoredTokens,
)

BASE_URL = "http://auth.test"


def _expires_in(delta: timedelta) -> datetime:
    return datetime.now(UTC) + delta


def _error(status_code: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(status_code, json={"error": {"code": code, "message": message}})


class FakeAuthServer:
    """Just enough of the auth API to drive the client"""

    def __init__(self):
        self.refresh_calls = 0
        self.generation = 0
        self.refresh_token = "refresh-0"
        self.valid_access = {"access-0"}
        self.fail_refresh = False
        self.reject_all = False
        self.logout_fails = False
        self.refresh_started = asyncio.Event()
        self.refresh_gate = None
        self.refresh_error_status = None
        self.strict_refresh = True
        self.revoked_tokens = []

    def _issue(self) -> dict:
        self.generation += 1
        access = f"access-{self.generation}"
        self.refresh_token = f"refresh-{self.generation}"
        self.valid_access = {access}
        return {
            "accessToken": access,
            "refreshToken": self.refresh_token,
            "expiresAt": _expires_in(timedelta(minutes=15)).isoformat(),
        }

    def _authorized(self, request: httpx.Request) -> bool:
        token = request.headers.get("authorization", "").removeprefix("Bearer ")
        return not self.reject_all and token in self.valid_access

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else {}

        if path == "/auth/login":
            if body.get("password") != "SecurePass123!":
                return _error(401, "INVALID_CREDENTIALS", "Invalid email or password")
            return httpx.Response(
                200, json={**self._issue(), "account": {"id": "acc-1", "email": body["email"]}}
            )

        if path == "/auth/refresh":
            self.refresh_calls += 1
            self.refresh_started.set()
            if self.refresh_gate is not None:
                await self.refresh_gate.wait()
            await asyncio.sleep(0.01)
            if self.refresh_error_status is not None:
                return _error(self.refresh_error_status, "SERVER_ERROR", "Internal server error")
            stale = self.strict_refresh and body.get("refreshToken") != self.refresh_token
            if self.fail_refresh or stale:
                return _error(401, "TOKEN_INVALID", "Invalid or expired token")
            return httpx.Response(200, json=self._issue())

        if path == "/auth/logout":
            if self.logout_fails:
                raise httpx.ConnectError("connection refused", request=request)
            self.revoked_tokens.append(body.get("refreshToken"))
            return httpx.Response(200, json={"message": "Logged out successfully"})

        if not self._authorized(request):
            return _error(401, "TOKEN_INVALID", "Invalid or expired token")

        if path == "/api/v1/auth/profile":
            return httpx.Response(
                200,
                json={"id": "acc-1", "email": "user@example.com", "isActive": True, "lastLoginAt": None},
            )

        if path == "/api/v1/auth/change-password":
            if body.get("currentPassword") != "SecurePass123!":
                return _error(401, "INVALID_CREDENTIALS", "Invalid email or password")
            self.valid_access = set()
            return httpx.Response(
                200,
                json={"message": "Password changed successfully. Please log in again.", "revokedSessions": 2},
            )

        return httpx.Response(404)


@pytest.fixture
def server():
    return FakeAuthServer()


def _client(server, tokens=None) -> SessionClient:
    return SessionClient(
        BASE_URL,
        storage=InMemoryTokenStorage(tokens),
        timeout=5.0,
        transport=httpx.MockTransport(server),
    )


def _tokens(expires_in: timedelta) -> StoredTokens:
    return StoredTokens("access-0", "refresh-0", _expires_in(expires_in))


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_refresh(server):
    """
    Given my access token expires within the refresh buffer
    When 50 calls start at the same time
    Then exactly one refresh request is sent
    And every call uses the same new credentials
    """
    async with _client(server, _tokens(timedelta(minutes=1))) as client:
        results = await asyncio.gather(*(client.profile() for _ in range(50)))

        assert server.refresh_calls == 1
        assert all(result == results[0] for result in results)
        assert results[0]["email"] == "user@example.com"
        assert results[0]["is_active"] is True
        assert client.storage.get().access_token == "access-1"
        assert client.storage.get().refresh_token == "refresh-1"
        assert client.state == SessionState.AUTHENTICATED


@pytest.mark.asyncio
async def test_fresh_token_is_not_refreshed(server):
    async with _client(server, _tokens(timedelta(hours=1))) as client:
        await client.profile()

    assert server.refresh_calls == 0


@pytest.mark.asyncio
async def test_unauthorized_response_refreshes_and_retries_once(server):
    server.valid_access = set()  # server no longer accepts access-0

    async with _client(server, _tokens(timedelta(hours=1))) as client:
        profile = await client.profile()

    assert profile["id"] == "acc-1"
    assert server.refresh_calls == 1


@pytest.mark.asyncio
async def test_second_unauthorized_ends_session(server):
    server.reject_all = True

    async with _client(server, _tokens(timedelta(hours=1))) as client:
        with pytest.raises(AuthError) as exc_info:
            await client.profile()

        assert exc_info.value.code == AuthErrorCode.TOKEN_EXPIRED
        assert server.refresh_calls == 1
        assert client.storage.get() is None
        assert client.state == SessionState.UNAUTHENTICATED


@pytest.mark.asyncio
async def test_failed_refresh_is_shared_and_clears_session(server):
    server.fail_refresh = True

    async with _client(server, _tokens(timedelta(minutes=1))) as client:
        results = await asyncio.gather(
            *(client.profile() for _ in range(20)), return_exceptions=True
        )

        assert server.refresh_calls == 1
        assert all(isinstance(result, AuthError) for result in results)
        assert {result.code for result in results} == {AuthErrorCode.REFRESH_FAILED}
        assert client.storage.get() is None


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_refresh(server):
    """
    Given a refresh is in flight for a caller
    When that caller is cancelled
    Then the refresh still completes and updates the stored credentials
    """
    server.refresh_gate = asyncio.Event()

    async with _client(server, _tokens(timedelta(minutes=1))) as client:
        caller = asyncio.create_task(client.profile())
        await server.refresh_started.wait()
        assert client.state == SessionState.REFRESHING

        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller

        server.refresh_gate.set()
        for _ in range(100):
            if client.state != SessionState.REFRESHING:
                break
            await asyncio.sleep(0.01)

        assert client.storage.get().access_token == "access-1"

        await client.profile()
        assert server.refresh_calls == 1


@pytest.mark.asyncio
async def test_logout_during_refresh_revokes_the_refreshed_session(server):
    """
    Given a refresh is in flight
    When I log out before it completes
    Then logout revokes the refresh token the refresh produced
    And the client stays logged out once the refresh lands
    """
    server.refresh_gate = asyncio.Event()

    async with _client(server, _tokens(timedelta(minutes=1))) as client:
        caller = asyncio.create_task(client.profile())
        await server.refresh_started.wait()

        logout = asyncio.create_task(client.logout())
        await asyncio.sleep(0.02)
        assert not logout.done()

        server.refresh_gate.set()
        await logout
        await caller

        assert client.storage.get() is None
        assert client.state == SessionState.UNAUTHENTICATED
        assert server.revoked_tokens == ["refresh-1"]


@pytest.mark.asyncio
async def test_refresh_finishing_after_new_login_is_discarded(server):
    """
    Given a refresh is in flight
    When I log in again before it completes
    Then the refreshed credentials are revoked instead of stored
    And the new login's session is kept
    """
    server.refresh_gate = asyncio.Event()
    server.strict_refresh = False

    async with _client(server, _tokens(timedelta(minutes=1))) as client:
        caller = asyncio.create_task(client.profile())
        await server.refresh_started.wait()

        await client.login("user@example.com", "SecurePass123!")
        server.refresh_gate.set()

        with pytest.raises(AuthError) as exc_info:
            await caller

        assert exc_info.value.code == AuthErrorCode.REFRESH_FAILED
        assert client.storage.get().access_token == "access-1"
        assert server.revoked_tokens == ["refresh-2"]


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [500, 503])
async def test_server_error_during_refresh_keeps_session(server, status_code):
    """
    Given my access token is about to expire
    When the refresh endpoint answers with a server error
    Then the call fails with SERVER_ERROR
    And my credentials are kept for a later retry
    """
    server.refresh_error_status = status_code
    tokens = _tokens(timedelta(minutes=1))

    async with _client(server, tokens) as client:
        with pytest.raises(AuthError) as exc_info:
            await client.profile()

        assert exc_info.value.code == AuthErrorCode.SERVER_ERROR
        assert exc_info.value.status_code == status_code
        assert client.storage.get() == tokens

        server.refresh_error_status = None
        await client.profile()

        assert server.refresh_calls == 2
        assert client.storage.get().access_token == "access-1"


@pytest.mark.asyncio
async def test_network_error_during_refresh_keeps_session():
    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    tokens = _tokens(timedelta(minutes=1))
    client = SessionClient(
        BASE_URL, storage=InMemoryTokenStorage(tokens), transport=httpx.MockTransport(offline)
    )

    async with client:
        with pytest.raises(AuthError) as exc_info:
            await client.profile()

    assert exc_info.value.code == AuthErrorCode.NETWORK_ERROR
    assert client.storage.get() == tokens


@pytest.mark.asyncio
async def test_login_stores_tokens(server):
    async with _client(server) as client:
        assert client.state == SessionState.UNAUTHENTICATED

        account = await client.login("user@example.com", "SecurePass123!")

        assert account == {"id": "acc-1", "email": "user@example.com"}
        assert client.state == SessionState.AUTHENTICATED
        assert client.storage.get().access_token == "access-1"


@pytest.mark.asyncio
async def test_login_failure(server):
    async with _client(server) as client:
        with pytest.raises(AuthError) as exc_info:
            await client.login("user@example.com", "wrong")

    assert exc_info.value.code == AuthErrorCode.INVALID_CREDENTIALS
    assert exc_info.value.status_code == 401
    assert exc_info.value.user_message == "Invalid email or password. Please try again."


@pytest.mark.asyncio
async def test_request_without_session(server):
    async with _client(server) as client:
        with pytest.raises(AuthError) as exc_info:
            await client.profile()

    assert exc_info.value.code == AuthErrorCode.UNAUTHORIZED


@pytest.mark.asyncio
async def test_logout_clears_even_when_server_unreachable(server):
    server.logout_fails = True

    async with _client(server, _tokens(timedelta(hours=1))) as client:
        await client.logout()

        assert client.storage.get() is None
        assert client.state == SessionState.UNAUTHENTICATED


@pytest.mark.asyncio
async def test_change_password_clears_session(server):
    async with _client(server, _tokens(timedelta(hours=1))) as client:
        result = await client.change_password("SecurePass123!", "EvenBetter456#")

        assert result["revoked_sessions"] == 2
        assert client.storage.get() is None


@pytest.mark.asyncio
async def test_single_flight_shares_result_then_resets():
    flight = SingleFlight()
    calls = 0

    async def work():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return calls

    first = await asyncio.gather(*(flight.run(work) for _ in range(10)))
    assert first == [1] * 10
    assert not flight.in_flight

    assert await flight.run(work) == 2


@pytest.mark.asyncio
async def test_single_flight_shares_exception():
    flight = SingleFlight()

    async def fail():
        await asyncio.sleep(0.01)
        raise RuntimeError("refresh failed")

    results = await asyncio.gather(*(flight.run(fail) for _ in range(5)), return_exceptions=True)

    assert all(isinstance(result, RuntimeError) for result in results)
    assert not flight.in_flight
