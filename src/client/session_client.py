"""
Session Client

Calls the auth API on behalf of one signed-in user and keeps the session
alive: access tokens close to expiry are refreshed before use, and a 401 is
answered with one refresh and one retry.

Refreshes are single-flight. However many calls need a refresh at the same
time, one refresh request goes out and all of them get its outcome.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

import httpx

from .errors import AuthError, AuthErrorCode
from .models import StoredTokens
from .serialization import from_wire, to_wire, tokens_from_wire
from .token_storage import InMemoryTokenStorage, TokenStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_REFRESH_BUFFER = timedelta(minutes=5)
DEFAULT_TIMEOUT = 10.0

# Refresh responses that mean the session is over; anything else may be retried.
REJECTED_REFRESH_STATUSES = frozenset({400, 401, 403})


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


class SingleFlight(Generic[T]):
    """
    At most one running task; callers arriving while it runs share its result.

    Callers await the task through asyncio.shield, so cancelling one caller
    never cancels the shared task. A task nobody waits for any more still runs
    to completion.
    """

    def __init__(self):
        self._task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        if self._task is None:
            self._task = asyncio.create_task(factory())
            self._task.add_done_callback(self._finished)
        return await asyncio.shield(self._task)

    async def wait(self) -> None:
        """Wait for the running task, if any, without taking its result"""
        if self._task is not None:
            await asyncio.wait([self._task])

    def _finished(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None
        if not task.cancelled():
            # Mark the exception retrieved when every caller has gone away
            task.exception()


class SessionClient:
    """
    Async client for the auth API.

    Args:
        base_url: API root, e.g. "https://auth.example.com"
        storage: where credentials live; in memory by default
        timeout: per-request timeout (seconds or httpx.Timeout)
        transport: optional httpx transport (ASGI app or mock in tests)
        refresh_buffer: refresh when the access token expires within this
        clock: returns the current aware UTC time
    """

    def __init__(
        self,
        base_url: str,
        storage: Optional[TokenStorage] = None,
        timeout: Union[float, httpx.Timeout] = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        refresh_buffer: timedelta = DEFAULT_REFRESH_BUFFER,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage or InMemoryTokenStorage()
        self.refresh_buffer = refresh_buffer
        self._clock = clock or (lambda: datetime.now(UTC))
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._refresh_flight: SingleFlight[StoredTokens] = SingleFlight()
        # Bumped whenever the stored session is replaced or ended
        self._session_epoch = 0

    async def __aenter__(self) -> "SessionClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def state(self) -> SessionState:
        if self._refresh_flight.in_flight:
            return SessionState.REFRESHING
        if self.storage.has_valid():
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    # ------------------------------------------------------------------
    # Public, unauthenticated endpoints
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str) -> dict:
        """Create an account and start a session; returns the account"""
        return await self._open_session("/auth/register", email, password)

    async def login(self, email: str, password: str) -> dict:
        """Start a session; returns the account"""
        return await self._open_session("/auth/login", email, password)

    async def logout(self) -> None:
        """
        End the session on the server if possible; always clears it locally.

        A refresh already in flight is allowed to finish first, so the refresh
        token revoked on the server is the one it produced.
        """
        await self._refresh_flight.wait()
        tokens = self.storage.get()
        self._end_session()
        if tokens is not None:
            await self._revoke(tokens.refresh_token)

    async def refresh(self, stale: Optional[StoredTokens] = None) -> StoredTokens:
        """
        Exchange the refresh token for a new pair.

        Concurrent callers share one request. When `stale` is given and the
        stored credentials have already moved on, those are returned without
        another refresh.

        Raises:
            AuthError: REFRESH_FAILED when the server rejects the refresh token
                or the session ended meanwhile (session cleared); NETWORK_ERROR
                or SERVER_ERROR when the server could not answer (session kept)
        """
        current = self.storage.get()
        if stale is not None and current is not None and current != stale:
            return current
        return await self._refresh_flight.run(self._refresh_once)

    # ------------------------------------------------------------------
    # Authenticated endpoints
    # ------------------------------------------------------------------

    async def profile(self) -> dict:
        response = await self.request("GET", "/api/v1/auth/profile")
        return from_wire(response.json())

    async def change_password(self, current_password: str, new_password: str) -> dict:
        """
        Change the password. The server revokes every session, so the local
        session is cleared on success.
        """
        response = await self.request(
            "POST",
            "/api/v1/auth/change-password",
            json=to_wire({"current_password": current_password, "new_password": new_password}),
        )
        self._end_session()
        return from_wire(response.json())

    async def sessions(self) -> list:
        response = await self.request("GET", "/api/v1/sessions")
        return from_wire(response.json())["sessions"]

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send an authenticated request.

        Refreshes first if the access token is about to expire. On a 401 the
        session is refreshed once and the request retried once; a second 401
        ends the session.

        Raises:
            AuthError: on any non-2xx outcome
        """
        tokens = await self._fresh_tokens()

        response = await self._send(method, url, tokens, **kwargs)
        if response.status_code == 401:
            tokens = await self.refresh(stale=tokens)
            response = await self._send(method, url, tokens, **kwargs)
            if response.status_code == 401:
                self._end_session()
                raise AuthError(
                    AuthErrorCode.TOKEN_EXPIRED,
                    "Your session has expired",
                    status_code=401,
                )

        if response.is_error:
            raise AuthError.from_response(response)
        return response

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fresh_tokens(self) -> StoredTokens:
        tokens = self.storage.get()
        if tokens is None:
            raise AuthError(AuthErrorCode.UNAUTHORIZED, "Not logged in")
        if tokens.expires_within(self.refresh_buffer, self._clock()):
            tokens = await self.refresh(stale=tokens)
        return tokens

    async def _refresh_once(self) -> StoredTokens:
        epoch = self._session_epoch
        tokens = self.storage.get()
        if tokens is None:
            raise AuthError(AuthErrorCode.REFRESH_FAILED, "No refresh token available")

        try:
            response = await self._http.post(
                "/auth/refresh", json=to_wire({"refresh_token": tokens.refresh_token})
            )
        except httpx.HTTPError as exc:
            raise AuthError(AuthErrorCode.NETWORK_ERROR, f"Refresh request failed: {exc}") from exc

        if response.status_code in REJECTED_REFRESH_STATUSES:
            self._end_session(epoch)
            raise AuthError(
                AuthErrorCode.REFRESH_FAILED,
                "Unable to refresh authentication",
                status_code=response.status_code,
            )
        if response.is_error:
            raise AuthError.from_response(response)

        try:
            new_tokens = tokens_from_wire(response.json())
        except ValueError as exc:
            self._end_session(epoch)
            raise AuthError(
                AuthErrorCode.REFRESH_FAILED, "Malformed refresh response"
            ) from exc

        if epoch != self._session_epoch:
            # Logged out or replaced while the request was out; drop the new pair
            await self._revoke(new_tokens.refresh_token)
            raise AuthError(AuthErrorCode.REFRESH_FAILED, "Session ended during refresh")

        self.storage.set(new_tokens)
        logger.debug("Session refreshed")
        return new_tokens

    def _end_session(self, epoch: Optional[int] = None) -> None:
        """Clear stored credentials, unless `epoch` is given and already stale"""
        if epoch is not None and epoch != self._session_epoch:
            return
        self._session_epoch += 1
        self.storage.clear()

    async def _revoke(self, refresh_token: str) -> None:
        try:
            await self._post("/auth/logout", {"refresh_token": refresh_token})
        except AuthError as exc:
            logger.warning(f"Server-side logout failed: {exc.code.value}")

    async def _open_session(self, url: str, email: str, password: str) -> dict:
        payload = await self._post(url, {"email": email, "password": password})
        tokens = tokens_from_wire(payload)
        self._session_epoch += 1
        self.storage.set(tokens)
        return from_wire(payload["account"])

    async def _post(self, url: str, body: dict) -> dict:
        try:
            response = await self._http.post(url, json=to_wire(body))
        except httpx.HTTPError as exc:
            raise AuthError(AuthErrorCode.NETWORK_ERROR, f"Request failed: {exc}") from exc
        if response.is_error:
            raise AuthError.from_response(response)
        return response.json()

    async def _send(
        self, method: str, url: str, tokens: StoredTokens, **kwargs: Any
    ) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {tokens.access_token}"
        try:
            return await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise AuthError(AuthErrorCode.NETWORK_ERROR, f"Request failed: {exc}") from exc
