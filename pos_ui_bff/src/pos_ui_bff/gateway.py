# src/pos_ui_bff/gateway.py
"""
Authenticated requests against the backend API.

Every call carries the session's access token as a bearer credential. When the
backend answers 400 or 403 the gateway assumes the access token expired, trades
the refresh token for a new pair once, stores it, and replays the request once.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

import httpx
from fastapi import status

from . import auth_utils
from .config import Settings
from .credentials import CredentialStore
from .session_data import TokenBundle

logger = logging.getLogger(__name__)

REFRESH_TRIGGER_STATUSES = frozenset({status.HTTP_400_BAD_REQUEST, status.HTTP_403_FORBIDDEN})


class RefreshSingleFlight:
    """
    Collapses concurrent refreshes of the same refresh token into one backend call.

    Every waiter receives the same result; each gateway then writes it to its
    own credential store (last writer wins).
    """

    def __init__(self) -> None:
        self._inflight: Dict[str, "asyncio.Future[Optional[TokenBundle]]"] = {}

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def run(
            self,
            refresh_token: str,
            factory: Callable[[], Awaitable[Optional[TokenBundle]]],
    ) -> Optional[TokenBundle]:
        task = self._inflight.get(refresh_token)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[refresh_token] = task
            task.add_done_callback(lambda done, key=refresh_token: self._forget(key, done))
        else:
            logger.debug("GATEWAY: joining in-flight token refresh")
        # A cancelled waiter must not cancel the refresh the others are waiting on
        return await asyncio.shield(task)

    def _forget(self, key: str, done: "asyncio.Future[Optional[TokenBundle]]") -> None:
        if self._inflight.get(key) is done:
            del self._inflight[key]


class AuthenticatedGateway:
    """Bearer-authenticated HTTP calls to the backend with one refresh-and-retry."""

    def __init__(
            self,
            client: httpx.AsyncClient,
            store: CredentialStore,
            settings: Settings,
            single_flight: Optional[RefreshSingleFlight] = None,
    ) -> None:
        self._client = client
        self._store = store
        self._settings = settings
        self._single_flight = single_flight

    @property
    def store(self) -> CredentialStore:
        return self._store

    async def fetch(
            self,
            url: str,
            method: str = "GET",
            headers: Optional[Mapping[str, str]] = None,
            body: Optional[Union[bytes, str]] = None,
            json_body: Any = None,
    ) -> httpx.Response:
        """
        Send one request on behalf of the current session.

        `url` is absolute or a backend path. `json_body` is serialized once, so a
        retry sends the exact same bytes. Returns the first response unless it was
        a 400/403 that a successful refresh could recover, in which case the
        retried response is returned whatever its status.

        Raises:
            BackendUnavailable: if the backend cannot be reached for the request itself.
        """
        method = method.upper()
        if json_body is not None:
            body = json.dumps(json_body)
        target = self._settings.backend_url(url)

        response = await self._send(target, method, headers, body, self._store.access_token)
        if response.status_code not in REFRESH_TRIGGER_STATUSES:
            return response

        refresh_token = self._store.refresh_token
        if not refresh_token:
            logger.info("GATEWAY: %s %s -> %s and no refresh token in session", method, url, response.status_code)
            return response

        logger.info("GATEWAY: %s %s -> %s, refreshing session tokens", method, url, response.status_code)
        bundle = await self._refresh(refresh_token)
        if bundle is None:
            logger.info("GATEWAY: refresh failed, returning original %s", response.status_code)
            return response

        self._store.set_credentials(bundle.access_token, bundle.refresh_token, bundle.user)

        retry = await self._send(target, method, headers, body, bundle.access_token)
        logger.info("GATEWAY: retried %s %s -> %s", method, url, retry.status_code)
        return retry

    async def _refresh(self, refresh_token: str) -> Optional[TokenBundle]:
        def call() -> Awaitable[Optional[TokenBundle]]:
            return auth_utils.request_token_refresh(self._client, self._settings, refresh_token)

        if self._single_flight is None:
            return await call()
        return await self._single_flight.run(refresh_token, call)

    async def _send(
            self,
            url: str,
            method: str,
            headers: Optional[Mapping[str, str]],
            body: Optional[Union[bytes, str]],
            access_token: Optional[str],
    ) -> httpx.Response:
        return await auth_utils.send(
            self._client,
            method,
            url,
            headers=build_headers(headers, method, access_token),
            content=body,
        )


def build_headers(headers: Optional[Mapping[str, str]], method: str, access_token: Optional[str]) -> Dict[str, str]:
    """
    Caller headers, with Authorization replaced by the session bearer token.
    Non-GET requests default to a JSON content type.
    """
    merged = {key: value for key, value in (headers or {}).items() if key.lower() != "authorization"}
    if access_token:
        merged["Authorization"] = f"Bearer {access_token}"
    if method.upper() != "GET" and not any(key.lower() == "content-type" for key in merged):
        merged["Content-Type"] = "application/json"
    return merged
