# src/pos_ui_bff/auth_utils.py
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .config import Settings
from .errors import BackendUnavailable
from .session_data import TokenBundle

logger = logging.getLogger(__name__)


async def send(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """
    Issue a request to the backend.
    Transport failures surface as BackendUnavailable; HTTP error statuses are returned as-is.
    """
    try:
        return await client.request(method, url, **kwargs)
    except httpx.RequestError as e:
        raise BackendUnavailable() from e


async def post_login(client: httpx.AsyncClient, settings: Settings, email: str, password: str) -> httpx.Response:
    url = settings.backend_url("/auth/login")
    logger.info("AUTH_UTILS: post_login - Logging in %s", email)
    return await send(client, "POST", url, json={"email": email, "password": password})


async def post_refresh(client: httpx.AsyncClient, settings: Settings, refresh_token: Optional[str]) -> httpx.Response:
    return await send(client, "POST", settings.REFRESH_URL, json={"refreshToken": refresh_token})


def parse_token_bundle(response: httpx.Response) -> Optional[TokenBundle]:
    try:
        return TokenBundle.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        logger.warning("AUTH_UTILS: parse_token_bundle - Unreadable token response: %s", type(e).__name__)
        return None


async def request_token_refresh(
        client: httpx.AsyncClient,
        settings: Settings,
        refresh_token: str,
) -> Optional[TokenBundle]:
    """
    Trade a refresh token for a new access/refresh pair.

    Returns None when the refresh did not verifiably succeed: the backend was
    unreachable, answered with a non-2xx status, or sent an unreadable body.
    The cause is logged, never raised.
    """
    try:
        response = await post_refresh(client, settings, refresh_token)
    except BackendUnavailable:
        logger.exception("AUTH_UTILS: request_token_refresh - Refresh endpoint unreachable")
        return None

    if not response.is_success:
        logger.info("AUTH_UTILS: request_token_refresh - Refresh rejected with status %s", response.status_code)
        return None

    bundle = parse_token_bundle(response)
    if bundle is not None:
        logger.info("AUTH_UTILS: request_token_refresh - Tokens refreshed for user id %s", bundle.user.id)
    return bundle
