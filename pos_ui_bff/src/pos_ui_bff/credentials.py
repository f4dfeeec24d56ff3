# src/pos_ui_bff/credentials.py

import logging
from typing import Dict, Mapping, Optional, Protocol, runtime_checkable

from starlette.responses import Response

from .config import Settings
from .session_data import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    USER_INFO_COOKIE,
    SessionData,
    UserInfo,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class CredentialStore(Protocol):
    """
    Key-value store holding the session credentials.

    Handed to the gateway explicitly. Writes always cover all three
    credentials at once.
    """

    @property
    def access_token(self) -> Optional[str]:
        ...

    @property
    def refresh_token(self) -> Optional[str]:
        ...

    @property
    def user_info(self) -> Optional[UserInfo]:
        ...

    def set_credentials(self, access_token: str, refresh_token: str, user: UserInfo) -> None:
        ...

    def clear(self) -> None:
        ...


class CookieCredentialStore:
    """
    Request-scoped store over the accessToken / refreshToken / userInfo cookies.

    Reads come from the incoming request and see any write made earlier in the
    same request. Writes are held until write_to() puts them on the response.
    """

    def __init__(self, cookies: Mapping[str, str], settings: Settings) -> None:
        self._settings = settings
        self._session = SessionData(
            access_token=cookies.get(ACCESS_TOKEN_COOKIE) or None,
            refresh_token=cookies.get(REFRESH_TOKEN_COOKIE) or None,
            user=UserInfo.from_cookie(cookies.get(USER_INFO_COOKIE)),
        )
        self._dirty = False

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._session.refresh_token

    @property
    def user_info(self) -> Optional[UserInfo]:
        return self._session.user

    @property
    def dirty(self) -> bool:
        return self._dirty

    def set_credentials(self, access_token: str, refresh_token: str, user: UserInfo) -> None:
        self._session = SessionData(access_token=access_token, refresh_token=refresh_token, user=user)
        self._dirty = True

    def clear(self) -> None:
        self._session = SessionData()
        self._dirty = True

    def write_to(self, response: Response) -> None:
        if not self._dirty:
            return
        if self._session.access_token is None:
            clear_auth_cookies(response, self._settings)
            logger.debug("CREDENTIALS: auth cookies cleared on response")
        else:
            set_auth_cookies(
                response,
                self._settings,
                self._session.access_token,
                self._session.refresh_token,
                self._session.user,
            )
            logger.debug("CREDENTIALS: auth cookies written on response")


def _cookie_options(settings: Settings, httponly: bool) -> Dict[str, object]:
    return {
        "path": "/",
        "httponly": httponly,
        "secure": settings.COOKIE_SECURE,
        "samesite": "strict",
    }


def set_auth_cookies(
        response: Response,
        settings: Settings,
        access_token: str,
        refresh_token: str,
        user: UserInfo,
) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.ACCESS_TOKEN_MAX_AGE,
        **_cookie_options(settings, httponly=True),
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        refresh_token,
        max_age=settings.REFRESH_TOKEN_MAX_AGE,
        **_cookie_options(settings, httponly=True),
    )
    response.set_cookie(
        USER_INFO_COOKIE,
        user.to_cookie(),
        max_age=settings.USER_INFO_MAX_AGE,
        **_cookie_options(settings, httponly=False),
    )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    for name, httponly in (
            (ACCESS_TOKEN_COOKIE, True),
            (REFRESH_TOKEN_COOKIE, True),
            (USER_INFO_COOKIE, False),
    ):
        response.set_cookie(name, "", max_age=0, **_cookie_options(settings, httponly=httponly))
