"""
Pytest configuration for the POS UI BFF tests.
"""

from typing import Optional

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from pos_ui_bff.config import Settings
from pos_ui_bff.main import create_app
from pos_ui_bff.session_data import SessionData, UserInfo

BACKEND = "http://backend.test"


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a mocked backend, ignoring any local .env."""
    return Settings(
        _env_file=None,
        APP_ENV="test",
        BACKEND_BASE_URL=BACKEND,
        REFRESH_SINGLE_FLIGHT=True,
    )


@pytest.fixture
def backend():
    """respx router standing in for the backend API."""
    with respx.mock(base_url=BACKEND, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def client(settings: Settings, backend) -> TestClient:
    """Test client running the app lifespan (owns the outbound httpx client)."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def token_bundle() -> dict:
    """Backend body for a successful login or refresh."""
    return {
        "accessToken": "new-access",
        "refreshToken": "new-refresh",
        "user": {
            "id": 7,
            "name": "Ana Torres",
            "email": "ana@pos.pe",
            "role": "WAITER",
            "active": True,
        },
    }


def set_cookie_headers(response: httpx.Response) -> list:
    return response.headers.get_list("set-cookie")


def set_cookie_for(response: httpx.Response, name: str) -> str:
    """The Set-Cookie header for `name`, or "" if the response does not set it."""
    for header in set_cookie_headers(response):
        if header.startswith(f"{name}="):
            return header
    return ""


class InMemoryCredentialStore:
    """Dict-backed credential store that counts its writes."""

    def __init__(self, session: Optional[SessionData] = None) -> None:
        self.session = session or SessionData()
        self.writes = 0

    @property
    def access_token(self) -> Optional[str]:
        return self.session.access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self.session.refresh_token

    @property
    def user_info(self) -> Optional[UserInfo]:
        return self.session.user

    def set_credentials(self, access_token: str, refresh_token: str, user: UserInfo) -> None:
        self.session = SessionData(access_token=access_token, refresh_token=refresh_token, user=user)
        self.writes += 1

    def clear(self) -> None:
        self.session = SessionData()
        self.writes += 1
