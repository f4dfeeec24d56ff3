# src/pos_ui_bff/session_data.py

import json
from typing import Optional, Union
from urllib.parse import quote, unquote

from pydantic import BaseModel, ConfigDict, Field, ValidationError

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"
USER_INFO_COOKIE = "userInfo"

# Characters encodeURIComponent leaves alone, minus the parentheses a cookie value cannot carry unquoted
_COOKIE_SAFE_CHARS = "-_.!~*'"


class UserInfo(BaseModel):
    """
    Non-sensitive snapshot of the authenticated user.
    Stored URL-encoded in the client-readable userInfo cookie.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    active: Optional[bool] = None

    def to_cookie(self) -> str:
        payload = json.dumps(
            {
                "id": self.id,
                "name": self.name,
                "email": self.email,
                "role": self.role,
                "active": self.active,
            },
            separators=(",", ":"),
            ensure_ascii=False,
        )
        return quote(payload, safe=_COOKIE_SAFE_CHARS)

    @classmethod
    def from_cookie(cls, raw: Optional[str]) -> Optional["UserInfo"]:
        if not raw:
            return None
        try:
            data = json.loads(unquote(raw))
            return cls.model_validate(data)
        except (ValueError, ValidationError):
            return None


class TokenBundle(BaseModel):
    """Success body of both /auth/login and /auth/refresh-token on the backend."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(alias="accessToken", min_length=1)
    refresh_token: str = Field(alias="refreshToken", min_length=1)
    user: UserInfo


class SessionData(BaseModel):
    """
    Credentials for one browser session.
    Only ever written as a whole: login and refresh set all three, logout clears all three.
    """
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[UserInfo] = None
