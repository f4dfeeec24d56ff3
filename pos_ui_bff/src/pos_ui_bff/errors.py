# src/pos_ui_bff/errors.py

from typing import Optional

from fastapi import status

INTERNAL_ERROR_MESSAGE = "Error interno"


class BFFError(Exception):
    """Base error rendered by the app as {"error": detail}."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = INTERNAL_ERROR_MESSAGE, status_code: Optional[int] = None) -> None:
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail)


class BackendUnavailable(BFFError):
    """The backend could not be reached (connection refused, timeout, ...)."""


class InvalidBackendResponse(BFFError):
    """The backend answered with a body the BFF cannot read."""
