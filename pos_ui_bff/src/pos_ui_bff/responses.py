# src/pos_ui_bff/responses.py

from typing import Any, Optional

import httpx
from fastapi import status
from fastapi.responses import JSONResponse

from .errors import InvalidBackendResponse


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def backend_error(response: httpx.Response, default_message: str) -> JSONResponse:
    """Relay a backend failure with its status, preferring the backend's own message."""
    message: Optional[str] = None
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        message = str(data["message"])
    return error_response(message or default_message, response.status_code)


def backend_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise InvalidBackendResponse() from e


def created() -> JSONResponse:
    return JSONResponse({"success": True}, status_code=status.HTTP_201_CREATED)
