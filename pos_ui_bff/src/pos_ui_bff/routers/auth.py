# src/pos_ui_bff/routers/auth.py

import logging

import httpx
from fastapi import APIRouter, Depends, status

from .. import auth_utils
from ..config import Settings
from ..credentials import CookieCredentialStore
from ..dependencies import get_app_settings, get_credential_store, get_gateway, get_http_client
from ..errors import INTERNAL_ERROR_MESSAGE
from ..gateway import AuthenticatedGateway
from ..responses import backend_error, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
async def login(
        payload: dict,
        client: httpx.AsyncClient = Depends(get_http_client),
        settings: Settings = Depends(get_app_settings),
        store: CookieCredentialStore = Depends(get_credential_store),
):
    email = payload.get("email")
    password = payload.get("password")
    if not email or not password:
        return error_response("Campos incompletos", status.HTTP_400_BAD_REQUEST)

    response = await auth_utils.post_login(client, settings, str(email).strip(), password)
    if not response.is_success:
        return backend_error(response, "Credenciales incorrectas")

    bundle = auth_utils.parse_token_bundle(response)
    if bundle is None:
        logger.error("AUTH: /login - Backend accepted the login but returned no usable tokens")
        return error_response(INTERNAL_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)

    store.set_credentials(bundle.access_token, bundle.refresh_token, bundle.user)
    logger.info("AUTH: /login - User id %s logged in", bundle.user.id)
    return {"redirectTo": "/"}


@router.post("/logout")
async def logout(gateway: AuthenticatedGateway = Depends(get_gateway)):
    response = await gateway.fetch("/auth/logout", method="POST")
    if not response.is_success:
        return backend_error(response, "Error al cerrar sesión")

    gateway.store.clear()
    logger.info("AUTH: /logout - Session cookies cleared")
    return {"redirectTo": "/login"}


@router.post("/refresh-token")
async def refresh_token(
        client: httpx.AsyncClient = Depends(get_http_client),
        settings: Settings = Depends(get_app_settings),
        store: CookieCredentialStore = Depends(get_credential_store),
):
    response = await auth_utils.post_refresh(client, settings, store.refresh_token)
    if not response.is_success:
        return backend_error(response, "No se pudo renovar la sesión")

    bundle = auth_utils.parse_token_bundle(response)
    if bundle is None:
        return error_response(INTERNAL_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)

    store.set_credentials(bundle.access_token, bundle.refresh_token, bundle.user)
    return {"success": True}
