# src/pos_ui_bff/dependencies.py

import httpx
from fastapi import Depends, Request

from .config import Settings
from .credentials import CookieCredentialStore
from .gateway import AuthenticatedGateway


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_credential_store(request: Request) -> CookieCredentialStore:
    # Installed by CredentialCookieMiddleware for every request
    return request.state.credentials


def get_gateway(
        request: Request,
        store: CookieCredentialStore = Depends(get_credential_store),
) -> AuthenticatedGateway:
    return AuthenticatedGateway(
        client=request.app.state.http_client,
        store=store,
        settings=request.app.state.settings,
        single_flight=request.app.state.refresh_single_flight,
    )
