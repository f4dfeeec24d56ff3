# src/pos_ui_bff/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse

from .config import Settings, configure_logging, get_settings
from .credentials import CookieCredentialStore
from .errors import BackendUnavailable, BFFError
from .gateway import RefreshSingleFlight
from .routers import auth, catalog, orders, users

logger = logging.getLogger(__name__)

SERVICE_NAME = "pos-ui-bff"


class CredentialCookieMiddleware(BaseHTTPMiddleware):
    """
    Gives each request a CookieCredentialStore over the auth cookies and,
    once the route has run, writes any credential change back as Set-Cookie.
    """

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request, call_next):
        store = CookieCredentialStore(request.cookies, self.settings)
        request.state.credentials = store
        response: StarletteResponse = await call_next(request)
        store.write_to(response)
        return response


def _log_startup(settings: Settings) -> None:
    logger.info("--- POS-UI-BFF (FastAPI) Starting Up ---")
    logger.info("Environment: %s", settings.APP_ENV)
    logger.info("Backend Base URL: %s", settings.BACKEND_BASE_URL)
    logger.info("Secure cookies: %s", settings.COOKIE_SECURE)
    logger.info("Refresh single-flight: %s", settings.REFRESH_SINGLE_FLIGHT)
    logger.info("Allowed origins: %s", settings.ALLOWED_ORIGINS or "(same origin only)")
    logger.info("-------------------------------------------")


def create_app(settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = http_client is None
        app.state.http_client = http_client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
        _log_startup(settings)
        try:
            yield
        finally:
            if owns_client:
                await app.state.http_client.aclose()

    app = FastAPI(
        title="POS-UI-BFF API",
        description="Backend-For-Frontend for the restaurant POS UI, handling session cookies and proxying to the backend API.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.refresh_single_flight = RefreshSingleFlight() if settings.REFRESH_SINGLE_FLIGHT else None

    app.add_middleware(CredentialCookieMiddleware, settings=settings)
    if settings.ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(BFFError)
    async def bff_error_handler(request: Request, exc: BFFError):
        if isinstance(exc, BackendUnavailable):
            logger.error("MAIN: Backend unreachable for %s %s", request.method, request.url.path, exc_info=exc)
        else:
            logger.error("MAIN: %s on %s %s", type(exc).__name__, request.method, request.url.path, exc_info=exc)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": SERVICE_NAME, "env": settings.APP_ENV}

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(catalog.router)
    app.include_router(orders.router)
    return app


app = create_app()
