"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient
from starlette.middleware.sessions import SessionMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.chat.stream import StreamChatDirectory
from infrastructure.email.zeptomail import ZeptoMailProvider
from infrastructure.http_client import HttpClient
from infrastructure.oauth_clients import init_oauth
from repositories.indexes import ensure_indexes
from routes.auth_routes import router as auth_router
from routes.federated_routes import router as federated_router
from routes.health_routes import router as health_router
from services.session_service import SessionService
from shared.logging import get_logger, setup_logging
from shared.request_logging import setup_request_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, is_production=settings.is_production)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            environment=settings.env,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        app.state.settings = settings
        app.state.session_service = SessionService(
            settings.session, secure_cookies=settings.is_production
        )

        mongo_client: AsyncMongoClient = AsyncMongoClient(settings.db.mongodb_uri)
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        await ensure_indexes(app.state.db)

        # One client per outbound concern so each keeps its own timeout
        email_http = HttpClient(timeout=settings.email.email_send_timeout_seconds)
        chat_http = HttpClient(timeout=settings.chat.chat_sync_timeout_seconds)

        app.state.email_provider = ZeptoMailProvider(
            settings.email,
            email_http,
            app_name=settings.app_name,
            app_url=settings.frontend_url,
            otp_ttl_minutes=max(1, settings.auth.otp_ttl_seconds // 60),
        )

        chat_directory = StreamChatDirectory(settings.chat, chat_http)
        app.state.chat_directory = chat_directory if chat_directory.configured else None
        if app.state.chat_directory is None:
            log.warning("chat_directory_not_configured")

        app.state.oauth, app.state.oauth_providers = init_oauth(
            settings.oauth, session_enabled=bool(settings.secret_key)
        )

        log.info("app_started", env=settings.env)
        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await email_http.aclose()
        await chat_http.aclose()
        await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Holds the OAuth state/nonce between /federated/start and /callback
    if settings.secret_key:
        app.add_middleware(
            SessionMiddleware,
            secret_key=settings.secret_key,
            same_site="lax",
            https_only=settings.is_production,
        )
    else:
        log.warning("session_middleware_disabled", reason="SECRET_KEY not set")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_request_logging(app)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(federated_router)

    return app
