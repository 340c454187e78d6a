"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The settings are read once here and turned into the long-lived
collaborators (database engine and session factory, password hasher,
token issuer) stored on app.state; route dependencies pick them up from
there instead of importing globals.
Lifespan handles logging setup, table creation, and engine disposal.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from projecthub import __version__
from projecthub.api import api_router
from projecthub.api.errors import register_exception_handlers
from projecthub.auth.jwt import TokenIssuer
from projecthub.auth.password import PasswordHasher
from projecthub.config import Settings, settings
from projecthub.db.engine import build_engine, build_session_factory, init_models
from projecthub.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown.
    """
    app_settings: Settings = app.state.settings
    configure_logging(app_settings.environment, app_settings.log_level)
    logger.info(
        "projecthub.starting",
        version=__version__,
        environment=app_settings.environment,
        port=app_settings.port,
    )

    engine = app.state.engine
    await init_models(engine)
    logger.info("projecthub.database_ready")

    yield

    logger.info("projecthub.shutdown")
    await engine.dispose()


def create_app(
    app_settings: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    The database engine comes from app_settings.database_url unless an
    engine is passed in (tests hand over their in-memory one).
    """
    app_settings = app_settings or settings
    engine = engine or build_engine(app_settings.database_url, echo=app_settings.debug)

    app = FastAPI(
        title="projecthub",
        description="Owner-scoped project storage behind bearer-token auth",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.password_hasher = PasswordHasher(rounds=app_settings.bcrypt_rounds)
    app.state.token_issuer = TokenIssuer(
        secret=app_settings.jwt_secret,
        algorithm=app_settings.jwt_algorithm,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from projecthub.middleware.request_id import RequestIdMiddleware
    from projecthub.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: projecthub.main:app)
app = create_app()
