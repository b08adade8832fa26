"""FastAPI web application for club tournament registrations."""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.endpoints.alert_settings import router as alert_settings_router
from web.endpoints.auction import router as auction_router
from web.endpoints.registrations import router as registrations_router
from web.endpoints.roster import router as roster_router
from web.endpoints.system import router as system_router

logger: logging.Logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown."""
    from notifications.email_service import initialize_email_service
    from web.dependencies import get_config, get_registration_api, get_store

    config = get_config()

    # Creates the database with all registration tables
    get_store()

    # Email service must exist before the notifier picks it up
    initialize_email_service(config)
    get_registration_api()

    yield

    logger.info("Registration API shutting down")


def get_allowed_origins() -> list[str] | None:
    """Get CORS origins from environment, if set."""
    env_origins: str | None = os.environ.get("ALLOWED_ORIGINS")
    if env_origins:
        return [origin.strip() for origin in env_origins.split(",")]
    return None


# FastAPI app
app: FastAPI = FastAPI(
    title="Club Tournament Registration",
    description="Team and auction registrations with gated email notifications",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware setup
allowed_origins: list[str] | None = get_allowed_origins()

if allowed_origins:

    logging.info(f"Setting CORS allowed origins: {allowed_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:

    logging.info("No ALLOWED_ORIGINS set, using development CORS settings")

    # Development: Allow any localhost/127.0.0.1
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include v1 API endpoints
app.include_router(system_router, prefix="/v1")
app.include_router(registrations_router, prefix="/v1")
app.include_router(roster_router, prefix="/v1")
app.include_router(auction_router, prefix="/v1")
app.include_router(alert_settings_router, prefix="/v1")
