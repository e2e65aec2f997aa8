"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskflow.core.config import get_settings
from taskflow.core.database import async_session_maker, init_db
from taskflow.core.errors import register_exception_handlers
from taskflow.core.limiter import limiter
from taskflow.core.logging import configure_logging
from taskflow.middleware.audit import AuditTrailMiddleware
from taskflow.routers import admin, auth, health, tasks
from taskflow.services.email import verify_email_config
from taskflow.services.identity import describe_verifiers

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan events."""
    await init_db()
    logger.info("Token verifiers enabled: %s", ", ".join(describe_verifiers(settings)))
    await verify_email_config(settings)
    logger.info("Frontend URL: %s", settings.frontend_url)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Task management API with per-user tasks and admin auditing",
    version="0.1.0",
    lifespan=lifespan,
)

# Sessions opened outside request dependencies (audit trail)
app.state.session_factory = async_session_maker

# Rate limiting
app.state.limiter = limiter

register_exception_handlers(app)

# Audit trail wraps routing; CORS wraps everything
app.add_middleware(AuditTrailMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=settings.api_prefix, tags=["auth"])
app.include_router(tasks.router, prefix=settings.api_prefix, tags=["tasks"])
app.include_router(admin.router, prefix=settings.api_prefix, tags=["admin"])


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "taskflow.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,
    )
