"""FastAPI application for the Khairat Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.field_crypto import FieldCipher
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from services.khairat_service.exceptions import KhairatError
from services.khairat_service.routers import (
    applications_router,
    search_router,
    uploads_router,
)
from services.khairat_service.services.notifications import NotificationDispatcher

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # Fails fast on a missing or unusable key
    app.state.field_cipher = FieldCipher.from_secret(settings.KHAIRAT_ENCRYPTION_KEY)
    app.state.notifier = NotificationDispatcher.from_settings()
    configured = [c.name for c in app.state.notifier.channels if c.is_configured()]
    logger.info(
        "Khairat service started (%s), notification channels: %s",
        settings.ENVIRONMENT,
        ", ".join(configured) or "none",
    )
    yield
    await app.state.notifier.drain()


def create_app() -> FastAPI:
    """Create and configure the Khairat Service FastAPI app."""
    app = FastAPI(
        title="Khairat Service",
        version="0.1.0",
        description="Death-benefit fund membership, dues and legacy records.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Structured logging + request tracing
    add_observability_middleware(app)

    add_exception_handlers(app, KhairatError)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "khairat"}

    app.include_router(applications_router)
    app.include_router(search_router)
    app.include_router(uploads_router)

    return app


app = create_app()
