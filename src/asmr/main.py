"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from asmr.auth.router import router as auth_router
from asmr.comments.router import router as comments_router
from asmr.config import get_settings
from asmr.content.router import router as content_router
from asmr.coupons.router import router as coupons_router
from asmr.database import close_db, init_db
from asmr.giftcards.router import router as giftcards_router
from asmr.health.router import router as health_router
from asmr.media.router import router as media_router
from asmr.media.storage import reset_storage_client
from asmr.middleware import setup_middleware
from asmr.redis_client import close_redis, init_redis
from asmr.users.router import router as users_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    yield

    reset_storage_client()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ASMR Content API",
        description="Backend API for the ASMR platform: catalog, points, purchases and media access",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(content_router)
    app.include_router(comments_router)
    app.include_router(coupons_router)
    app.include_router(giftcards_router)
    app.include_router(media_router)

    return app


app = create_app()
