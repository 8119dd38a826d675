"""FastAPI application entrypoint for the reel proxy."""
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from studio import __version__
from studio.config import Settings, get_settings
from studio.logging_config import configure_logging, get_logger
from studio.middleware import (
    CorrelationIdMiddleware,
    PermissiveCorsMiddleware,
    RateLimitMiddleware,
    SlidingWindowLimiter,
)
from studio.routers import health_router, reel_router

logger = get_logger(__name__)


class MissingConfigurationError(RuntimeError):
    """Raised at startup when a required setting is absent."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{name} is missing from environment variables.")


def create_app(
    settings: Optional[Settings] = None,
    rate_limiter: Optional[SlidingWindowLimiter] = None,
) -> FastAPI:
    """
    Build the proxy app. Refuses to build without API_KEY so a broken server never starts.
    The POST limiter comes from REDIS_URL unless one is passed in.
    """
    settings = settings or get_settings()
    if not settings.api_key:
        raise MissingConfigurationError("API_KEY")
    if rate_limiter is None and settings.redis_url:
        rate_limiter = SlidingWindowLimiter(settings.redis_url, settings.rate_limit_per_min)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        logger.info("app_started", version=__version__, model=settings.veo_model)
        yield
        if rate_limiter is not None:
            await rate_limiter.aclose()
        logger.info("app_shutdown")

    app = FastAPI(
        title="Influencer Studio Reel Proxy",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = rate_limiter
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
    app.add_middleware(CorrelationIdMiddleware)
    # Added last so it runs first: preflight never reaches the limiter.
    app.add_middleware(PermissiveCorsMiddleware)

    app.include_router(health_router)
    app.include_router(reel_router)
    return app


def run() -> None:
    """Console entrypoint: exit immediately when API_KEY is missing, else serve on HOST:PORT."""
    settings = get_settings()
    configure_logging(settings)
    try:
        app = create_app(settings)
    except MissingConfigurationError as e:
        logger.critical("app_config_missing", setting=e.name, error=str(e))
        sys.exit(1)
    logger.info("app_listening", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
