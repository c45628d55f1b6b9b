from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from api.coaching import router as coaching_router
from api.observability import configure_logging, install_request_logging
from api.ratelimit import limiter, limiter_enabled, rate_limit_exceeded_handler
from api.routes import router
from core.config import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the API from current settings; tests call this again after changing the environment."""
    settings = get_settings()
    configure_logging(settings.log_level)
    request_id_header = settings.request_id_header_name or "X-Request-ID"

    # The limiter is a module-level singleton shared by the route decorators.
    limiter.enabled = limiter_enabled(settings)
    limiter.reset()

    app = FastAPI(title="Coaching Onboarding API", version="1.0.0")
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.include_router(router)
    app.include_router(coaching_router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", request_id_header],
        expose_headers=[request_id_header],
    )
    install_request_logging(app, request_id_header)

    logger.info(
        "app_created",
        extra={"app_env": settings.app_env, "rate_limit_enabled": limiter.enabled, "routes": len(app.routes)},
    )
    return app


app = create_app()
