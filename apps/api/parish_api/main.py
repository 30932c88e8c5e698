"""FastAPI application entrypoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from parish_api.core.config import Settings, get_settings
from parish_api.core.rate_limit import SlidingWindowRateLimiter
from parish_api.errors import ApiError, ConfigurationError
from parish_api.repositories.memory import InMemoryStore
from parish_api.routes import auth_router, docs_router, health_router, homilies_router, users_router
from parish_api.routes.auth import login as login_endpoint
from parish_api.schemas.error import ErrorResponse
from parish_api.services.auth import INVALID_CREDENTIALS_MESSAGE, bootstrap_admin

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

# Malformed login bodies get the same answer as wrong credentials.
_GENERIC_401_ENDPOINTS = frozenset({login_endpoint})
_GENERIC_401_PATHS = frozenset({("POST", f"{API_PREFIX}/auth/login")})


def _is_login_request(request: Request) -> bool:
    # Mounted routes report their router-relative path, so match the endpoint first.
    route = request.scope.get("route")
    if getattr(route, "endpoint", None) in _GENERIC_401_ENDPOINTS:
        return True
    return (request.method.upper(), request.url.path.rstrip("/")) in _GENERIC_401_PATHS


def _check_settings(settings: Settings) -> None:
    if not settings.jwt_secret:
        raise ConfigurationError("PARISH_JWT_SECRET must be set; refusing to sign tokens with a default secret")
    if not settings.cors_allow_origins:
        logger.warning("config.cors_allow_list_empty cross_origin_requests=blocked")


def create_app(settings: Settings | None = None, store: InMemoryStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    _check_settings(settings)

    app = FastAPI(title="Parish Admin API", version="1.0.0")
    app.state.settings = settings
    app.state.store = store if store is not None else InMemoryStore()
    app.state.login_limiter = SlidingWindowRateLimiter(
        limit=settings.login_rate_limit,
        window_seconds=settings.login_rate_window_seconds,
    )
    app.state.docs_verify_limiter = SlidingWindowRateLimiter(
        limit=settings.docs_verify_rate_limit,
        window_seconds=settings.docs_verify_rate_window_seconds,
    )
    bootstrap_admin(app.state.store, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Correlation-Id"],
    )

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        if _is_login_request(request):
            payload = ErrorResponse(code="UNAUTHORIZED", message=INVALID_CREDENTIALS_MESSAGE)
            return JSONResponse(status_code=401, content=payload.model_dump(exclude_none=True))

        return await request_validation_exception_handler(request, exc)

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(homilies_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(docs_router, prefix=API_PREFIX)

    return app
