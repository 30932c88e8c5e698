"""Dependency wiring for routes."""

from __future__ import annotations

import logging
from typing import Annotated, Callable
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from parish_api.adapters.auth import AuthVerificationError, JwtTokenVerifier, TokenVerifier
from parish_api.core.config import Settings
from parish_api.core.logging_safety import safe_log_identifier
from parish_api.core.rate_limit import SlidingWindowRateLimiter
from parish_api.errors import ApiError, forbidden, unauthorized
from parish_api.repositories.memory import InMemoryStore
from parish_api.schemas.auth import AuthPrincipal, BackendRole
from parish_api.services.auth import AuthService
from parish_api.services.docs import DocsAccessService
from parish_api.services.homilies import HomilyService
from parish_api.services.users import UserService

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def _caller_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_verifier(settings: Annotated[Settings, Depends(get_app_settings)]) -> TokenVerifier:
    return JwtTokenVerifier(secret=settings.jwt_secret)


async def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> AuthPrincipal:
    """Validate bearer token and attach normalized principal to request context."""
    safe_correlation_id = safe_log_identifier(_request_correlation_id(request), prefix="cid")
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=invalid_or_missing_bearer",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise unauthorized()

    try:
        principal = verifier.verify_token(credentials.credentials)
    except AuthVerificationError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=token_verification_failed detail=%s",
            safe_correlation_id,
            request.method,
            request.url.path,
            exc,
        )
        raise unauthorized() from exc

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s role=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_log_identifier(principal.user_id, prefix="pid"),
        principal.role.value,
    )
    request.state.auth_principal = principal
    return principal


def require_role(*allowed: BackendRole) -> Callable[..., AuthPrincipal]:
    """Build a dependency that admits only principals holding one of ``allowed``."""
    allowed_roles = frozenset(allowed)

    async def _require_role(
        request: Request,
        principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    ) -> AuthPrincipal:
        if principal.role not in allowed_roles:
            logger.warning(
                "auth.forbidden method=%s path=%s principal_id=%s role=%s",
                request.method,
                request.url.path,
                safe_log_identifier(principal.user_id, prefix="pid"),
                principal.role.value,
            )
            raise forbidden()
        return principal

    return _require_role


require_admin = require_role(BackendRole.ADMIN)


def get_login_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    return request.app.state.login_limiter


def get_docs_verify_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    return request.app.state.docs_verify_limiter


def _enforce_rate_limit(request: Request, limiter: SlidingWindowRateLimiter, event: str, message: str) -> None:
    caller = _caller_key(request)
    retry_after = limiter.hit(caller)
    if retry_after is not None:
        logger.warning(
            "%s caller=%s",
            event,
            safe_log_identifier(caller, prefix="ip"),
        )
        raise ApiError(
            status_code=429,
            code="RATE_LIMITED",
            message=message,
            headers={"Retry-After": str(int(retry_after) + 1)},
        )


async def enforce_login_rate_limit(
    request: Request,
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_login_rate_limiter)],
) -> None:
    _enforce_rate_limit(request, limiter, "auth.login_rate_limited", "Too many login attempts. Try again later.")


async def enforce_docs_verify_rate_limit(
    request: Request,
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_docs_verify_rate_limiter)],
) -> None:
    _enforce_rate_limit(request, limiter, "docs.verify_rate_limited", "Too many attempts. Try again later.")


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_auth_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthService:
    return AuthService(store, settings)


def get_user_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> UserService:
    return UserService(store)


def get_homily_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> HomilyService:
    return HomilyService(store)


def get_docs_access_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> DocsAccessService:
    return DocsAccessService(store)
