"""Credential exchange and admin provisioning for the ancillary API."""

from __future__ import annotations

import logging

from parish_api.core.config import Settings
from parish_api.core.logging_safety import safe_log_identifier
from parish_api.core.security import create_access_token, hash_password, verify_password
from parish_api.errors import ApiError
from parish_api.repositories.memory import InMemoryStore
from parish_api.schemas.auth import BackendRole, LoginResponse, PublicUser

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"

# Compared against when the email is unknown so both paths pay for one bcrypt check.
_DUMMY_HASH = hash_password("unused-timing-equaliser")


class AuthService:
    def __init__(self, store: InMemoryStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings

    def login(self, *, email: str, password: str) -> LoginResponse:
        if not self._settings.jwt_secret:
            logger.error("auth.login_unavailable reason=jwt_secret_unset")
            raise ApiError(
                status_code=500,
                code="CONFIGURATION_ERROR",
                message="Authentication is not configured",
            )

        record = self._store.get_user_by_email(email)
        password_ok = verify_password(password, record.password_hash if record else _DUMMY_HASH)
        if record is None or not password_ok:
            logger.warning(
                "auth.login_rejected email=%s",
                safe_log_identifier(email, prefix="em"),
            )
            raise ApiError(status_code=401, code="UNAUTHORIZED", message=INVALID_CREDENTIALS_MESSAGE)

        token = create_access_token(
            secret=self._settings.jwt_secret,
            user_id=record.id,
            email=record.email,
            role=record.role.value,
            expires_hours=self._settings.token_ttl_hours,
        )
        logger.info(
            "auth.login_accepted principal_id=%s role=%s",
            safe_log_identifier(record.id, prefix="pid"),
            record.role.value,
        )
        return LoginResponse(token=token, user=PublicUser(email=record.email, role=record.role))


def bootstrap_admin(store: InMemoryStore, settings: Settings) -> bool:
    """Provision the first ADMIN account from configuration.

    Returns True when a new account was created. A missing email/password
    pair disables provisioning; an existing account is left untouched.
    """
    if not settings.admin_email or not settings.admin_password:
        logger.warning("auth.admin_bootstrap_skipped reason=credentials_unset")
        return False

    safe_email = safe_log_identifier(settings.admin_email, prefix="em")
    if store.get_user_by_email(settings.admin_email) is not None:
        logger.info("auth.admin_bootstrap_exists email=%s", safe_email)
        return False

    try:
        password_hash = hash_password(settings.admin_password)
    except ValueError:
        logger.error("auth.admin_bootstrap_failed email=%s reason=password_rejected", safe_email)
        return False

    store.create_user(email=settings.admin_email, password_hash=password_hash, role=BackendRole.ADMIN)
    logger.info("auth.admin_bootstrap_created email=%s", safe_email)
    return True
