"""Role management screen logic for hosted-provider identities."""

from __future__ import annotations

import logging

from parish_api.adapters.hosted.base import (
    HostedProviderError,
    PermissionDeniedError,
    RoleExistsError,
    SessionExpiredError,
)
from parish_api.console.errors import (
    AccessDeniedError,
    AuthError,
    RoleAlreadyAssignedError,
    SignInRequiredError,
)
from parish_api.console.principals import Scheme
from parish_api.console.session import AuthSession
from parish_api.core.logging_safety import safe_log_identifier
from parish_api.schemas.roles import AppRole, HostedSession, RoleAssignment, UserWithRoles

logger = logging.getLogger(__name__)


def available_roles(user: UserWithRoles) -> list[AppRole]:
    """Roles that can still be granted to ``user``."""
    return [role for role in AppRole if role not in user.roles]


def require_hosted_admin(session: AuthSession) -> HostedSession:
    """Return the hosted session if its principal holds the admin role.

    This check only avoids pointless calls; the data layer decides.
    """
    state = session.context.hosted
    hosted_session = session.hosted_session
    if not state.is_authenticated or hosted_session is None or session.hosted_provider is None:
        raise SignInRequiredError()
    if not state.is_admin:
        raise AccessDeniedError()
    return hosted_session


async def translate_provider_error(session: AuthSession, exc: HostedProviderError) -> AuthError:
    if isinstance(exc, SessionExpiredError):
        await session.handle_rejected_credential(Scheme.HOSTED)
        return SignInRequiredError()
    if isinstance(exc, PermissionDeniedError):
        return AccessDeniedError()
    if isinstance(exc, RoleExistsError):
        return RoleAlreadyAssignedError()
    return AuthError("Service unavailable, try again later.")


class RoleManagement:
    """Grant/revoke hosted roles as the signed-in admin."""

    def __init__(self, session: AuthSession) -> None:
        self._session = session

    def _admin_session(self) -> HostedSession:
        return require_hosted_admin(self._session)

    async def _translate(self, exc: HostedProviderError) -> AuthError:
        return await translate_provider_error(self._session, exc)

    async def list_users(self) -> list[UserWithRoles]:
        hosted_session = self._admin_session()
        try:
            return await self._session.hosted_provider.list_users_with_roles(hosted_session)
        except HostedProviderError as exc:
            raise await self._translate(exc) from exc

    async def grant(self, user_id: str, role: AppRole) -> RoleAssignment:
        hosted_session = self._admin_session()
        try:
            assignment = await self._session.hosted_provider.add_role(hosted_session, user_id, role)
        except HostedProviderError as exc:
            raise await self._translate(exc) from exc
        logger.info(
            "roles.granted principal_id=%s role=%s",
            safe_log_identifier(user_id, prefix="pid"),
            role.value,
        )
        return assignment

    async def revoke(self, user_id: str, role: AppRole) -> None:
        # Admins may revoke their own admin role; nothing prevents the last admin from doing so.
        hosted_session = self._admin_session()
        try:
            await self._session.hosted_provider.remove_role(hosted_session, user_id, role)
        except HostedProviderError as exc:
            raise await self._translate(exc) from exc
        logger.info(
            "roles.revoked principal_id=%s role=%s",
            safe_log_identifier(user_id, prefix="pid"),
            role.value,
        )
        if user_id == hosted_session.user_id:
            await self._session.bootstrap_hosted()


__all__ = ["RoleManagement", "available_roles", "require_hosted_admin", "translate_provider_error"]
