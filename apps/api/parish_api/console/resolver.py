"""Role resolution for both identity schemes."""

from __future__ import annotations

import logging

import jwt

from parish_api.adapters.hosted.base import HostedProvider
from parish_api.console.ancillary import AncillaryApiClient
from parish_api.console.principals import BearerPrincipal, HostedPrincipal
from parish_api.core.logging_safety import safe_log_identifier
from parish_api.core.security import read_unverified_claims
from parish_api.schemas.auth import BackendRole
from parish_api.schemas.roles import HostedSession

logger = logging.getLogger(__name__)


class RoleResolver:
    def __init__(
        self,
        *,
        api_client: AncillaryApiClient | None = None,
        hosted: HostedProvider | None = None,
    ) -> None:
        self._api_client = api_client
        self._hosted = hosted

    async def resolve_hosted(self, session: HostedSession) -> HostedPrincipal:
        """Attach the caller's role rows to the session's principal.

        Queried fresh every time; an empty role set is a valid answer.
        Provider errors propagate to the caller.
        """
        if self._hosted is None:
            raise RuntimeError("hosted provider is not configured")
        roles = await self._hosted.get_user_roles(session, session.user_id)
        return HostedPrincipal(user_id=session.user_id, email=session.email, roles=frozenset(roles))

    async def resolve_bearer(self, token: str) -> BearerPrincipal | None:
        """Read id and role from the token, then confirm the API still accepts it."""
        if self._api_client is None:
            return None
        try:
            claims = read_unverified_claims(token)
            user_id = str(claims.get("sub") or "").strip()
            role = BackendRole(claims.get("role"))
        except (jwt.InvalidTokenError, ValueError):
            logger.info("resolver.bearer_malformed")
            return None
        if not user_id:
            logger.info("resolver.bearer_malformed")
            return None

        user = await self._api_client.me(token)
        if user is None:
            return None

        principal = BearerPrincipal(user_id=user_id, email=user.email, role=role)
        logger.info(
            "resolver.bearer_resolved principal_id=%s role=%s",
            safe_log_identifier(user_id, prefix="pid"),
            role.value,
        )
        return principal


__all__ = ["RoleResolver"]
