"""Hosted identity provider interface and its error surface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from parish_api.schemas.roles import AppRole, HostedSession, RoleAssignment, UserWithRoles


class HostedProviderError(Exception):
    """Base class for hosted provider failures."""


class InvalidCredentialsError(HostedProviderError):
    """Email/password pair rejected by the provider."""


class ServiceUnavailableError(HostedProviderError):
    """Network or provider failure; the outcome of the call is unknown."""


class SessionExpiredError(HostedProviderError):
    """The access token is no longer accepted."""


class PermissionDeniedError(HostedProviderError):
    """A data-layer policy refused the operation."""


class RoleExistsError(HostedProviderError):
    """The (user, role) assignment is already present."""


class HostedProvider(ABC):
    """Identity, session and role-assignment operations of the hosted backend.

    Every protected operation takes the caller's session so the data layer
    can evaluate its own policies against the role-assignment relation.
    """

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> HostedSession:
        """Exchange credentials for a session and persist it."""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> HostedSession | None:
        """Register a new identity; ``None`` when email confirmation is pending."""

    @abstractmethod
    async def sign_out(self, session: HostedSession | None) -> None:
        """Forget the persisted session and revoke it server-side when possible."""

    @abstractmethod
    async def restore_session(self) -> HostedSession | None:
        """Return the persisted session if it is still valid, else ``None``."""

    @abstractmethod
    async def request_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        """Send a password reset link."""

    @abstractmethod
    async def update_password(self, session: HostedSession, new_password: str) -> None:
        """Change the signed-in identity's password."""

    @abstractmethod
    async def get_user_roles(self, session: HostedSession, user_id: str) -> set[AppRole]:
        """Return the roles assigned to ``user_id`` that the caller may see."""

    @abstractmethod
    async def list_users_with_roles(self, session: HostedSession) -> list[UserWithRoles]:
        """List every identity with its roles (admin only)."""

    @abstractmethod
    async def add_role(self, session: HostedSession, user_id: str, role: AppRole) -> RoleAssignment:
        """Grant ``role`` to ``user_id`` (admin only)."""

    @abstractmethod
    async def remove_role(self, session: HostedSession, user_id: str, role: AppRole) -> None:
        """Revoke ``role`` from ``user_id`` (admin only)."""

    @abstractmethod
    async def update_docs_access_code(self, session: HostedSession, code: str) -> None:
        """Replace the team documents access code (admin only)."""

    @abstractmethod
    async def verify_docs_access_code(self, code: str) -> bool:
        """Check a team documents access code; needs no session."""


__all__ = [
    "HostedProvider",
    "HostedProviderError",
    "InvalidCredentialsError",
    "PermissionDeniedError",
    "RoleExistsError",
    "ServiceUnavailableError",
    "SessionExpiredError",
]
