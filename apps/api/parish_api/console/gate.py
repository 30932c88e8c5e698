"""Authorization context: session status per scheme and the derived role flags.

Flags are advisory and only drive rendering; the ancillary API and the
hosted data policies re-check every protected call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from parish_api.console.principals import BearerPrincipal, HostedPrincipal, Principal, Scheme
from parish_api.schemas.auth import BackendRole
from parish_api.schemas.roles import AppRole


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    RESOLVED = "resolved"
    UNAUTHENTICATED = "unauthenticated"


_ALLOWED_TRANSITIONS: dict[SessionStatus, set[SessionStatus]] = {
    SessionStatus.UNINITIALIZED: {SessionStatus.LOADING, SessionStatus.UNAUTHENTICATED},
    SessionStatus.LOADING: {SessionStatus.LOADING, SessionStatus.RESOLVED, SessionStatus.UNAUTHENTICATED},
    SessionStatus.RESOLVED: {SessionStatus.LOADING, SessionStatus.UNAUTHENTICATED},
    SessionStatus.UNAUTHENTICATED: {SessionStatus.LOADING, SessionStatus.UNAUTHENTICATED},
}


class InvalidSessionTransition(RuntimeError):
    def __init__(self, old_status: SessionStatus, new_status: SessionStatus) -> None:
        super().__init__(f"Invalid session transition {old_status.value} -> {new_status.value}")
        self.old_status = old_status
        self.new_status = new_status


def ensure_transition(old_status: SessionStatus, new_status: SessionStatus) -> None:
    if new_status not in _ALLOWED_TRANSITIONS[old_status]:
        raise InvalidSessionTransition(old_status, new_status)


def principal_is_admin(principal: Principal | None) -> bool:
    if isinstance(principal, HostedPrincipal):
        return AppRole.ADMIN in principal.roles
    if isinstance(principal, BearerPrincipal):
        return principal.role is BackendRole.ADMIN
    return False


def principal_is_editor(principal: Principal | None) -> bool:
    # Admin implies editor.
    if principal_is_admin(principal):
        return True
    if isinstance(principal, HostedPrincipal):
        return AppRole.EDITOR in principal.roles
    if isinstance(principal, BearerPrincipal):
        return principal.role is BackendRole.EDITOR
    return False


@dataclass(frozen=True, slots=True)
class SchemeState:
    status: SessionStatus = SessionStatus.UNINITIALIZED
    principal: Principal | None = None

    def transition(self, status: SessionStatus, principal: Principal | None = None) -> SchemeState:
        ensure_transition(self.status, status)
        if status is SessionStatus.RESOLVED and principal is None:
            raise ValueError("resolved state requires a principal")
        return SchemeState(status=status, principal=principal if status is SessionStatus.RESOLVED else None)

    @property
    def is_settled(self) -> bool:
        return self.status in (SessionStatus.RESOLVED, SessionStatus.UNAUTHENTICATED)

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.RESOLVED

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and principal_is_admin(self.principal)

    @property
    def is_editor(self) -> bool:
        return self.is_authenticated and principal_is_editor(self.principal)


@dataclass(frozen=True, slots=True)
class AuthorizationContext:
    """Immutable snapshot published by the session to every view."""

    hosted: SchemeState = field(default_factory=SchemeState)
    bearer: SchemeState = field(default_factory=SchemeState)

    def for_scheme(self, scheme: Scheme) -> SchemeState:
        return self.hosted if scheme is Scheme.HOSTED else self.bearer

    def with_scheme(self, scheme: Scheme, state: SchemeState) -> AuthorizationContext:
        if scheme is Scheme.HOSTED:
            return AuthorizationContext(hosted=state, bearer=self.bearer)
        return AuthorizationContext(hosted=self.hosted, bearer=state)

    @property
    def states(self) -> tuple[SchemeState, SchemeState]:
        return (self.hosted, self.bearer)

    @property
    def is_loading(self) -> bool:
        return any(state.status is SessionStatus.LOADING for state in self.states)

    @property
    def is_settled(self) -> bool:
        return all(state.is_settled for state in self.states)

    # Each flag comes from a scheme's own resolved principal; a scheme that is
    # still loading or was never bootstrapped contributes nothing.
    @property
    def is_authenticated(self) -> bool:
        return any(state.is_authenticated for state in self.states)

    @property
    def is_admin(self) -> bool:
        return any(state.is_admin for state in self.states)

    @property
    def is_editor(self) -> bool:
        return any(state.is_editor for state in self.states)


__all__ = [
    "AuthorizationContext",
    "InvalidSessionTransition",
    "SchemeState",
    "SessionStatus",
    "ensure_transition",
    "principal_is_admin",
    "principal_is_editor",
]
