"""Route guarding for admin views."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from parish_api.console.gate import AuthorizationContext, SchemeState, SessionStatus
from parish_api.console.principals import Scheme

SIGN_IN_PATH = "/auth"


class Requirement(str, Enum):
    EDITOR = "editor"
    ADMIN = "admin"


class RouteDecision(str, Enum):
    ALLOW = "allow"
    LOADING = "loading"
    REDIRECT_TO_SIGN_IN = "redirect_to_sign_in"
    ACCESS_DENIED = "access_denied"


@dataclass(frozen=True, slots=True)
class GuardOutcome:
    decision: RouteDecision
    redirect_to: str | None = None
    offer_sign_out: bool = False

    @property
    def renders_protected_content(self) -> bool:
        return self.decision is RouteDecision.ALLOW


def _redirect(sign_in_path: str) -> GuardOutcome:
    return GuardOutcome(RouteDecision.REDIRECT_TO_SIGN_IN, redirect_to=sign_in_path)


def guard_route(
    context: AuthorizationContext,
    requirement: Requirement = Requirement.EDITOR,
    *,
    scheme: Scheme | None = None,
    sign_in_path: str = SIGN_IN_PATH,
) -> GuardOutcome:
    """Decide what an admin view may render for ``context``.

    Only a consulted scheme that has resolved with the required role grants
    access; one still loading or never bootstrapped grants nothing. Without
    a grant, a scheme that is still loading shows the loading view (it may
    yet resolve), no resolved scheme at all redirects to sign-in, and a
    signed-in user without the role gets the access-denied view (with
    sign-out) instead of a redirect.
    """
    states: tuple[SchemeState, ...] = (context.for_scheme(scheme),) if scheme is not None else context.states

    if requirement is Requirement.ADMIN:
        granted = any(state.is_admin for state in states)
    else:
        granted = any(state.is_editor for state in states)
    if granted:
        return GuardOutcome(RouteDecision.ALLOW)
    if any(state.status is SessionStatus.LOADING for state in states):
        return GuardOutcome(RouteDecision.LOADING)
    if not any(state.is_authenticated for state in states):
        return _redirect(sign_in_path)
    return GuardOutcome(RouteDecision.ACCESS_DENIED, offer_sign_out=True)


__all__ = ["GuardOutcome", "Requirement", "RouteDecision", "SIGN_IN_PATH", "guard_route"]
