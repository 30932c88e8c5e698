"""Session bootstrap and sign-in/sign-out for both identity schemes.

``AuthSession`` is the only object that mutates authorization state. Views
read immutable ``AuthorizationContext`` snapshots from it or subscribe to
changes. Every credential purge after a failed check happens here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import httpx

from parish_api.adapters.hosted.base import (
    HostedProvider,
    HostedProviderError,
    InvalidCredentialsError,
    SessionExpiredError,
)
from parish_api.console.ancillary import AncillaryApiClient, AncillaryApiError
from parish_api.console.errors import AccessDeniedError, AuthError, SignInFailedError, SignInRequiredError
from parish_api.console.gate import AuthorizationContext, SessionStatus
from parish_api.console.principals import Principal, Scheme
from parish_api.console.resolver import RoleResolver
from parish_api.core.credentials import CredentialStore
from parish_api.schemas.roles import HostedSession

logger = logging.getLogger(__name__)

BEARER_SIGN_IN_FAILED = "Invalid credentials or API unavailable"
HOSTED_INVALID_CREDENTIALS = "Invalid email or password"
HOSTED_SERVICE_UNAVAILABLE = "Sign-in service unavailable, try again later"

Listener = Callable[[AuthorizationContext], None]


class AuthSession:
    def __init__(
        self,
        *,
        credential_store: CredentialStore,
        api_client: AncillaryApiClient | None = None,
        hosted: HostedProvider | None = None,
        resolver: RoleResolver | None = None,
    ) -> None:
        self._store = credential_store
        self._api_client = api_client
        self._hosted = hosted
        self._resolver = resolver or RoleResolver(api_client=api_client, hosted=hosted)
        self._context = AuthorizationContext()
        self._generations: dict[Scheme, int] = {Scheme.HOSTED: 0, Scheme.BEARER: 0}
        self._hosted_session: HostedSession | None = None
        self._listeners: list[Listener] = []

    @property
    def context(self) -> AuthorizationContext:
        return self._context

    @property
    def hosted_session(self) -> HostedSession | None:
        return self._hosted_session

    @property
    def hosted_provider(self) -> HostedProvider | None:
        return self._hosted

    @property
    def bearer_token(self) -> str | None:
        if not self._context.bearer.is_authenticated:
            return None
        return self._store.get()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self._context)

    def _set_state(self, scheme: Scheme, status: SessionStatus, principal: Principal | None = None) -> None:
        state = self._context.for_scheme(scheme).transition(status, principal)
        self._context = self._context.with_scheme(scheme, state)
        logger.debug("session.transition scheme=%s status=%s", scheme.value, status.value)
        self._publish()

    def _begin(self, scheme: Scheme) -> int:
        self._generations[scheme] += 1
        self._set_state(scheme, SessionStatus.LOADING)
        return self._generations[scheme]

    def _is_current(self, scheme: Scheme, generation: int) -> bool:
        if generation != self._generations[scheme]:
            logger.info("session.stale_result_discarded scheme=%s", scheme.value)
            return False
        return True

    def _settle(self, scheme: Scheme, generation: int, principal: Principal | None) -> bool:
        if not self._is_current(scheme, generation):
            return False
        if principal is None:
            self._set_state(scheme, SessionStatus.UNAUTHENTICATED)
        else:
            self._set_state(scheme, SessionStatus.RESOLVED, principal)
        return True

    async def bootstrap(self) -> AuthorizationContext:
        """Rehydrate and validate both schemes; returns the settled context."""
        await asyncio.gather(self.bootstrap_bearer(), self.bootstrap_hosted())
        return self._context

    async def bootstrap_bearer(self) -> None:
        generation = self._begin(Scheme.BEARER)
        token = self._store.get()
        if not token:
            self._settle(Scheme.BEARER, generation, None)
            return

        principal = await self._resolver.resolve_bearer(token)
        if not self._is_current(Scheme.BEARER, generation):
            return
        if principal is None:
            logger.info("session.bearer_purged reason=token_rejected")
            self._store.clear()
        self._settle(Scheme.BEARER, generation, principal)

    async def bootstrap_hosted(self) -> None:
        generation = self._begin(Scheme.HOSTED)
        if self._hosted is None:
            self._settle(Scheme.HOSTED, generation, None)
            return

        try:
            session = await self._hosted.restore_session()
            principal = await self._resolver.resolve_hosted(session) if session is not None else None
        except SessionExpiredError:
            if not self._is_current(Scheme.HOSTED, generation):
                return
            logger.info("session.hosted_purged reason=session_expired")
            await self._forget_hosted_session()
            self._settle(Scheme.HOSTED, generation, None)
            return
        except HostedProviderError as exc:
            logger.warning("session.hosted_unavailable error=%s", type(exc).__name__)
            if self._settle(Scheme.HOSTED, generation, None):
                self._hosted_session = None
            return

        if self._settle(Scheme.HOSTED, generation, principal):
            self._hosted_session = session if principal is not None else None

    async def _forget_hosted_session(self) -> None:
        self._hosted_session = None
        if self._hosted is None:
            return
        try:
            await self._hosted.sign_out(None)
        except HostedProviderError:
            logger.warning("session.hosted_local_clear_failed")

    async def sign_in_bearer(self, email: str, password: str) -> AuthorizationContext:
        if self._api_client is None:
            raise SignInFailedError(BEARER_SIGN_IN_FAILED)
        try:
            result = await self._api_client.login(email, password)
        except AncillaryApiError as exc:
            logger.info("session.bearer_sign_in_failed status=%s", exc.status_code)
            raise SignInFailedError(BEARER_SIGN_IN_FAILED) from exc

        generation = self._begin(Scheme.BEARER)
        self._store.set(result.token)
        principal = await self._resolver.resolve_bearer(result.token)
        if not self._is_current(Scheme.BEARER, generation):
            return self._context
        if principal is None:
            self._store.clear()
            self._settle(Scheme.BEARER, generation, None)
            raise SignInFailedError(BEARER_SIGN_IN_FAILED)
        self._settle(Scheme.BEARER, generation, principal)
        return self._context

    async def sign_in_hosted(self, email: str, password: str) -> AuthorizationContext:
        if self._hosted is None:
            raise SignInFailedError(HOSTED_SERVICE_UNAVAILABLE)
        try:
            session = await self._hosted.sign_in_with_password(email, password)
        except InvalidCredentialsError as exc:
            raise SignInFailedError(HOSTED_INVALID_CREDENTIALS) from exc
        except HostedProviderError as exc:
            raise SignInFailedError(HOSTED_SERVICE_UNAVAILABLE) from exc

        generation = self._begin(Scheme.HOSTED)
        try:
            principal = await self._resolver.resolve_hosted(session)
        except HostedProviderError as exc:
            if self._is_current(Scheme.HOSTED, generation):
                await self._forget_hosted_session()
                self._settle(Scheme.HOSTED, generation, None)
            raise SignInFailedError(HOSTED_SERVICE_UNAVAILABLE) from exc
        if self._settle(Scheme.HOSTED, generation, principal):
            self._hosted_session = session
        return self._context

    async def sign_up_hosted(self, email: str, password: str) -> bool:
        """Register a hosted identity; True when a session was opened right away."""
        if self._hosted is None:
            raise SignInFailedError(HOSTED_SERVICE_UNAVAILABLE)
        try:
            session = await self._hosted.sign_up(email, password)
        except InvalidCredentialsError as exc:
            raise SignInFailedError("Registration rejected") from exc
        except HostedProviderError as exc:
            raise SignInFailedError(HOSTED_SERVICE_UNAVAILABLE) from exc
        if session is None:
            return False
        await self.bootstrap_hosted()
        return True

    async def request_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        """Ask the hosted provider to mail a reset link.

        Unknown addresses get the same answer as known ones.
        """
        if self._hosted is None:
            raise AuthError(HOSTED_SERVICE_UNAVAILABLE)
        try:
            await self._hosted.request_password_reset(email, redirect_to)
        except HostedProviderError as exc:
            logger.info("session.password_reset_failed error=%s", type(exc).__name__)
            raise AuthError(HOSTED_SERVICE_UNAVAILABLE) from exc

    async def sign_out_bearer(self) -> None:
        # Only the client-held token carries the session; dropping it ends it.
        self._generations[Scheme.BEARER] += 1
        self._store.clear()
        self._set_state(Scheme.BEARER, SessionStatus.UNAUTHENTICATED)

    async def sign_out_hosted(self) -> None:
        session = self._hosted_session
        self._generations[Scheme.HOSTED] += 1
        self._hosted_session = None
        self._set_state(Scheme.HOSTED, SessionStatus.UNAUTHENTICATED)
        if self._hosted is None:
            return
        try:
            await self._hosted.sign_out(session)
        except HostedProviderError as exc:
            logger.info("session.hosted_revocation_failed error=%s", type(exc).__name__)

    async def sign_out(self) -> None:
        await self.sign_out_bearer()
        await self.sign_out_hosted()

    async def handle_rejected_credential(self, scheme: Scheme) -> None:
        """A protected call came back 401: purge the credential like a failed bootstrap."""
        logger.info("session.credential_rejected scheme=%s", scheme.value)
        if scheme is Scheme.BEARER:
            await self.sign_out_bearer()
            return
        self._generations[Scheme.HOSTED] += 1
        await self._forget_hosted_session()
        self._set_state(Scheme.HOSTED, SessionStatus.UNAUTHENTICATED)

    async def call_api(self, method: str, path: str, *, json: Any = None) -> httpx.Response:
        """Call a protected ancillary route with the stored bearer token."""
        token = self.bearer_token
        if self._api_client is None or token is None:
            raise SignInRequiredError()
        try:
            response = await self._api_client.request(method, path, token=token, json=json)
        except AncillaryApiError as exc:
            # Unknown outcome: fail closed.
            await self.handle_rejected_credential(Scheme.BEARER)
            raise SignInRequiredError() from exc
        if response.status_code == 401:
            await self.handle_rejected_credential(Scheme.BEARER)
            raise SignInRequiredError()
        if response.status_code == 403:
            raise AccessDeniedError()
        return response


__all__ = [
    "AuthSession",
    "BEARER_SIGN_IN_FAILED",
    "HOSTED_INVALID_CREDENTIALS",
    "HOSTED_SERVICE_UNAVAILABLE",
]
