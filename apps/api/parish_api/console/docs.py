"""Team documents access code: the admin form and the visitor check."""

from __future__ import annotations

import logging

from parish_api.adapters.hosted.base import HostedProviderError
from parish_api.console.errors import AuthError
from parish_api.console.roles import require_hosted_admin, translate_provider_error
from parish_api.console.session import HOSTED_SERVICE_UNAVAILABLE, AuthSession
from parish_api.services.docs import is_valid_access_code

logger = logging.getLogger(__name__)


class AccessCodePolicyError(AuthError):
    user_message = "Access code must be exactly 6 digits."


def validate_access_code(code: str, confirmation: str) -> None:
    if not is_valid_access_code(code):
        raise AccessCodePolicyError()
    if code != confirmation:
        raise AccessCodePolicyError("Access codes do not match.")


class DocsAccess:
    def __init__(self, session: AuthSession) -> None:
        self._session = session

    async def update_code(self, code: str, confirmation: str) -> None:
        """Replace the code through the hosted backend as its signed-in admin."""
        validate_access_code(code, confirmation)
        hosted_session = require_hosted_admin(self._session)
        try:
            await self._session.hosted_provider.update_docs_access_code(hosted_session, code)
        except HostedProviderError as exc:
            raise await translate_provider_error(self._session, exc) from exc
        logger.info("docs.access_code_updated scheme=hosted")

    async def update_code_on_api(self, code: str, confirmation: str) -> None:
        """Replace the code held by the ancillary API with the bearer token."""
        validate_access_code(code, confirmation)
        response = await self._session.call_api("PUT", "/docs", json={"code": code})
        if response.status_code != 204:
            raise AuthError("Service unavailable, try again later.")
        logger.info("docs.access_code_updated scheme=bearer")

    async def verify(self, code: str) -> bool:
        provider = self._session.hosted_provider
        if provider is None:
            raise AuthError(HOSTED_SERVICE_UNAVAILABLE)
        if not is_valid_access_code(code):
            return False
        try:
            return await provider.verify_docs_access_code(code)
        except HostedProviderError as exc:
            logger.info("docs.verify_failed error=%s", type(exc).__name__)
            raise AuthError(HOSTED_SERVICE_UNAVAILABLE) from exc


__all__ = ["AccessCodePolicyError", "DocsAccess", "validate_access_code"]
