"""Build a console session from configuration."""

from __future__ import annotations

from parish_api.adapters.hosted import HostedProvider, SupabaseHostedProvider
from parish_api.console.ancillary import AncillaryApiClient
from parish_api.console.session import AuthSession
from parish_api.core.config import ConsoleSettings, get_console_settings
from parish_api.core.credentials import BEARER_TOKEN_KEY, FileCredentialStore

HOSTED_SESSION_KEY = "hosted_session"


def build_session(settings: ConsoleSettings | None = None) -> AuthSession:
    """Wire the credential slots and both backends.

    The hosted scheme is disabled (always unauthenticated) when its URL or
    key is missing.
    """
    settings = settings or get_console_settings()
    api_client = AncillaryApiClient(settings.api_base_url, timeout=settings.request_timeout_seconds)
    hosted: HostedProvider | None = None
    if settings.hosted_url and settings.hosted_anon_key:
        hosted = SupabaseHostedProvider(
            url=settings.hosted_url,
            anon_key=settings.hosted_anon_key,
            session_store=FileCredentialStore(settings.credential_path, key=HOSTED_SESSION_KEY),
            timeout=settings.request_timeout_seconds,
        )
    return AuthSession(
        credential_store=FileCredentialStore(settings.credential_path, key=BEARER_TOKEN_KEY),
        api_client=api_client,
        hosted=hosted,
    )
