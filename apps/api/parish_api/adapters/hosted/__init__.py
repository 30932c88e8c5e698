"""Hosted identity provider adapters."""

from .base import (
    HostedProvider,
    HostedProviderError,
    InvalidCredentialsError,
    PermissionDeniedError,
    RoleExistsError,
    ServiceUnavailableError,
    SessionExpiredError,
)
from .memory_provider import InMemoryHostedProvider
from .supabase_provider import SupabaseHostedProvider

__all__ = [
    "HostedProvider",
    "HostedProviderError",
    "InMemoryHostedProvider",
    "InvalidCredentialsError",
    "PermissionDeniedError",
    "RoleExistsError",
    "ServiceUnavailableError",
    "SessionExpiredError",
    "SupabaseHostedProvider",
]
