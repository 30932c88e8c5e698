"""Bearer token verifier adapters."""

from .base import AuthVerificationError, TokenVerifier
from .jwt_auth import JwtTokenVerifier

__all__ = [
    "AuthVerificationError",
    "TokenVerifier",
    "JwtTokenVerifier",
]
