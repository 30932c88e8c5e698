"""Self-issued HS256 JWT verifier."""

from __future__ import annotations

import jwt
from pydantic import ValidationError

from parish_api.adapters.auth.base import AuthVerificationError, TokenVerifier
from parish_api.core.security import decode_access_token
from parish_api.schemas.auth import AuthPrincipal


class JwtTokenVerifier(TokenVerifier):
    """Verifies tokens signed by this API and trusts their embedded role claim."""

    def __init__(self, secret: str | None) -> None:
        self._secret = secret

    def verify_token(self, token: str) -> AuthPrincipal:
        if not self._secret:
            raise AuthVerificationError("Token verification is not configured")

        try:
            claims = decode_access_token(token=token, secret=self._secret)
        except jwt.ExpiredSignatureError as exc:
            raise AuthVerificationError("Bearer token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthVerificationError("Invalid bearer token") from exc

        try:
            return AuthPrincipal(
                user_id=str(claims.get("sub") or "").strip(),
                email=str(claims.get("email") or "").strip(),
                role=claims.get("role"),
            )
        except ValidationError as exc:
            raise AuthVerificationError("Bearer token claims are incomplete") from exc


__all__ = ["JwtTokenVerifier"]
