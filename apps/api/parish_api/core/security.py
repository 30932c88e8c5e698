from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt


_JWT_ALG = "HS256"
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    raw = password.encode("utf-8")
    if len(raw) > _BCRYPT_MAX_BYTES:
        raise ValueError("password_too_long")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=10)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    raw = password.encode("utf-8")
    if len(raw) > _BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("ascii"))
    except ValueError:
        return False


def create_access_token(
    *,
    secret: str,
    user_id: str,
    email: str,
    role: str,
    expires_hours: int,
    now: datetime | None = None,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    issued = now or datetime.now(timezone.utc)
    exp = issued + timedelta(hours=max(1, int(expires_hours)))

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    if not token:
        raise ValueError("token_blank")
    if not secret:
        raise ValueError("jwt_secret_blank")
    return jwt.decode(
        token,
        secret,
        algorithms=[_JWT_ALG],
        options={"require": ["sub", "role", "exp"]},
    )


def read_unverified_claims(token: str) -> Dict[str, Any]:
    """Decode claims without checking the signature (client-side display only)."""
    return jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
