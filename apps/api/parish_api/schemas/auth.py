"""Authentication schemas for the ancillary API."""

from enum import Enum

from pydantic import BaseModel, Field


class BackendRole(str, Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"


class AuthPrincipal(BaseModel):
    """Principal rebuilt from a verified bearer token's claims.

    The role is the one embedded at issuance; it is not re-read from the
    user record until the token expires.
    """

    user_id: str = Field(min_length=1)
    email: str = Field(min_length=1)
    role: BackendRole


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class PublicUser(BaseModel):
    email: str
    role: BackendRole


class LoginResponse(BaseModel):
    token: str
    user: PublicUser


class MeResponse(BaseModel):
    user: PublicUser
