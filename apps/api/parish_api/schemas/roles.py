"""Hosted-provider identity and role-assignment schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class AppRole(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"


class HostedSession(BaseModel):
    """Opaque provider session; only the token and the principal id are read."""

    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    user_id: str = Field(min_length=1)
    email: str


class RoleAssignment(BaseModel):
    id: str
    user_id: str
    role: AppRole
    created_at: datetime


class UserWithRoles(BaseModel):
    id: str
    email: str
    created_at: datetime
    roles: list[AppRole] = Field(default_factory=list)
