"""Ancillary user management schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from parish_api.schemas.auth import BackendRole


class CreateUserRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=8)
    role: BackendRole = BackendRole.EDITOR


class UpdateUserRoleRequest(BaseModel):
    role: BackendRole


class User(BaseModel):
    id: str
    email: str
    role: BackendRole
    created_at: datetime
