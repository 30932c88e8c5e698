"""Ancillary principal management."""

from __future__ import annotations

import logging

from parish_api.core.logging_safety import safe_log_identifier
from parish_api.core.security import hash_password
from parish_api.errors import ApiError, not_found
from parish_api.repositories.memory import DuplicateRecordError, InMemoryStore, UserRecord
from parish_api.schemas.auth import BackendRole
from parish_api.schemas.user import User

logger = logging.getLogger(__name__)


def _to_user(record: UserRecord) -> User:
    return User(id=record.id, email=record.email, role=record.role, created_at=record.created_at)


class UserService:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def list_users(self) -> list[User]:
        return [_to_user(record) for record in self._store.list_users()]

    def create_user(self, *, email: str, password: str, role: BackendRole) -> User:
        try:
            password_hash = hash_password(password)
        except ValueError as exc:
            raise ApiError(status_code=422, code="VALIDATION_ERROR", message="Password rejected") from exc
        try:
            record = self._store.create_user(email=email, password_hash=password_hash, role=role)
        except DuplicateRecordError as exc:
            raise ApiError(status_code=409, code="CONFLICT", message="User already exists") from exc
        logger.info(
            "users.created principal_id=%s role=%s",
            safe_log_identifier(record.id, prefix="pid"),
            role.value,
        )
        return _to_user(record)

    def update_role(self, *, user_id: str, role: BackendRole) -> User:
        # Tokens already issued keep their embedded role until they expire.
        record = self._store.update_user_role(user_id, role)
        if record is None:
            raise not_found()
        logger.info(
            "users.role_changed principal_id=%s role=%s",
            safe_log_identifier(user_id, prefix="pid"),
            role.value,
        )
        return _to_user(record)

    def delete_user(self, *, user_id: str) -> None:
        if not self._store.delete_user(user_id):
            raise not_found()
        logger.info("users.deleted principal_id=%s", safe_log_identifier(user_id, prefix="pid"))
