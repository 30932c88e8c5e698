"""In-memory hosted provider for local development and tests.

Role rows are checked at query time the same way the hosted database's
row-level policies check them: callers see their own role rows, admins see
and change everything.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from parish_api.adapters.hosted.base import (
    HostedProvider,
    InvalidCredentialsError,
    PermissionDeniedError,
    RoleExistsError,
    ServiceUnavailableError,
    SessionExpiredError,
)
from parish_api.core.credentials import CredentialStore, MemoryCredentialStore
from parish_api.core.logging_safety import safe_log_identifier
from parish_api.core.security import hash_password, verify_password
from parish_api.schemas.roles import AppRole, HostedSession, RoleAssignment, UserWithRoles

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IdentityRecord:
    id: str
    email: str
    password_hash: str
    created_at: datetime


class InMemoryHostedProvider(HostedProvider):
    def __init__(self, session_store: CredentialStore | None = None) -> None:
        self._session_store = session_store or MemoryCredentialStore()
        self.identities: dict[str, IdentityRecord] = {}
        self.assignments: dict[tuple[str, AppRole], RoleAssignment] = {}
        self.active_tokens: dict[str, str] = {}
        self.reset_requests: list[str] = []
        self.docs_code_hash: str | None = None
        self.available = True

    def _ensure_available(self) -> None:
        if not self.available:
            raise ServiceUnavailableError("Hosted provider unavailable")

    def _identity_by_email(self, email: str) -> IdentityRecord | None:
        wanted = (email or "").strip().lower()
        for record in self.identities.values():
            if record.email == wanted:
                return record
        return None

    def _caller_id(self, session: HostedSession) -> str:
        user_id = self.active_tokens.get(session.access_token)
        if user_id is None:
            raise SessionExpiredError("Session is no longer valid")
        return user_id

    def _has_role(self, user_id: str, role: AppRole) -> bool:
        return (user_id, role) in self.assignments

    def _require_admin(self, session: HostedSession) -> str:
        caller_id = self._caller_id(session)
        if not self._has_role(caller_id, AppRole.ADMIN):
            logger.warning(
                "hosted.policy_denied principal_id=%s required=admin",
                safe_log_identifier(caller_id, prefix="pid"),
            )
            raise PermissionDeniedError("Admin role required")
        return caller_id

    def _issue_session(self, record: IdentityRecord) -> HostedSession:
        token = secrets.token_urlsafe(32)
        self.active_tokens[token] = record.id
        session = HostedSession(
            access_token=token,
            refresh_token=secrets.token_urlsafe(16),
            user_id=record.id,
            email=record.email,
        )
        self._session_store.set(session.model_dump_json())
        return session

    def create_identity(self, email: str, password: str) -> IdentityRecord:
        """Provision an identity directly, bypassing sign-up."""
        normalized = (email or "").strip().lower()
        if self._identity_by_email(normalized) is not None:
            raise ValueError(f"identity already exists: {normalized}")
        record = IdentityRecord(
            id=str(uuid4()),
            email=normalized,
            password_hash=hash_password(password),
            created_at=datetime.now(UTC),
        )
        self.identities[record.id] = record
        return record

    def grant(self, user_id: str, role: AppRole) -> RoleAssignment:
        """Insert a role row without a policy check (migration/seed path)."""
        assignment = RoleAssignment(
            id=str(uuid4()),
            user_id=user_id,
            role=role,
            created_at=datetime.now(UTC),
        )
        self.assignments.setdefault((user_id, role), assignment)
        return self.assignments[(user_id, role)]

    def expire(self, access_token: str) -> None:
        self.active_tokens.pop(access_token, None)

    async def sign_in_with_password(self, email: str, password: str) -> HostedSession:
        self._ensure_available()
        record = self._identity_by_email(email)
        if record is None or not verify_password(password, record.password_hash):
            raise InvalidCredentialsError("Invalid login credentials")
        return self._issue_session(record)

    async def sign_up(self, email: str, password: str) -> HostedSession | None:
        self._ensure_available()
        try:
            record = self.create_identity(email, password)
        except ValueError as exc:
            raise InvalidCredentialsError("Registration rejected") from exc
        return self._issue_session(record)

    async def sign_out(self, session: HostedSession | None) -> None:
        self._session_store.clear()
        if session is None:
            return
        self._ensure_available()
        self.active_tokens.pop(session.access_token, None)

    async def restore_session(self) -> HostedSession | None:
        raw = self._session_store.get()
        if not raw:
            return None
        self._ensure_available()
        session = HostedSession.model_validate_json(raw)
        if self.active_tokens.get(session.access_token) != session.user_id:
            self._session_store.clear()
            return None
        return session

    async def request_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        self._ensure_available()
        # The provider answers the same way for unknown addresses.
        if self._identity_by_email(email) is not None:
            self.reset_requests.append(email.strip().lower())

    async def update_password(self, session: HostedSession, new_password: str) -> None:
        self._ensure_available()
        caller_id = self._caller_id(session)
        self.identities[caller_id].password_hash = hash_password(new_password)

    async def get_user_roles(self, session: HostedSession, user_id: str) -> set[AppRole]:
        self._ensure_available()
        caller_id = self._caller_id(session)
        if caller_id != user_id and not self._has_role(caller_id, AppRole.ADMIN):
            return set()
        return {role for (owner, role) in self.assignments if owner == user_id}

    async def list_users_with_roles(self, session: HostedSession) -> list[UserWithRoles]:
        self._ensure_available()
        self._require_admin(session)
        users = []
        for record in sorted(self.identities.values(), key=lambda item: item.created_at):
            roles = sorted(
                (role for (owner, role) in self.assignments if owner == record.id),
                key=lambda role: role.value,
            )
            users.append(
                UserWithRoles(id=record.id, email=record.email, created_at=record.created_at, roles=roles)
            )
        return users

    async def add_role(self, session: HostedSession, user_id: str, role: AppRole) -> RoleAssignment:
        self._ensure_available()
        self._require_admin(session)
        if self._has_role(user_id, role):
            raise RoleExistsError(f"User already has role {role.value}")
        return self.grant(user_id, role)

    async def remove_role(self, session: HostedSession, user_id: str, role: AppRole) -> None:
        self._ensure_available()
        self._require_admin(session)
        self.assignments.pop((user_id, role), None)

    async def update_docs_access_code(self, session: HostedSession, code: str) -> None:
        self._ensure_available()
        self._require_admin(session)
        self.docs_code_hash = hash_password(code)

    async def verify_docs_access_code(self, code: str) -> bool:
        self._ensure_available()
        if self.docs_code_hash is None:
            return False
        return verify_password(code, self.docs_code_hash)


__all__ = ["IdentityRecord", "InMemoryHostedProvider"]
