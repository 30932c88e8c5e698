"""In-memory repositories used by the ancillary API and tests."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from parish_api.schemas.auth import BackendRole


@dataclass(slots=True)
class UserRecord:
    id: str
    email: str
    password_hash: str
    role: BackendRole
    created_at: datetime


@dataclass(slots=True)
class HomilyRecord:
    id: str
    slug: str
    title: str
    cloudinary_public_id: str
    created_at: datetime


class DuplicateRecordError(Exception):
    """Raised when a unique column would be violated."""


@dataclass(slots=True)
class InMemoryStore:
    """Simple, deterministic persistence layer for the ancillary API."""

    users: dict[str, UserRecord] = field(default_factory=dict)
    homilies: dict[str, HomilyRecord] = field(default_factory=dict)
    site_settings: dict[str, str] = field(default_factory=dict)
    user_write_count: int = 0
    homily_write_count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    def get_user_by_email(self, email: str) -> UserRecord | None:
        wanted = self._normalize_email(email)
        for record in self.users.values():
            if record.email == wanted:
                return record
        return None

    def list_users(self) -> list[UserRecord]:
        return sorted(self.users.values(), key=lambda record: record.created_at)

    def create_user(self, *, email: str, password_hash: str, role: BackendRole) -> UserRecord:
        normalized = self._normalize_email(email)
        with self._lock:
            if self.get_user_by_email(normalized) is not None:
                raise DuplicateRecordError(normalized)
            record = UserRecord(
                id=str(uuid4()),
                email=normalized,
                password_hash=password_hash,
                role=role,
                created_at=datetime.now(UTC),
            )
            self.users[record.id] = record
            self.user_write_count += 1
        return record

    def update_user_role(self, user_id: str, role: BackendRole) -> UserRecord | None:
        with self._lock:
            record = self.users.get(user_id)
            if record is None:
                return None
            record.role = role
            self.user_write_count += 1
        return record

    def delete_user(self, user_id: str) -> bool:
        with self._lock:
            removed = self.users.pop(user_id, None)
            if removed is not None:
                self.user_write_count += 1
        return removed is not None

    def list_homilies(self) -> list[HomilyRecord]:
        return sorted(self.homilies.values(), key=lambda record: record.created_at, reverse=True)

    def create_homily(self, *, slug: str, title: str, cloudinary_public_id: str) -> HomilyRecord:
        with self._lock:
            if any(record.slug == slug for record in self.homilies.values()):
                raise DuplicateRecordError(slug)
            record = HomilyRecord(
                id=str(uuid4()),
                slug=slug,
                title=title,
                cloudinary_public_id=cloudinary_public_id,
                created_at=datetime.now(UTC),
            )
            self.homilies[record.id] = record
            self.homily_write_count += 1
        return record

    def update_homily(
        self,
        homily_id: str,
        *,
        slug: str | None = None,
        title: str | None = None,
        cloudinary_public_id: str | None = None,
    ) -> HomilyRecord | None:
        with self._lock:
            record = self.homilies.get(homily_id)
            if record is None:
                return None
            if slug is not None and slug != record.slug:
                if any(other.slug == slug for other in self.homilies.values()):
                    raise DuplicateRecordError(slug)
                record.slug = slug
            if title is not None:
                record.title = title
            if cloudinary_public_id is not None:
                record.cloudinary_public_id = cloudinary_public_id
            self.homily_write_count += 1
        return record

    def delete_homily(self, homily_id: str) -> bool:
        with self._lock:
            removed = self.homilies.pop(homily_id, None)
            if removed is not None:
                self.homily_write_count += 1
        return removed is not None

    def get_setting(self, key: str) -> str | None:
        return self.site_settings.get(key)

    def upsert_setting(self, key: str, value: str) -> None:
        with self._lock:
            self.site_settings[key] = value
