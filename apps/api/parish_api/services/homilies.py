"""Homily service layer."""

from parish_api.errors import ApiError, not_found
from parish_api.repositories.memory import DuplicateRecordError, HomilyRecord, InMemoryStore
from parish_api.schemas.homily import Homily


def _to_homily(record: HomilyRecord) -> Homily:
    return Homily(
        id=record.id,
        slug=record.slug,
        title=record.title,
        cloudinary_public_id=record.cloudinary_public_id,
        created_at=record.created_at,
    )


def _slug_conflict() -> ApiError:
    return ApiError(status_code=409, code="CONFLICT", message="Slug already in use")


class HomilyService:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def list_homilies(self) -> list[Homily]:
        return [_to_homily(record) for record in self._store.list_homilies()]

    def create_homily(self, *, slug: str, title: str, cloudinary_public_id: str) -> Homily:
        try:
            record = self._store.create_homily(
                slug=slug,
                title=title,
                cloudinary_public_id=cloudinary_public_id,
            )
        except DuplicateRecordError as exc:
            raise _slug_conflict() from exc
        return _to_homily(record)

    def update_homily(
        self,
        *,
        homily_id: str,
        slug: str | None,
        title: str | None,
        cloudinary_public_id: str | None,
    ) -> Homily:
        try:
            record = self._store.update_homily(
                homily_id,
                slug=slug,
                title=title,
                cloudinary_public_id=cloudinary_public_id,
            )
        except DuplicateRecordError as exc:
            raise _slug_conflict() from exc
        if record is None:
            raise not_found("Homily not found")
        return _to_homily(record)

    def delete_homily(self, *, homily_id: str) -> None:
        if not self._store.delete_homily(homily_id):
            raise not_found("Homily not found")
