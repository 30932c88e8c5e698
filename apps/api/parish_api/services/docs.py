"""Access code guarding the team documents page."""

from __future__ import annotations

import logging
import re

from parish_api.core.security import hash_password, verify_password
from parish_api.errors import ApiError
from parish_api.repositories.memory import InMemoryStore

logger = logging.getLogger(__name__)

DOCS_ACCESS_CODE_KEY = "docs_password"
ACCESS_CODE_PATTERN = re.compile(r"[0-9]{6}")


def is_valid_access_code(code: str | None) -> bool:
    return bool(code) and ACCESS_CODE_PATTERN.fullmatch(code) is not None


class DocsAccessService:
    """Stores the code as a password hash; it is never read back in clear."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def update_code(self, code: str | None) -> None:
        if not is_valid_access_code(code):
            raise ApiError(
                status_code=400,
                code="INVALID_ACCESS_CODE",
                message="Access code must be exactly 6 digits",
            )
        self._store.upsert_setting(DOCS_ACCESS_CODE_KEY, hash_password(code))
        logger.info("docs.access_code_updated")

    def verify_code(self, code: str | None) -> bool:
        if not code:
            raise ApiError(status_code=400, code="ACCESS_CODE_REQUIRED", message="Access code required")
        stored = self._store.get_setting(DOCS_ACCESS_CODE_KEY)
        if stored is None:
            logger.info("docs.access_code_unset")
            return False
        return verify_password(code, stored)
