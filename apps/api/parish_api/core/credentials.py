"""Client-side credential slots."""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

BEARER_TOKEN_KEY = "backend_jwt"


class CredentialStore(ABC):
    """One durable slot holding an opaque credential string.

    Implementations never look inside the credential or check its expiry.
    """

    @abstractmethod
    def get(self) -> str | None:
        """Return the stored credential, if any."""

    @abstractmethod
    def set(self, token: str) -> None:
        """Persist ``token``, replacing any prior value."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored credential."""


class MemoryCredentialStore(CredentialStore):
    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def get(self) -> str | None:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileCredentialStore(CredentialStore):
    """A single key inside a JSON document on disk.

    Several keys can share one file; each store only touches its own key.
    There is no locking: concurrent processes see each other's writes only
    when they next read.
    """

    def __init__(self, path: str | Path, key: str = BEARER_TOKEN_KEY) -> None:
        self._path = Path(path).expanduser()
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("credentials.unreadable path=%s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.unlink(missing_ok=True)
        # Owner-only from creation.
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(data, indent=2, sort_keys=True))
        tmp.replace(self._path)

    def get(self) -> str | None:
        value = self._read_all().get(self._key)
        return value if isinstance(value, str) and value else None

    def set(self, token: str) -> None:
        data = self._read_all()
        data[self._key] = token
        self._write_all(data)

    def clear(self) -> None:
        data = self._read_all()
        if self._key in data:
            del data[self._key]
            self._write_all(data)


__all__ = [
    "BEARER_TOKEN_KEY",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
]
