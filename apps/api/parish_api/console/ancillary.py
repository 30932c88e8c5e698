"""Async HTTP client for the ancillary (homily) API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from parish_api.schemas.auth import LoginResponse, MeResponse, PublicUser

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class AncillaryApiError(Exception):
    """Non-success answer (or no answer) from the ancillary API."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class AncillaryApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json: Any = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            return await self._client.request(method, f"{self._base_url}{path}", json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("ancillary.request_failed method=%s path=%s error=%s", method, path, type(exc).__name__)
            raise AncillaryApiError("Ancillary API unreachable") from exc

    async def login(self, email: str, password: str) -> LoginResponse:
        response = await self.request("POST", "/auth/login", json={"email": email, "password": password})
        if response.status_code != 200:
            raise AncillaryApiError("Login rejected", status_code=response.status_code)
        try:
            return LoginResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise AncillaryApiError("Malformed login response", status_code=response.status_code) from exc

    async def me(self, token: str) -> PublicUser | None:
        """Ask the API whether it still accepts ``token``; ``None`` on any failure."""
        try:
            response = await self.request("GET", "/auth/me", token=token)
        except AncillaryApiError:
            return None
        if response.status_code != 200:
            logger.info("ancillary.token_rejected status=%s", response.status_code)
            return None
        try:
            return MeResponse.model_validate(response.json()).user
        except (ValueError, ValidationError):
            logger.warning("ancillary.me_malformed")
            return None


__all__ = ["AncillaryApiClient", "AncillaryApiError", "DEFAULT_TIMEOUT"]
