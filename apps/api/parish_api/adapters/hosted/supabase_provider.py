"""Supabase adapter: GoTrue auth, PostgREST role rows and the list-users function.

Authorization for every data call is decided by the database's row-level
policies; this adapter only translates their answers into provider errors.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from parish_api.adapters.hosted.base import (
    HostedProvider,
    InvalidCredentialsError,
    PermissionDeniedError,
    RoleExistsError,
    ServiceUnavailableError,
    SessionExpiredError,
)
from parish_api.core.credentials import CredentialStore
from parish_api.core.logging_safety import safe_log_identifier
from parish_api.schemas.roles import AppRole, HostedSession, RoleAssignment, UserWithRoles

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"
_INSUFFICIENT_PRIVILEGE = "42501"


def _session_from_payload(payload: Any) -> HostedSession:
    if not isinstance(payload, dict):
        raise ServiceUnavailableError("Malformed session payload")
    user = payload.get("user") or {}
    try:
        return HostedSession(
            access_token=payload.get("access_token") or "",
            refresh_token=payload.get("refresh_token"),
            user_id=str(user.get("id") or ""),
            email=str(user.get("email") or ""),
        )
    except (AttributeError, ValidationError) as exc:
        raise ServiceUnavailableError("Malformed session payload") from exc


class SupabaseHostedProvider(HostedProvider):
    def __init__(
        self,
        *,
        url: str,
        anon_key: str,
        session_store: CredentialStore,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._anon_key = anon_key
        self._session_store = session_store
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, session: HostedSession | None = None) -> dict[str, str]:
        bearer = session.access_token if session is not None else self._anon_key
        return {"apikey": self._anon_key, "Authorization": f"Bearer {bearer}"}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        session: HostedSession | None = None,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        request_headers = self._headers(session)
        if headers:
            request_headers.update(headers)
        try:
            response = await self._client.request(
                method,
                f"{self._url}{path}",
                params=params,
                json=json,
                headers=request_headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("hosted.request_failed method=%s path=%s error=%s", method, path, type(exc).__name__)
            raise ServiceUnavailableError("Hosted provider unreachable") from exc
        if response.status_code >= 500:
            logger.warning("hosted.request_failed method=%s path=%s status=%s", method, path, response.status_code)
            raise ServiceUnavailableError("Hosted provider error")
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("hosted.malformed_response status=%s", response.status_code)
            raise ServiceUnavailableError("Malformed provider response") from exc

    @staticmethod
    def _error_code(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return ""
        if isinstance(body, dict):
            return str(body.get("code") or body.get("error_code") or body.get("error") or "")
        return ""

    def _raise_for_policy(self, response: httpx.Response) -> None:
        if response.status_code == 401:
            raise SessionExpiredError("Session is no longer valid")
        if response.status_code == 403 or self._error_code(response) == _INSUFFICIENT_PRIVILEGE:
            raise PermissionDeniedError("Operation refused by data policy")
        if response.status_code >= 400:
            raise ServiceUnavailableError(f"Unexpected provider response {response.status_code}")

    def _persist(self, session: HostedSession) -> HostedSession:
        self._session_store.set(session.model_dump_json())
        return session

    async def sign_in_with_password(self, email: str, password: str) -> HostedSession:
        response = await self._send(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code in (400, 401, 422):
            logger.info("hosted.sign_in_rejected email=%s", safe_log_identifier(email, prefix="em"))
            raise InvalidCredentialsError("Invalid login credentials")
        self._raise_for_policy(response)
        return self._persist(_session_from_payload(self._json(response)))

    async def sign_up(self, email: str, password: str) -> HostedSession | None:
        response = await self._send("POST", "/auth/v1/signup", json={"email": email, "password": password})
        if response.status_code in (400, 422):
            raise InvalidCredentialsError("Registration rejected")
        self._raise_for_policy(response)
        payload = self._json(response)
        if not isinstance(payload, dict) or not payload.get("access_token"):
            return None
        return self._persist(_session_from_payload(payload))

    async def sign_out(self, session: HostedSession | None) -> None:
        self._session_store.clear()
        if session is None:
            return
        try:
            await self._send("POST", "/auth/v1/logout", session=session)
        except ServiceUnavailableError:
            logger.info("hosted.sign_out_revocation_skipped")

    async def _refresh(self, session: HostedSession) -> HostedSession | None:
        if not session.refresh_token:
            return None
        response = await self._send(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": session.refresh_token},
        )
        if response.status_code >= 400:
            return None
        return self._persist(_session_from_payload(self._json(response)))

    async def restore_session(self) -> HostedSession | None:
        raw = self._session_store.get()
        if not raw:
            return None
        try:
            session = HostedSession.model_validate_json(raw)
        except ValidationError:
            self._session_store.clear()
            return None

        response = await self._send("GET", "/auth/v1/user", session=session)
        if response.status_code == 200:
            return session
        if response.status_code in (401, 403):
            refreshed = await self._refresh(session)
            if refreshed is not None:
                return refreshed
        self._session_store.clear()
        return None

    async def request_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = await self._send("POST", "/auth/v1/recover", params=params, json={"email": email})
        if response.status_code == 429:
            raise ServiceUnavailableError("Too many reset requests")

    async def update_password(self, session: HostedSession, new_password: str) -> None:
        response = await self._send("PUT", "/auth/v1/user", session=session, json={"password": new_password})
        if response.status_code == 422:
            raise InvalidCredentialsError("Password rejected")
        self._raise_for_policy(response)

    async def get_user_roles(self, session: HostedSession, user_id: str) -> set[AppRole]:
        response = await self._send(
            "GET",
            "/rest/v1/user_roles",
            session=session,
            params={"select": "role", "user_id": f"eq.{user_id}"},
        )
        self._raise_for_policy(response)
        rows = self._json(response)
        if not isinstance(rows, list):
            raise ServiceUnavailableError("Malformed role rows")
        roles: set[AppRole] = set()
        for row in rows:
            value = row.get("role") if isinstance(row, dict) else None
            try:
                roles.add(AppRole(value))
            except ValueError:
                logger.warning("hosted.unknown_role value=%s", value)
        return roles

    async def list_users_with_roles(self, session: HostedSession) -> list[UserWithRoles]:
        response = await self._send("POST", "/functions/v1/list-users", session=session, json={})
        self._raise_for_policy(response)
        payload = self._json(response)
        try:
            return [UserWithRoles.model_validate(item) for item in payload.get("users", [])]
        except (AttributeError, ValidationError) as exc:
            raise ServiceUnavailableError("Malformed user list") from exc

    async def add_role(self, session: HostedSession, user_id: str, role: AppRole) -> RoleAssignment:
        response = await self._send(
            "POST",
            "/rest/v1/user_roles",
            session=session,
            json={"user_id": user_id, "role": role.value},
            headers={"Prefer": "return=representation"},
        )
        if response.status_code == 409 or self._error_code(response) == _UNIQUE_VIOLATION:
            raise RoleExistsError(f"User already has role {role.value}")
        self._raise_for_policy(response)
        rows = self._json(response)
        if not rows:
            # Insert filtered out by the policy.
            raise PermissionDeniedError("Operation refused by data policy")
        try:
            row = rows[0]
            return RoleAssignment(
                id=str(row.get("id")),
                user_id=str(row.get("user_id")),
                role=AppRole(row.get("role")),
                created_at=row.get("created_at") or datetime.now(UTC),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ServiceUnavailableError("Malformed role row") from exc

    async def remove_role(self, session: HostedSession, user_id: str, role: AppRole) -> None:
        response = await self._send(
            "DELETE",
            "/rest/v1/user_roles",
            session=session,
            params={"user_id": f"eq.{user_id}", "role": f"eq.{role.value}"},
        )
        self._raise_for_policy(response)

    async def update_docs_access_code(self, session: HostedSession, code: str) -> None:
        response = await self._send(
            "POST",
            "/rest/v1/rpc/update_docs_password",
            session=session,
            json={"new_password": code},
        )
        self._raise_for_policy(response)

    async def verify_docs_access_code(self, code: str) -> bool:
        response = await self._send("POST", "/rest/v1/rpc/verify_docs_password", json={"input_password": code})
        self._raise_for_policy(response)
        verdict = self._json(response)
        if not isinstance(verdict, bool):
            raise ServiceUnavailableError("Malformed verification result")
        return verdict


__all__ = ["SupabaseHostedProvider"]
