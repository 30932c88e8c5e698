import json
import unittest

import httpx

from parish_api.adapters.hosted import (
    InvalidCredentialsError,
    PermissionDeniedError,
    RoleExistsError,
    ServiceUnavailableError,
    SessionExpiredError,
    SupabaseHostedProvider,
)
from parish_api.core.credentials import MemoryCredentialStore
from parish_api.schemas.roles import AppRole, HostedSession

BASE_URL = "https://parish.supabase.test"
ANON_KEY = "anon-key"

SESSION_PAYLOAD = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "user": {"id": "user-1", "email": "curate@parish.test"},
}


class _Recorder:
    """Routes requests to a handler and keeps them for assertions."""

    def __init__(self, handler) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


class SupabaseProviderTests(unittest.IsolatedAsyncioTestCase):
    def _provider(self, handler) -> tuple[SupabaseHostedProvider, _Recorder, MemoryCredentialStore]:
        recorder = _Recorder(handler)
        store = MemoryCredentialStore()
        provider = SupabaseHostedProvider(
            url=BASE_URL,
            anon_key=ANON_KEY,
            session_store=store,
            client=httpx.AsyncClient(transport=httpx.MockTransport(recorder)),
        )
        self.addAsyncCleanup(provider.aclose)
        return provider, recorder, store

    @staticmethod
    def _session() -> HostedSession:
        return HostedSession(
            access_token="access-1",
            refresh_token="refresh-1",
            user_id="user-1",
            email="curate@parish.test",
        )

    async def test_sign_in_persists_session(self) -> None:
        provider, recorder, store = self._provider(lambda request: httpx.Response(200, json=SESSION_PAYLOAD))

        session = await provider.sign_in_with_password("curate@parish.test", "secret")

        self.assertEqual(session.user_id, "user-1")
        request = recorder.requests[0]
        self.assertEqual(request.url.path, "/auth/v1/token")
        self.assertEqual(request.url.params["grant_type"], "password")
        self.assertEqual(request.headers["apikey"], ANON_KEY)
        self.assertEqual(HostedSession.model_validate_json(store.get()), session)

    async def test_sign_in_rejection_and_outage_are_distinct(self) -> None:
        rejecting, _, store = self._provider(
            lambda request: httpx.Response(400, json={"error": "invalid_grant"})
        )
        with self.assertRaises(InvalidCredentialsError):
            await rejecting.sign_in_with_password("curate@parish.test", "wrong")
        self.assertIsNone(store.get())

        failing, _, _ = self._provider(lambda request: httpx.Response(503))
        with self.assertRaises(ServiceUnavailableError):
            await failing.sign_in_with_password("curate@parish.test", "secret")

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        unreachable, _, _ = self._provider(refuse)
        with self.assertRaises(ServiceUnavailableError):
            await unreachable.sign_in_with_password("curate@parish.test", "secret")

    async def test_sign_up_without_immediate_session(self) -> None:
        provider, _, store = self._provider(
            lambda request: httpx.Response(200, json={"id": "user-2", "email": "new@parish.test"})
        )

        self.assertIsNone(await provider.sign_up("new@parish.test", "Newcomer-Pass-1!"))
        self.assertIsNone(store.get())

    async def test_restore_refreshes_a_rejected_access_token(self) -> None:
        refreshed = dict(SESSION_PAYLOAD, access_token="access-2", refresh_token="refresh-2")

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/auth/v1/user":
                return httpx.Response(401, json={"code": 401})
            return httpx.Response(200, json=refreshed)

        provider, recorder, store = self._provider(handler)
        store.set(self._session().model_dump_json())

        session = await provider.restore_session()

        self.assertEqual(session.access_token, "access-2")
        self.assertEqual(recorder.requests[1].url.params["grant_type"], "refresh_token")
        self.assertEqual(HostedSession.model_validate_json(store.get()).access_token, "access-2")

    async def test_restore_drops_session_when_refresh_fails(self) -> None:
        provider, _, store = self._provider(lambda request: httpx.Response(401, json={}))
        store.set(self._session().model_dump_json())

        self.assertIsNone(await provider.restore_session())
        self.assertIsNone(store.get())

    async def test_restore_drops_unreadable_session(self) -> None:
        provider, recorder, store = self._provider(lambda request: httpx.Response(200, json={}))
        store.set("{not json")

        self.assertIsNone(await provider.restore_session())
        self.assertIsNone(store.get())
        self.assertEqual(recorder.requests, [])

    async def test_sign_out_clears_locally_even_if_revocation_fails(self) -> None:
        provider, _, store = self._provider(lambda request: httpx.Response(502))
        store.set(self._session().model_dump_json())

        await provider.sign_out(self._session())

        self.assertIsNone(store.get())

    async def test_role_query_uses_caller_token(self) -> None:
        provider, recorder, _ = self._provider(
            lambda request: httpx.Response(200, json=[{"role": "admin"}, {"role": "editor"}, {"role": "owner"}])
        )

        roles = await provider.get_user_roles(self._session(), "user-1")

        self.assertEqual(roles, {AppRole.ADMIN, AppRole.EDITOR})
        request = recorder.requests[0]
        self.assertEqual(request.url.path, "/rest/v1/user_roles")
        self.assertEqual(request.url.params["user_id"], "eq.user-1")
        self.assertEqual(request.headers["Authorization"], "Bearer access-1")

    async def test_expired_token_on_data_call(self) -> None:
        provider, _, _ = self._provider(lambda request: httpx.Response(401, json={"message": "JWT expired"}))

        with self.assertRaises(SessionExpiredError):
            await provider.get_user_roles(self._session(), "user-1")

    async def test_list_users_refused_for_non_admin(self) -> None:
        provider, recorder, _ = self._provider(lambda request: httpx.Response(403, json={"error": "Forbidden"}))

        with self.assertRaises(PermissionDeniedError):
            await provider.list_users_with_roles(self._session())
        self.assertEqual(recorder.requests[0].url.path, "/functions/v1/list-users")

    async def test_list_users_parses_payload(self) -> None:
        payload = {
            "users": [
                {
                    "id": "user-1",
                    "email": "curate@parish.test",
                    "created_at": "2026-01-04T10:00:00Z",
                    "roles": ["admin"],
                }
            ]
        }
        provider, _, _ = self._provider(lambda request: httpx.Response(200, json=payload))

        users = await provider.list_users_with_roles(self._session())

        self.assertEqual(users[0].roles, [AppRole.ADMIN])

    async def test_add_role_maps_unique_violation(self) -> None:
        provider, _, _ = self._provider(
            lambda request: httpx.Response(409, json={"code": "23505", "message": "duplicate key value"})
        )

        with self.assertRaises(RoleExistsError):
            await provider.add_role(self._session(), "user-2", AppRole.EDITOR)

    async def test_add_role_maps_policy_violation(self) -> None:
        provider, _, _ = self._provider(
            lambda request: httpx.Response(400, json={"code": "42501", "message": "row-level security"})
        )

        with self.assertRaises(PermissionDeniedError):
            await provider.add_role(self._session(), "user-2", AppRole.EDITOR)

    async def test_add_role_returns_inserted_row(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            row = dict(body, id="row-9", created_at="2026-01-04T10:00:00Z")
            return httpx.Response(201, json=[row])

        provider, recorder, _ = self._provider(handler)

        assignment = await provider.add_role(self._session(), "user-2", AppRole.EDITOR)

        self.assertEqual(assignment.id, "row-9")
        self.assertEqual(assignment.role, AppRole.EDITOR)
        self.assertEqual(recorder.requests[0].headers["Prefer"], "return=representation")

    async def test_remove_role_filters_by_user_and_role(self) -> None:
        provider, recorder, _ = self._provider(lambda request: httpx.Response(204))

        await provider.remove_role(self._session(), "user-2", AppRole.ADMIN)

        request = recorder.requests[0]
        self.assertEqual(request.method, "DELETE")
        self.assertEqual(request.url.params["role"], "eq.admin")

    async def test_sign_in_payload_without_token_is_an_outage(self) -> None:
        provider, _, store = self._provider(lambda request: httpx.Response(200, json={"token_type": "bearer"}))

        with self.assertRaises(ServiceUnavailableError):
            await provider.sign_in_with_password("curate@parish.test", "secret")
        self.assertIsNone(store.get())

    async def test_non_json_role_rows_are_an_outage(self) -> None:
        provider, _, _ = self._provider(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

        with self.assertRaises(ServiceUnavailableError):
            await provider.get_user_roles(self._session(), "user-1")

    async def test_unexpected_shapes_are_an_outage(self) -> None:
        shapes = {
            "role rows": (lambda p: p.get_user_roles(self._session(), "user-1"), {"role": "admin"}),
            "user list": (lambda p: p.list_users_with_roles(self._session()), {"users": [{"id": "user-1"}]}),
            "inserted row": (lambda p: p.add_role(self._session(), "user-2", AppRole.EDITOR), [{"role": "owner"}]),
        }
        for name, (call, body) in shapes.items():
            with self.subTest(name):
                provider, _, _ = self._provider(lambda request, body=body: httpx.Response(200, json=body))
                with self.assertRaises(ServiceUnavailableError):
                    await call(provider)

    async def test_password_reset_posts_to_recover(self) -> None:
        provider, recorder, _ = self._provider(lambda request: httpx.Response(200, json={}))

        await provider.request_password_reset("curate@parish.test", redirect_to="https://parish.test/reset")

        request = recorder.requests[0]
        self.assertEqual(request.url.path, "/auth/v1/recover")
        self.assertEqual(request.url.params["redirect_to"], "https://parish.test/reset")
        self.assertEqual(json.loads(request.content), {"email": "curate@parish.test"})

    async def test_password_reset_throttled(self) -> None:
        provider, _, _ = self._provider(
            lambda request: httpx.Response(429, json={"code": "over_email_send_rate_limit"})
        )

        with self.assertRaises(ServiceUnavailableError):
            await provider.request_password_reset("curate@parish.test")

    async def test_update_password_uses_the_session(self) -> None:
        provider, recorder, _ = self._provider(lambda request: httpx.Response(200, json={"id": "user-1"}))

        await provider.update_password(self._session(), "Fresh-Pass-2026")

        request = recorder.requests[0]
        self.assertEqual(request.method, "PUT")
        self.assertEqual(request.url.path, "/auth/v1/user")
        self.assertEqual(request.headers["Authorization"], "Bearer access-1")
        self.assertEqual(json.loads(request.content), {"password": "Fresh-Pass-2026"})

    async def test_update_password_rejections(self) -> None:
        weak, _, _ = self._provider(lambda request: httpx.Response(422, json={"code": "weak_password"}))
        with self.assertRaises(InvalidCredentialsError):
            await weak.update_password(self._session(), "short")

        expired, _, _ = self._provider(lambda request: httpx.Response(401, json={}))
        with self.assertRaises(SessionExpiredError):
            await expired.update_password(self._session(), "Fresh-Pass-2026")

    async def test_docs_access_code_update_calls_the_admin_function(self) -> None:
        provider, recorder, _ = self._provider(lambda request: httpx.Response(204))

        await provider.update_docs_access_code(self._session(), "482913")

        request = recorder.requests[0]
        self.assertEqual(request.url.path, "/rest/v1/rpc/update_docs_password")
        self.assertEqual(request.headers["Authorization"], "Bearer access-1")
        self.assertEqual(json.loads(request.content), {"new_password": "482913"})

    async def test_docs_access_code_update_refused_for_non_admin(self) -> None:
        provider, _, _ = self._provider(
            lambda request: httpx.Response(400, json={"code": "42501", "message": "Only admins can update"})
        )

        with self.assertRaises(PermissionDeniedError):
            await provider.update_docs_access_code(self._session(), "482913")

    async def test_docs_access_code_verification(self) -> None:
        provider, recorder, _ = self._provider(
            lambda request: httpx.Response(200, json=json.loads(request.content)["input_password"] == "482913")
        )

        self.assertTrue(await provider.verify_docs_access_code("482913"))
        self.assertFalse(await provider.verify_docs_access_code("000000"))
        self.assertEqual(recorder.requests[0].url.path, "/rest/v1/rpc/verify_docs_password")
        self.assertEqual(recorder.requests[0].headers["Authorization"], f"Bearer {ANON_KEY}")

    async def test_docs_access_code_verification_needs_a_boolean(self) -> None:
        provider, _, _ = self._provider(lambda request: httpx.Response(200, json={"valid": True}))

        with self.assertRaises(ServiceUnavailableError):
            await provider.verify_docs_access_code("482913")


if __name__ == "__main__":
    unittest.main()
