import unittest

from parish_api.adapters.hosted import InMemoryHostedProvider
from parish_api.console.docs import AccessCodePolicyError, DocsAccess, validate_access_code
from parish_api.console.errors import (
    AccessDeniedError,
    AuthError,
    RoleAlreadyAssignedError,
    SignInFailedError,
    SignInRequiredError,
)
from parish_api.console.gate import SessionStatus
from parish_api.console.passwords import (
    PasswordPolicyError,
    change_password,
    check_password_strength,
    validate_new_password,
)
from parish_api.console.roles import RoleManagement, available_roles
from parish_api.console.session import AuthSession
from parish_api.core.credentials import MemoryCredentialStore
from parish_api.schemas.roles import AppRole

ADMIN_PASSWORD = "Curate-Pass-1!"
EDITOR_PASSWORD = "Volunteer-Pass-1!"


class _HostedCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.provider = InMemoryHostedProvider()
        self.admin = self.provider.create_identity("curate@parish.test", ADMIN_PASSWORD)
        self.provider.grant(self.admin.id, AppRole.ADMIN)
        self.editor = self.provider.create_identity("volunteer@parish.test", EDITOR_PASSWORD)
        self.provider.grant(self.editor.id, AppRole.EDITOR)
        self.newcomer = self.provider.create_identity("newcomer@parish.test", "Newcomer-Pass-1!")

    async def _signed_in(self, email: str, password: str) -> AuthSession:
        session = AuthSession(credential_store=MemoryCredentialStore(), hosted=self.provider)
        await session.bootstrap()
        await session.sign_in_hosted(email, password)
        return session


class RoleManagementTests(_HostedCase):
    async def test_admin_lists_every_identity_with_roles(self) -> None:
        roles = RoleManagement(await self._signed_in("curate@parish.test", ADMIN_PASSWORD))

        users = await roles.list_users()

        by_email = {user.email: user for user in users}
        self.assertEqual(set(by_email), {"curate@parish.test", "volunteer@parish.test", "newcomer@parish.test"})
        self.assertEqual(by_email["volunteer@parish.test"].roles, [AppRole.EDITOR])
        self.assertEqual(by_email["newcomer@parish.test"].roles, [])
        self.assertEqual(available_roles(by_email["volunteer@parish.test"]), [AppRole.ADMIN])

    async def test_grant_adds_one_row(self) -> None:
        roles = RoleManagement(await self._signed_in("curate@parish.test", ADMIN_PASSWORD))

        assignment = await roles.grant(self.newcomer.id, AppRole.EDITOR)

        self.assertEqual(assignment.user_id, self.newcomer.id)
        self.assertIn((self.newcomer.id, AppRole.EDITOR), self.provider.assignments)

    async def test_granting_an_existing_role_is_reported_and_not_duplicated(self) -> None:
        roles = RoleManagement(await self._signed_in("curate@parish.test", ADMIN_PASSWORD))
        before = len(self.provider.assignments)

        with self.assertRaises(RoleAlreadyAssignedError) as ctx:
            await roles.grant(self.editor.id, AppRole.EDITOR)

        self.assertEqual(ctx.exception.user_message, "This user already has this role.")
        self.assertEqual(len(self.provider.assignments), before)

    async def test_revoke_removes_the_row(self) -> None:
        roles = RoleManagement(await self._signed_in("curate@parish.test", ADMIN_PASSWORD))

        await roles.revoke(self.editor.id, AppRole.EDITOR)

        self.assertNotIn((self.editor.id, AppRole.EDITOR), self.provider.assignments)

    async def test_admin_may_revoke_own_admin_role(self) -> None:
        session = await self._signed_in("curate@parish.test", ADMIN_PASSWORD)
        roles = RoleManagement(session)

        await roles.revoke(self.admin.id, AppRole.ADMIN)

        self.assertNotIn((self.admin.id, AppRole.ADMIN), self.provider.assignments)
        self.assertEqual(session.context.hosted.status, SessionStatus.RESOLVED)
        self.assertFalse(session.context.is_admin)
        with self.assertRaises(AccessDeniedError):
            await roles.list_users()

    async def test_editor_is_refused_before_reaching_the_provider(self) -> None:
        roles = RoleManagement(await self._signed_in("volunteer@parish.test", EDITOR_PASSWORD))

        with self.assertRaises(AccessDeniedError):
            await roles.list_users()
        with self.assertRaises(AccessDeniedError):
            await roles.grant(self.editor.id, AppRole.ADMIN)

        self.assertNotIn((self.editor.id, AppRole.ADMIN), self.provider.assignments)

    async def test_data_layer_refusal_wins_over_a_stale_admin_context(self) -> None:
        roles = RoleManagement(await self._signed_in("curate@parish.test", ADMIN_PASSWORD))
        self.provider.assignments.pop((self.admin.id, AppRole.ADMIN))

        with self.assertRaises(AccessDeniedError):
            await roles.grant(self.newcomer.id, AppRole.ADMIN)

        self.assertNotIn((self.newcomer.id, AppRole.ADMIN), self.provider.assignments)

    async def test_expired_session_purges_and_requires_sign_in(self) -> None:
        session = await self._signed_in("curate@parish.test", ADMIN_PASSWORD)
        roles = RoleManagement(session)
        self.provider.expire(session.hosted_session.access_token)

        with self.assertRaises(SignInRequiredError):
            await roles.list_users()

        self.assertEqual(session.context.hosted.status, SessionStatus.UNAUTHENTICATED)
        self.assertIsNone(session.hosted_session)
        self.assertIsNone(await self.provider.restore_session())

    async def test_signed_out_user_must_sign_in(self) -> None:
        session = AuthSession(credential_store=MemoryCredentialStore(), hosted=self.provider)
        await session.bootstrap()

        with self.assertRaises(SignInRequiredError):
            await RoleManagement(session).list_users()


class DocsAccessTests(_HostedCase):
    async def test_admin_updates_the_code_and_anyone_can_verify(self) -> None:
        docs = DocsAccess(await self._signed_in("curate@parish.test", ADMIN_PASSWORD))

        await docs.update_code("482913", "482913")

        visitor = DocsAccess(AuthSession(credential_store=MemoryCredentialStore(), hosted=self.provider))
        self.assertTrue(await visitor.verify("482913"))
        self.assertFalse(await visitor.verify("482914"))
        self.assertFalse(await visitor.verify("4829"))

    async def test_form_rules_are_checked_before_the_provider(self) -> None:
        docs = DocsAccess(await self._signed_in("curate@parish.test", ADMIN_PASSWORD))

        with self.assertRaises(AccessCodePolicyError) as invalid:
            await docs.update_code("48291", "48291")
        with self.assertRaises(AccessCodePolicyError) as mismatch:
            await docs.update_code("482913", "482914")

        self.assertEqual(invalid.exception.user_message, "Access code must be exactly 6 digits.")
        self.assertEqual(mismatch.exception.user_message, "Access codes do not match.")
        self.assertIsNone(self.provider.docs_code_hash)

    async def test_editor_cannot_update_the_code(self) -> None:
        docs = DocsAccess(await self._signed_in("volunteer@parish.test", EDITOR_PASSWORD))

        with self.assertRaises(AccessDeniedError):
            await docs.update_code("482913", "482913")
        self.assertIsNone(self.provider.docs_code_hash)

    async def test_data_layer_refusal_surfaces_as_access_denied(self) -> None:
        docs = DocsAccess(await self._signed_in("curate@parish.test", ADMIN_PASSWORD))
        self.provider.assignments.pop((self.admin.id, AppRole.ADMIN))

        with self.assertRaises(AccessDeniedError):
            await docs.update_code("482913", "482913")
        self.assertIsNone(self.provider.docs_code_hash)

    async def test_verify_during_outage_reports_unavailable(self) -> None:
        docs = DocsAccess(AuthSession(credential_store=MemoryCredentialStore(), hosted=self.provider))
        self.provider.available = False

        with self.assertRaises(AuthError):
            await docs.verify("482913")

    def test_validation_order_matches_the_form(self) -> None:
        with self.assertRaises(AccessCodePolicyError) as ctx:
            validate_access_code("abc", "xyz")
        self.assertEqual(ctx.exception.user_message, "Access code must be exactly 6 digits.")
        validate_access_code("000000", "000000")


class PasswordPolicyTests(unittest.TestCase):
    def test_strength_counts_each_character_class(self) -> None:
        self.assertEqual(check_password_strength("").score, 0)
        self.assertEqual(check_password_strength("abcdefgh").score, 2)
        self.assertEqual(check_password_strength("Abcdefg1").score, 4)
        self.assertEqual(check_password_strength("Abcdefg1!").score, 5)

    def test_confirmation_must_match(self) -> None:
        with self.assertRaises(PasswordPolicyError) as ctx:
            validate_new_password("Abcdefg1!", "Abcdefg1?")
        self.assertEqual(ctx.exception.user_message, "Passwords do not match.")

    def test_weak_password_is_refused(self) -> None:
        with self.assertRaises(PasswordPolicyError) as ctx:
            validate_new_password("short1A", "short1A")
        self.assertEqual(ctx.exception.user_message, "Password is too weak.")

    def test_score_of_four_is_enough(self) -> None:
        validate_new_password("abcdefg1!", "abcdefg1!")


class ChangePasswordTests(_HostedCase):
    async def test_change_password_replaces_the_credential(self) -> None:
        session = await self._signed_in("volunteer@parish.test", EDITOR_PASSWORD)

        await change_password(session, "Fresh-Pass-2026", "Fresh-Pass-2026")

        other = AuthSession(credential_store=MemoryCredentialStore(), hosted=self.provider)
        with self.assertRaises(SignInFailedError):
            await other.sign_in_hosted("volunteer@parish.test", EDITOR_PASSWORD)
        context = await other.sign_in_hosted("volunteer@parish.test", "Fresh-Pass-2026")
        self.assertTrue(context.is_editor)

    async def test_weak_password_never_reaches_the_provider(self) -> None:
        session = await self._signed_in("volunteer@parish.test", EDITOR_PASSWORD)
        original_hash = self.provider.identities[self.editor.id].password_hash

        with self.assertRaises(PasswordPolicyError):
            await change_password(session, "weak", "weak")

        self.assertEqual(self.provider.identities[self.editor.id].password_hash, original_hash)

    async def test_requires_a_hosted_session(self) -> None:
        session = AuthSession(credential_store=MemoryCredentialStore(), hosted=self.provider)
        await session.bootstrap()

        with self.assertRaises(SignInRequiredError):
            await change_password(session, "Fresh-Pass-2026", "Fresh-Pass-2026")


if __name__ == "__main__":
    unittest.main()
