"""Password strength policy for the change-password form."""

from __future__ import annotations

import re
from dataclasses import dataclass

from parish_api.adapters.hosted.base import HostedProviderError, InvalidCredentialsError, SessionExpiredError
from parish_api.console.errors import AuthError, SignInRequiredError
from parish_api.console.principals import Scheme
from parish_api.console.session import AuthSession

MIN_LENGTH = 8
MIN_SCORE = 4
_SPECIAL = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


@dataclass(frozen=True, slots=True)
class PasswordStrength:
    has_min_length: bool
    has_uppercase: bool
    has_lowercase: bool
    has_number: bool
    has_special: bool

    @property
    def score(self) -> int:
        return sum(
            (self.has_min_length, self.has_uppercase, self.has_lowercase, self.has_number, self.has_special)
        )


def check_password_strength(password: str) -> PasswordStrength:
    return PasswordStrength(
        has_min_length=len(password) >= MIN_LENGTH,
        has_uppercase=re.search(r"[A-Z]", password) is not None,
        has_lowercase=re.search(r"[a-z]", password) is not None,
        has_number=re.search(r"[0-9]", password) is not None,
        has_special=_SPECIAL.search(password) is not None,
    )


class PasswordPolicyError(AuthError):
    user_message = "Password is too weak or does not match its confirmation."


def validate_new_password(password: str, confirmation: str) -> None:
    if not confirmation or password != confirmation:
        raise PasswordPolicyError("Passwords do not match.")
    if check_password_strength(password).score < MIN_SCORE:
        raise PasswordPolicyError("Password is too weak.")


async def change_password(session: AuthSession, password: str, confirmation: str) -> None:
    """Change the signed-in hosted identity's password."""
    validate_new_password(password, confirmation)
    hosted_session = session.hosted_session
    provider = session.hosted_provider
    if hosted_session is None or provider is None:
        raise SignInRequiredError()
    try:
        await provider.update_password(hosted_session, password)
    except SessionExpiredError as exc:
        await session.handle_rejected_credential(Scheme.HOSTED)
        raise SignInRequiredError() from exc
    except InvalidCredentialsError as exc:
        raise PasswordPolicyError("Password rejected by the provider.") from exc
    except HostedProviderError as exc:
        raise AuthError("Service unavailable, try again later.") from exc
