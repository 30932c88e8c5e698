"""User-facing authentication outcomes for the console."""


class AuthError(Exception):
    """Base class; ``user_message`` is safe to show as-is."""

    user_message = "Please sign in."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class SignInRequiredError(AuthError):
    """No valid credential for the scheme: send the user to the sign-in page."""

    user_message = "Please sign in."


class SignInFailedError(SignInRequiredError):
    """A sign-in attempt did not produce a session."""

    user_message = "Sign-in failed."


class AccessDeniedError(AuthError):
    """Valid credential, insufficient role."""

    user_message = "You don't have permission to do this."


class RoleAlreadyAssignedError(AuthError):
    """Granting a role the user already holds."""

    user_message = "This user already has this role."


__all__ = [
    "AccessDeniedError",
    "AuthError",
    "RoleAlreadyAssignedError",
    "SignInFailedError",
    "SignInRequiredError",
]
