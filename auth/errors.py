"""
auth/errors.py -- Error taxonomy for the auth core.

Every AuthError carries a stable machine-readable `code` and a public
`message` that is safe to show an end user. AuthService returns these inside
AuthResult values rather than raising them; AuthResult.unwrap() raises them
for callers that prefer exceptions.

InvalidTokenError additionally carries a `reason` for logs and diagnostics.
The public message is the same for every reason so a caller echoing it back
to a client does not help anyone probe for a forgery.

Layer rule: no imports from core/.
"""

from __future__ import annotations

from enum import Enum


class TokenErrorReason(str, Enum):
    SIGNATURE_MISMATCH = "signature_mismatch"
    MALFORMED_CLAIMS = "malformed_claims"
    EXPIRED = "expired"
    # Token could not be split into header/claims/signature segments at all.
    MALFORMED_TOKEN = "malformed_token"


class AuthError(Exception):
    """Base class for every error AuthService can return."""

    code: str = "auth_error"
    default_message: str = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthError):
            return NotImplemented
        return type(self) is type(other) and self.code == other.code and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.code, self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidInputError(AuthError):
    """Empty or malformed username/password at registration."""

    code = "invalid_input"
    default_message = "Username and password must be non-empty."


class UsernameTakenError(AuthError):
    code = "username_taken"
    default_message = "Username is already registered."


class InvalidCredentialsError(AuthError):
    """Wrong password OR unknown username.

    Both cases deliberately share one class, code and message so the result
    of a failed login never reveals whether the username exists.
    """

    code = "invalid_credentials"
    default_message = "Invalid username or password."


class InvalidTokenError(AuthError):
    code = "invalid_token"
    default_message = "Invalid or expired token."

    def __init__(self, reason: TokenErrorReason) -> None:
        self.reason = reason
        super().__init__()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InvalidTokenError):
            return NotImplemented
        return self.reason == other.reason

    def __hash__(self) -> int:
        return hash((type(self), self.reason))

    def __repr__(self) -> str:
        return f"InvalidTokenError(reason={self.reason.value!r})"


class DuplicateUserError(Exception):
    """Raised by a UserRegistry when the username is already present.

    Registry-level signal, not an AuthError. AuthService maps it to
    UsernameTakenError.
    """

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"User already exists: {username!r}")
