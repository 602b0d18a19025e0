"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data containers, near-zero logic). The registry,
token issuer and service do the work.

UserRecord and TokenClaims are frozen: a registered credential is never
updated in place, and claims are a read-only view of a signed token.

Layer rule: no imports from core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, TypeVar

from auth.errors import AuthError

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UserRecord:
    """A registered identity.

    credential_secret is the bcrypt output (salt + cost + digest), never the
    plaintext password. repr=False keeps it out of log lines and tracebacks.
    """

    username: str
    credential_secret: bytes = field(repr=False)
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class TokenClaims:
    """Identity and timing data carried inside a signed token.

    Not stored server-side -- the token itself is the full proof of identity
    until expires_at.
    """

    subject: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class AuthResult(Generic[T]):
    """Outcome of an AuthService call: exactly one of value / error is meaningful.

    Usage:
        result = service.login_user("alice", "p@ss1")
        if result.ok:
            token = result.value
        else:
            log(result.error.code)
    """

    value: T | None = None
    error: AuthError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> AuthResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: AuthError) -> AuthResult[T]:
        return cls(error=error)

    def unwrap(self) -> T | None:
        """Return the value, or raise the carried AuthError."""
        if self.error is not None:
            raise self.error
        return self.value
