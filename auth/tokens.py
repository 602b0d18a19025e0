"""
auth/tokens.py -- Signed, expiring identity tokens.

Security design decisions:
  Format: JWS compact serialization via python-jose with HS256:
       base64url(header) "." base64url(claims) "." base64url(signature)
       The HMAC covers header + claims, so flipping any byte of either (or of
       the signature itself) fails verification. The result is a plain ASCII
       string that can travel in an HTTP header or any other text channel.

  Claims: {"sub": username, "iat": <epoch seconds>, "exp": <epoch seconds>}.
       Integer seconds (JWT NumericDate), so issued_at is truncated to the
       second at issue time and the claims round-trip exactly.

  Verification order: structure -> signature -> claims shape -> expiry.
       Claims are only parsed after the signature matches, so nothing from an
       unauthenticated payload is trusted. jose compares signatures in
       constant time (hmac.compare_digest).

       Each failure raises InvalidTokenError with a distinct reason. The reason
       is for logs; the public message is identical for all of them.

  Algorithm pinning: only HS256 is accepted. A token whose header names any
       other algorithm ("none", RS256, ...) is treated as a signature mismatch
       before jose is asked to verify it.

  Secret key: injected at construction (normally Settings.secret_key) and
       never rotated for the lifetime of the issuer. There is no module-level
       key state, so tests can run several issuers with different keys.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import jws
from jose.exceptions import JWSError

from auth.errors import InvalidTokenError, TokenErrorReason
from auth.models import TokenClaims

logger = logging.getLogger("authcore.auth")

_ALGORITHM = "HS256"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Issues and verifies HS256-signed identity tokens.

    Args:
        secret_key: HMAC key. Must be non-empty; Settings enforces >= 32 chars.
        lifetime:   How long a token stays valid after issue.
        clock:      Zero-arg callable returning a datetime (aware, or naive local time).
                    Injected in tests to simulate the passage of time.
    """

    def __init__(self, secret_key: str, lifetime: timedelta, clock: Clock = utc_now) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a non-empty secret key.")
        if lifetime <= timedelta(0):
            raise ValueError(f"Token lifetime must be positive, got {lifetime}")
        self._secret_key = secret_key
        self.lifetime = lifetime
        self._clock = clock

    def _now(self) -> datetime:
        """Current time as an aware UTC datetime. Naive clock values are read as local time."""
        return self._clock().astimezone(timezone.utc)

    def __repr__(self) -> str:
        return f"TokenIssuer(algorithm={_ALGORITHM!r}, lifetime={self.lifetime!r})"

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, username: str) -> str:
        """Return a signed token for username, valid for self.lifetime."""
        issued_at = self._now().replace(microsecond=0)
        expires_at = issued_at + self.lifetime
        payload = {
            "sub": username,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jws.sign(payload, self._secret_key, algorithm=_ALGORITHM)

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: str) -> TokenClaims:
        """Return the token's claims, or raise InvalidTokenError.

        Reasons, in the order they are checked:
          MALFORMED_TOKEN     -- not a three-segment base64url JWS
          SIGNATURE_MISMATCH  -- wrong key, altered bytes, or foreign algorithm
          MALFORMED_CLAIMS    -- signed payload is not a valid claims object
          EXPIRED             -- now > expires_at
        """
        if not isinstance(token, str) or not token:
            raise InvalidTokenError(TokenErrorReason.MALFORMED_TOKEN)

        try:
            header = jws.get_unverified_header(token)
        except (JWSError, UnicodeEncodeError):
            raise InvalidTokenError(TokenErrorReason.MALFORMED_TOKEN) from None
        if header.get("alg") != _ALGORITHM:
            raise InvalidTokenError(TokenErrorReason.SIGNATURE_MISMATCH)

        try:
            payload = jws.verify(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWSError:
            # Segments decoded and alg pinned above; jose reports a bad HMAC
            # as a plain JWSError, so anything left here is a signature failure.
            raise InvalidTokenError(TokenErrorReason.SIGNATURE_MISMATCH) from None

        claims = _decode_claims(payload)
        if claims.is_expired(self._now()):
            raise InvalidTokenError(TokenErrorReason.EXPIRED)
        return claims


# ---------------------------------------------------------------------------
# Claims decoding
# ---------------------------------------------------------------------------


def _decode_claims(payload: bytes) -> TokenClaims:
    """Parse a verified payload into TokenClaims or raise MALFORMED_CLAIMS."""
    try:
        data = json.loads(payload)
    except ValueError:
        raise InvalidTokenError(TokenErrorReason.MALFORMED_CLAIMS) from None
    if not isinstance(data, dict):
        raise InvalidTokenError(TokenErrorReason.MALFORMED_CLAIMS)

    subject = data.get("sub")
    iat = data.get("iat")
    exp = data.get("exp")
    if not isinstance(subject, str) or not subject:
        raise InvalidTokenError(TokenErrorReason.MALFORMED_CLAIMS)
    # bool is an int subclass; True/False are not timestamps.
    if not _is_timestamp(iat) or not _is_timestamp(exp) or exp < iat:
        raise InvalidTokenError(TokenErrorReason.MALFORMED_CLAIMS)

    try:
        issued_at = datetime.fromtimestamp(iat, tz=timezone.utc)
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise InvalidTokenError(TokenErrorReason.MALFORMED_CLAIMS) from None
    return TokenClaims(subject=subject, issued_at=issued_at, expires_at=expires_at)


def _is_timestamp(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
