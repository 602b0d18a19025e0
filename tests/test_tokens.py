"""Unit tests for auth/tokens.py -- TokenIssuer issue/verify.

Covers:
- issued token carries subject, issued_at and expires_at = issued_at + lifetime
- token format: three dot-separated base64url segments
- expiry boundary (valid at exactly expires_at, expired one second later)
- tampering: signature byte, forged claims, wrong key, foreign algorithm
- malformed structure and malformed (but correctly signed) claims
"""

from __future__ import annotations

import base64
import json
import re
from datetime import datetime, timedelta, timezone

import pytest
from jose import jws

from auth.errors import InvalidTokenError, TokenErrorReason
from auth.tokens import TokenIssuer

KEY = "a" * 32 + "b" * 32  # matches the settings fixture

_B64URL_SEGMENT = re.compile(r"^[A-Za-z0-9_-]+$")


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _reason(issuer: TokenIssuer, token) -> TokenErrorReason:
    with pytest.raises(InvalidTokenError) as exc_info:
        issuer.verify(token)
    return exc_info.value.reason


# ---------------------------------------------------------------------------
# Issue
# ---------------------------------------------------------------------------


def test_issue_and_verify(issuer: TokenIssuer, clock) -> None:
    token = issuer.issue("alice")
    claims = issuer.verify(token)
    assert claims.subject == "alice"
    assert claims.issued_at == clock.now
    assert claims.expires_at == clock.now + timedelta(hours=1)
    assert not claims.is_expired(clock.now)


def test_token_is_three_base64url_segments(issuer: TokenIssuer) -> None:
    segments = issuer.issue("alice").split(".")
    assert len(segments) == 3
    assert all(_B64URL_SEGMENT.match(s) for s in segments)


def test_issued_at_truncated_to_seconds(issuer: TokenIssuer, clock) -> None:
    clock.advance(microseconds=750_000)
    claims = issuer.verify(issuer.issue("alice"))
    assert claims.issued_at == clock.now.replace(microsecond=0)


def test_claims_use_jwt_names(issuer: TokenIssuer) -> None:
    payload = json.loads(jws.verify(issuer.issue("alice"), KEY, algorithms=["HS256"]))
    assert set(payload) == {"sub", "iat", "exp"}
    assert payload["exp"] - payload["iat"] == 3600


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


def test_valid_at_exact_expiry(issuer: TokenIssuer, clock) -> None:
    token = issuer.issue("alice")
    clock.advance(seconds=3600)
    assert issuer.verify(token).subject == "alice"


def test_expired_after_lifetime(issuer: TokenIssuer, clock) -> None:
    token = issuer.issue("alice")
    clock.advance(seconds=3601)
    assert _reason(issuer, token) is TokenErrorReason.EXPIRED


def test_custom_lifetime(clock) -> None:
    short = TokenIssuer(KEY, lifetime=timedelta(seconds=30), clock=clock)
    token = short.issue("alice")
    clock.advance(seconds=31)
    assert _reason(short, token) is TokenErrorReason.EXPIRED


# ---------------------------------------------------------------------------
# Tampering
# ---------------------------------------------------------------------------


def test_altered_signature_byte(issuer: TokenIssuer) -> None:
    signing_input, signature = issuer.issue("alice").rsplit(".", 1)
    # First character carries the top six bits of the first signature byte.
    flipped = ("B" if signature[0] == "A" else "A") + signature[1:]
    assert _reason(issuer, f"{signing_input}.{flipped}") is TokenErrorReason.SIGNATURE_MISMATCH


def test_forged_claims_segment(issuer: TokenIssuer) -> None:
    header, _claims, signature = issuer.issue("alice").split(".")
    forged = _b64url(json.dumps({"sub": "mallory", "iat": 0, "exp": 9999999999}).encode())
    assert _reason(issuer, f"{header}.{forged}.{signature}") is TokenErrorReason.SIGNATURE_MISMATCH


def test_wrong_key(issuer: TokenIssuer, clock) -> None:
    other = TokenIssuer("z" * 64, lifetime=timedelta(hours=1), clock=clock)
    assert _reason(issuer, other.issue("alice")) is TokenErrorReason.SIGNATURE_MISMATCH


def test_alg_none_rejected(issuer: TokenIssuer) -> None:
    header = _b64url(json.dumps({"alg": "none", "typ": "JWT"}).encode())
    claims = _b64url(json.dumps({"sub": "mallory", "iat": 0, "exp": 9999999999}).encode())
    assert _reason(issuer, f"{header}.{claims}.") is TokenErrorReason.SIGNATURE_MISMATCH


def test_other_hmac_algorithm_rejected(issuer: TokenIssuer) -> None:
    token = jws.sign({"sub": "alice", "iat": 0, "exp": 9999999999}, KEY, algorithm="HS512")
    assert _reason(issuer, token) is TokenErrorReason.SIGNATURE_MISMATCH


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("token", ["garbage.token", "invalid.jwt.token", "", "no-dots-at-all", None, 123])
def test_malformed_token(issuer: TokenIssuer, token) -> None:
    assert _reason(issuer, token) is TokenErrorReason.MALFORMED_TOKEN


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"[1, 2, 3]",
        json.dumps({"iat": 0, "exp": 9999999999}).encode(),
        json.dumps({"sub": "", "iat": 0, "exp": 9999999999}).encode(),
        json.dumps({"sub": "alice", "iat": "yesterday", "exp": 9999999999}).encode(),
        json.dumps({"sub": "alice", "iat": 0, "exp": True}).encode(),
        json.dumps({"sub": "alice", "iat": 100, "exp": 50}).encode(),
    ],
)
def test_malformed_claims_with_valid_signature(issuer: TokenIssuer, payload: bytes) -> None:
    token = jws.sign(payload, KEY, algorithm="HS256")
    assert _reason(issuer, token) is TokenErrorReason.MALFORMED_CLAIMS


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_empty_key_rejected() -> None:
    with pytest.raises(ValueError, match="secret key"):
        TokenIssuer("", lifetime=timedelta(hours=1))


def test_non_positive_lifetime_rejected() -> None:
    with pytest.raises(ValueError, match="lifetime"):
        TokenIssuer(KEY, lifetime=timedelta(0))


def test_repr_hides_key(issuer: TokenIssuer) -> None:
    assert KEY not in repr(issuer)


def test_naive_clock_read_as_local_time() -> None:
    naive_clock = lambda: datetime.now()  # noqa: E731
    local = TokenIssuer(KEY, lifetime=timedelta(minutes=5), clock=naive_clock)
    claims = local.verify(local.issue("alice"))
    assert claims.issued_at.tzinfo is not None
    assert abs(claims.issued_at - datetime.now(timezone.utc)) < timedelta(seconds=5)


def test_signature_failure_is_not_reported_as_malformed(issuer: TokenIssuer) -> None:
    """jose raises a plain JWSError for a bad HMAC; it must still map to a signature mismatch."""
    header, claims, _signature = issuer.issue("alice").split(".")
    other_sig = jws.sign(b"unrelated", KEY, algorithm="HS256").rsplit(".", 1)[1]
    assert _reason(issuer, f"{header}.{claims}.{other_sig}") is TokenErrorReason.SIGNATURE_MISMATCH
