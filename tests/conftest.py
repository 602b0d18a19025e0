"""
tests/conftest.py -- Shared fixtures for the auth core tests.

This module provides:
  - settings:  Settings with a fixed 64-char key and the cheapest bcrypt cost
  - clock:     FrozenClock the tests advance by hand to simulate expiry
  - hasher / registry / issuer / service: wired from the fixtures above

Design: bcrypt_rounds=4 (bcrypt's minimum) keeps each hash in the low
milliseconds. The security properties under test (salting, constant-time
compare, malformed-secret handling) do not depend on the cost factor.

The DEBUG env var must be set before any core/auth import so a bare
get_settings() call auto-generates SECRET_KEY instead of raising ValueError.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

# CRITICAL: Set DEBUG before any auth/core import.
os.environ.setdefault("DEBUG", "true")

import pytest

from auth.hashing import CredentialHasher
from auth.service import AuthService
from auth.store import InMemoryUserRegistry
from auth.tokens import TokenIssuer
from core.config import Settings

TEST_SECRET_KEY = "a" * 32 + "b" * 32


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, debug=False, secret_key=TEST_SECRET_KEY, bcrypt_rounds=4)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=4)


@pytest.fixture
def registry() -> InMemoryUserRegistry:
    return InMemoryUserRegistry()


@pytest.fixture
def issuer(settings: Settings, clock: FrozenClock) -> TokenIssuer:
    return TokenIssuer(
        secret_key=settings.secret_key,
        lifetime=timedelta(seconds=settings.token_expire_seconds),
        clock=clock,
    )


@pytest.fixture
def service(
    settings: Settings,
    registry: InMemoryUserRegistry,
    hasher: CredentialHasher,
    issuer: TokenIssuer,
) -> AuthService:
    return AuthService(registry=registry, hasher=hasher, issuer=issuer, settings=settings)
