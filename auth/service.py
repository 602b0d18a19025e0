"""
auth/service.py -- Registration, login and token verification.

AuthService orchestrates the three collaborators:
  UserRegistry      -- who exists (auth/store.py)
  CredentialHasher  -- what their password hashes to (auth/hashing.py)
  TokenIssuer       -- proof of identity after login (auth/tokens.py)

Every public method returns an AuthResult. Validation failures are values,
never exceptions, and a failed call leaves the registry and signing key
untouched.

Security:
  [C1] login_user() runs one bcrypt check whether or not the username exists
       (dummy_verify on the unknown-user path), and both failure paths return
       the same InvalidCredentialsError. Neither the result nor the response
       time tells a caller which usernames are registered.

  Token failures are logged with their reason; the returned error's public
  message does not vary with the reason.

  Passwords, credential secrets and tokens are never logged.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from auth.errors import (
    DuplicateUserError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    UsernameTakenError,
)
from auth.hashing import MAX_PASSWORD_BYTES, CredentialHasher
from auth.models import AuthResult, TokenClaims, UserRecord
from auth.store import InMemoryUserRegistry, UserRegistry
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings

logger = logging.getLogger("authcore.auth")


class AuthService:
    """Facade over registry, hasher and token issuer.

    Any collaborator not passed in is built from Settings (get_settings() when
    settings is None). The signing key lives only inside the TokenIssuer.

    Usage:
        service = AuthService()
        service.register_user("alice", "p@ss1")
        token = service.login_user("alice", "p@ss1").value
        claims = service.verify_token(token).value
    """

    def __init__(
        self,
        registry: UserRegistry | None = None,
        hasher: CredentialHasher | None = None,
        issuer: TokenIssuer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.registry = registry if registry is not None else InMemoryUserRegistry()
        self.hasher = hasher or CredentialHasher(rounds=self.settings.bcrypt_rounds)
        self.issuer = issuer or TokenIssuer(
            secret_key=self.settings.secret_key,
            lifetime=timedelta(seconds=self.settings.token_expire_seconds),
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_user(self, username: str, password: str) -> AuthResult[UserRecord]:
        """Register a new user. Fails with InvalidInputError or UsernameTakenError."""
        error = self._validate_registration(username, password)
        if error is not None:
            logger.info("Registration rejected: %s", error.message)
            return AuthResult.failure(error)

        key = self._normalize(username)
        # Hash outside the registry lock -- bcrypt is the slow part.
        secret = self.hasher.hash(password)
        try:
            record = self.registry.register(key, secret)
        except DuplicateUserError:
            logger.info("Registration rejected: username %r already taken", key)
            return AuthResult.failure(UsernameTakenError())

        logger.info("Registered user %r", key)
        return AuthResult.success(record)

    def _validate_registration(self, username: object, password: object) -> InvalidInputError | None:
        if not isinstance(username, str) or not isinstance(password, str):
            return InvalidInputError("Username and password must be strings.")
        if not username.strip() or not password:
            return InvalidInputError()
        if len(username) < self.settings.min_username_length:
            return InvalidInputError(
                f"Username must be at least {self.settings.min_username_length} characters."
            )
        if len(password) < self.settings.min_password_length:
            return InvalidInputError(
                f"Password must be at least {self.settings.min_password_length} characters."
            )
        try:
            encoded = password.encode("utf-8")
        except UnicodeEncodeError:
            return InvalidInputError("Password must be valid Unicode text.")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return InvalidInputError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return None

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login_user(self, username: str, password: str) -> AuthResult[str]:
        """Check credentials and return a signed token on success.

        Unknown username and wrong password both yield InvalidCredentialsError [C1].
        """
        if not isinstance(username, str) or not isinstance(password, str):
            return AuthResult.failure(InvalidCredentialsError())

        key = self._normalize(username)
        # bcrypt < 5 truncates at 72 bytes; no registered password is longer.
        encoded = password.encode("utf-8", errors="replace")
        if len(encoded) > MAX_PASSWORD_BYTES:
            self.hasher.dummy_verify(encoded[:MAX_PASSWORD_BYTES].decode("utf-8", errors="ignore"))
            logger.warning("Login failed for %r", key)
            return AuthResult.failure(InvalidCredentialsError())

        record = self.registry.find(key)
        if record is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            self.hasher.dummy_verify(password)
            logger.warning("Login failed for %r", key)
            return AuthResult.failure(InvalidCredentialsError())

        if not self.hasher.verify(password, record.credential_secret):
            logger.warning("Login failed for %r", key)
            return AuthResult.failure(InvalidCredentialsError())

        token = self.issuer.issue(record.username)
        logger.info("Login succeeded for %r", key)
        return AuthResult.success(token)

    # ------------------------------------------------------------------
    # Token verification
    # ------------------------------------------------------------------

    def verify_token(self, token: str) -> AuthResult[TokenClaims]:
        """Validate a token. Does not consult the registry."""
        try:
            claims = self.issuer.verify(token)
        except InvalidTokenError as exc:
            logger.warning("Token rejected: %s", exc.reason.value)
            return AuthResult.failure(exc)
        return AuthResult.success(claims)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _normalize(self, username: str) -> str:
        """Apply the configured username case policy."""
        if self.settings.username_case_sensitive:
            return username
        return username.casefold()
