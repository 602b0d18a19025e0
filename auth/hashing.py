"""
auth/hashing.py -- One-way password hashing with bcrypt.

Security design decisions:
  bcrypt directly (no passlib wrapper). Its cost factor makes brute force
  expensive, and every hash embeds a fresh random salt, so two hashes of the
  same password never match byte-for-byte.

  verify() never raises. A malformed stored secret returns False exactly like
  a wrong password, so a caller cannot tell the two apart.

  bcrypt only looks at the first 72 bytes of input; bcrypt >= 5 rejects longer
  inputs outright. MAX_PASSWORD_BYTES is exported so AuthService can reject
  such passwords as invalid input up front.

  dummy_verify() exists for timing equalization [C1]: AuthService calls it when
  a login names an unknown user, so that path costs one bcrypt check just like
  the wrong-password path.
"""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger("authcore.auth")

MAX_PASSWORD_BYTES = 72

DEFAULT_ROUNDS = 12


class CredentialHasher:
    """Hashes plaintext passwords and checks plaintexts against stored secrets.

    Usage:
        hasher = CredentialHasher(rounds=12)
        secret = hasher.hash("p@ss1")
        hasher.verify("p@ss1", secret)  # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self.rounds = rounds
        # Computed once per hasher at the configured cost so the first
        # unknown-user login is not measurably slower than later ones.
        self._dummy_secret = self.hash("authcore_timing_dummy")

    def hash(self, plaintext: str) -> bytes:
        """Return a salted bcrypt hash of the plaintext password."""
        return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))

    def verify(self, plaintext: str, secret: bytes) -> bool:
        """Return True if plaintext matches secret. Malformed secrets return False."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), secret)
        except (ValueError, TypeError):
            logger.debug("Credential verification failed on an unreadable secret")
            return False

    def dummy_verify(self, plaintext: str) -> None:
        """Spend one bcrypt check's worth of time without a real secret."""
        self.verify(plaintext, self._dummy_secret)
