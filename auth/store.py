"""
auth/store.py -- User registry: username -> UserRecord.

Pattern: Repository. UserRegistry is the abstract contract the service depends
on; InMemoryUserRegistry is the in-process implementation. A persistent
backend would subclass UserRegistry and keep the same semantics.

Semantics every implementation must keep:
  - register() is an atomic check-and-insert. Two concurrent registrations of
    the same username produce exactly one record and one DuplicateUserError.
  - Username matching is exact-string and case-sensitive. Case folding, if
    wanted, is a policy applied by the caller (AuthService) before lookup.
  - Records are never updated or deleted.

Layer rule: no imports from core/.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from auth.errors import DuplicateUserError
from auth.models import UserRecord

logger = logging.getLogger("authcore.auth")


class UserRegistry(ABC):
    """Abstract repository for UserRecord entities."""

    @abstractmethod
    def register(self, username: str, secret: bytes) -> UserRecord:
        """Insert a new record and return it.

        Raises DuplicateUserError if the username already exists. On failure
        the existing record is left untouched.
        """

    @abstractmethod
    def find(self, username: str) -> UserRecord | None:
        """Look up a user by exact username. Returns None if not found."""

    @abstractmethod
    def __len__(self) -> int: ...

    def __contains__(self, username: object) -> bool:
        return isinstance(username, str) and self.find(username) is not None


class InMemoryUserRegistry(UserRegistry):
    """Thread-safe dict-backed registry.

    A single lock guards the whole map. The map is small and the critical
    section is one dict probe plus one insert, so per-username locking would
    buy nothing.

    Usage:
        registry = InMemoryUserRegistry()
        registry.register("alice", hasher.hash("p@ss1"))
        registry.find("alice")
    """

    def __init__(self) -> None:
        self._users: dict[str, UserRecord] = {}
        self._lock = threading.Lock()

    def register(self, username: str, secret: bytes) -> UserRecord:
        with self._lock:
            if username in self._users:
                raise DuplicateUserError(username)
            record = UserRecord(username=username, credential_secret=secret)
            self._users[username] = record
            total = len(self._users)
        logger.debug("Registry insert: %s (total=%d)", username, total)
        return record

    def find(self, username: str) -> UserRecord | None:
        with self._lock:
            return self._users.get(username)

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
