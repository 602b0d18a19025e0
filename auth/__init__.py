"""auth/ -- Credential authentication core.

Layer rule: auth/ imports only stdlib + third-party libraries + core/.
core/ never imports from auth/.

Public surface: AuthService plus the models and errors it returns.
"""

from auth.errors import (
    AuthError,
    DuplicateUserError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    TokenErrorReason,
    UsernameTakenError,
)
from auth.models import AuthResult, TokenClaims, UserRecord
from auth.service import AuthService

__all__ = [
    "AuthError",
    "AuthResult",
    "AuthService",
    "DuplicateUserError",
    "InvalidCredentialsError",
    "InvalidInputError",
    "InvalidTokenError",
    "TokenClaims",
    "TokenErrorReason",
    "UserRecord",
    "UsernameTakenError",
]
