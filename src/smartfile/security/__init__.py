"""Security module for Smart File API.

Provides:
- PBKDF2 password hashing
- HS256 JWT access tokens
"""

from smartfile.security.passwords import hash_password, verify_password
from smartfile.security.tokens import (
    InvalidTokenError,
    TokenClaims,
    create_token,
    decode_token,
)

__all__ = [
    "hash_password",
    "verify_password",
    "InvalidTokenError",
    "TokenClaims",
    "create_token",
    "decode_token",
]
