"""Access tokens for Smart File API.

Tokens are HS256 JWTs signed with the shared ``JWT_SECRET``. Claims:
- user_id: numeric account id
- email: account email
- iat / exp: issue and expiry timestamps
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from smartfile.config import settings

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Raised when token validation fails."""

    pass


@dataclass
class TokenClaims:
    """Authenticated identity carried by a token."""

    user_id: int
    email: str
    expires_at: datetime


def create_token(user_id: int, email: str, expire_hours: int | None = None) -> str:
    """Issue a signed access token for a user."""
    now = datetime.now(UTC)
    hours = settings.jwt_expire_hours if expire_hours is None else expire_hours
    payload = {
        "user_id": user_id,
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=hours)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenClaims:
    """Validate a token and return its claims.

    Raises:
        InvalidTokenError: If the token is malformed, forged or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": True},
        )
    except ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired") from e
    except JWTError as e:
        raise InvalidTokenError(f"Invalid token: {e}") from e

    try:
        user_id = int(payload["user_id"])
        expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError("Token is missing required claims") from e

    return TokenClaims(user_id=user_id, email=str(payload.get("email", "")), expires_at=expires_at)
