"""
Password hashing and access tokens.

- bcrypt is used directly for hashing (no passlib wrapper).
- Tokens are HS256 JWTs signed with the configured secret; the subject is the user id.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

BCRYPT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes of the password
_BCRYPT_MAX_BYTES = 72


class InvalidTokenError(Exception):
    """Raised when a token cannot be decoded or carries no subject."""


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token for `subject` (a user id).

    Args:
        subject: Value stored in the `sub` claim.
        expires_delta: Optional lifetime; defaults to the configured expiry.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    payload = {"sub": subject, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        InvalidTokenError: If the signature or expiry is invalid, or `sub` is missing.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc
    if not payload.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return payload
