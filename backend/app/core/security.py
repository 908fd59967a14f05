"""
security.py — Authentication Utilities (Password Hashing & JWT Encoding)

Purpose:
- Provide reusable security helpers across the backend.
- Hash & verify passwords (never store raw passwords).
- Issue and validate JWT access tokens for the session cookie / bearer header.

Key Constraints:
- Access tokens only (no refresh tokens).
- Authentication is stateless — logout clears the cookie client-side.

This module does NOT:
- Define API routes → that lives in app/api/v1/auth.py
- Look users up → app/api/deps.py resolves the current user through storage.
"""

import datetime
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

JWT_ALGORITHM = "HS256"

# -----------------------------------------------------------------------------
# Password Hashing
# -----------------------------------------------------------------------------

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(raw_password: str) -> str:
    """
    Hash a plaintext password.
    """
    return pwd_context.hash(raw_password)


def verify_password(raw_password: str, hashed_password: str) -> bool:
    """
    Verify that a raw password matches its hashed stored version.
    Unrecognised hash formats count as a mismatch.
    """
    try:
        return pwd_context.verify(raw_password, hashed_password)
    except (ValueError, TypeError):
        return False


# -----------------------------------------------------------------------------
# JWT Token Handling
# -----------------------------------------------------------------------------

def create_access_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    """
    Create a JWT access token with expiration.

    Expected payload format:
        data = {"sub": str(user_id)}
    """
    to_encode = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRE_MINUTES
    expire_at = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=minutes)
    to_encode.update({"exp": expire_at})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=JWT_ALGORITHM,
    )


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT token.
    Returns the payload dict if valid, None if invalid or expired.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
