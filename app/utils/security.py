"""
Security utilities: password hashing, access tokens and password-reset tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import hashlib
import logging
import secrets

import bcrypt
from jose import JWTError, jwt

from app.core.settings import settings

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    """Hash a password with a per-password bcrypt salt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.warning(f"Stored password hash is malformed: {e}")
        return False


def create_access_token(user_id: str, email: str, role: str = "user") -> str:
    """
    Issue a signed JWT for the mobile client.

    Tokens expire after JWT_EXPIRE_DAYS.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=settings.JWT_EXPIRE_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Return the token claims, or None if the token is invalid or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        return None


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    """
    Hash a reset token for storage.

    Only the hash is persisted so a leaked document cannot be replayed.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
