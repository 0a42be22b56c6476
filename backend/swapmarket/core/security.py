"""Password hashing and access tokens"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import jwt

from swapmarket.core.config import get_settings

settings = get_settings()

PBKDF2_ITERATIONS = 100_000


def hash_password(password: str) -> str:
    """Hash a password as ``salt$hexdigest`` using PBKDF2-SHA256"""
    salt = secrets.token_hex(16)
    pwd_hash = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${pwd_hash.hex()}"


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a stored ``salt$hexdigest``"""
    try:
        salt, pwd_hash = hashed.split("$")
    except ValueError:
        return False
    new_hash = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return hmac.compare_digest(new_hash.hex(), pwd_hash)


def create_access_token(user_id: str, email: str, role: str) -> Tuple[str, datetime]:
    """Create a signed JWT for a user

    Returns:
        (token, expiry time in UTC)
    """
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT

    Raises:
        jwt.ExpiredSignatureError: token has expired
        jwt.PyJWTError: token is malformed or the signature does not match
    """
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
