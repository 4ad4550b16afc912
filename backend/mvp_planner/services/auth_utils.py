"""Authentication utilities: password hashing and JWT access tokens.

Rules
-----
- Secrets come from environment variables (dev defaults only)
- Every token carries a ``jti`` so logout can revoke it
- Secure password hashing with bcrypt
"""

from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plaintext password."""
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plaintext password against a hash."""
    return pwd_context.verify(plain, hashed)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------
_JWT_SECRET = os.getenv("JWT_SECRET", "mvp-planner-dev-secret-change-in-production")
_JWT_ALGORITHM = "HS256"
_JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))  # 24h default

ACCESS_TOKEN_COOKIE = "access_token"


def token_max_age_seconds() -> int:
    return _JWT_EXPIRE_MINUTES * 60


def create_access_token(user_id: str, username: str) -> str:
    """Create a signed JWT containing user_id, username, and a unique jti."""
    expire = datetime.utcnow() + timedelta(minutes=_JWT_EXPIRE_MINUTES)
    payload = {
        "sub": user_id,
        "username": username,
        "jti": uuid.uuid4().hex,
        "exp": expire,
    }
    return jwt.encode(payload, _JWT_SECRET, algorithm=_JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT. Returns payload dict or None."""
    try:
        payload = jwt.decode(token, _JWT_SECRET, algorithms=[_JWT_ALGORITHM])
        return payload
    except JWTError:
        return None
