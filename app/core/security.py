"""Security utilities"""

import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from .config import settings


def create_access_token(subject: str) -> str:
    """Create access token"""
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {"exp": expire, "sub": subject}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[str]:
    """Verify token and return subject"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject: str = payload.get("sub")
        return subject
    except JWTError:
        return None


def hmac_sha256_hex(secret: str, message: bytes) -> str:
    """Hex HMAC-SHA256 digest, the scheme Razorpay uses for every signature."""
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def signatures_match(expected: str, received: Optional[str]) -> bool:
    """Constant-time comparison of two hex signatures"""
    if not received:
        return False
    return hmac.compare_digest(expected.encode(), received.encode())
