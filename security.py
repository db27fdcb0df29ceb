"""
Password hashing and JWT issuing/verification.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from config import settings
from errors import UnauthorizedError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def _encode(payload: Dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {**payload, "iat": now, "exp": now + expires_delta}
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    payload = {
        "sub": str(user["_id"]),
        "email": user.get("email"),
        "username": user.get("username"),
        "full_name": user.get("full_name"),
        "type": ACCESS,
    }
    return _encode(
        payload,
        settings.ACCESS_TOKEN_SECRET,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: Any, expires_delta: Optional[timedelta] = None) -> str:
    # jti keeps two refresh tokens issued within the same second distinct
    payload = {"sub": str(user_id), "type": REFRESH, "jti": datetime.now(timezone.utc).isoformat()}
    return _encode(
        payload,
        settings.REFRESH_TOKEN_SECRET,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str, token_type: str) -> Dict[str, Any]:
    """Verify signature, expiry and token type; returns the payload."""
    secret = settings.ACCESS_TOKEN_SECRET if token_type == ACCESS else settings.REFRESH_TOKEN_SECRET
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        logger.warning("Rejected %s token", token_type)
        raise UnauthorizedError(f"Invalid or expired {token_type} token")
    if payload.get("type") != token_type or not payload.get("sub"):
        raise UnauthorizedError(f"Invalid {token_type} token")
    return payload
