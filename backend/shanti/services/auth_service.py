# auth service — jwt token verification
# the identity provider issues tokens; the api only needs to verify them
# and read the caller identity (the "sub" claim)

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from shanti.config import settings

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = timedelta(minutes=60)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """create a jwt access token (used by the seed script and tests)"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or DEFAULT_TOKEN_LIFETIME)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """decode and validate a jwt token, returns payload or none"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError as e:
        logger.warning(f"Token decode failed: {e}")
        return None


def resolve_identity(token: Optional[str]) -> Optional[str]:
    """map a bearer token to the owner id it was issued for, or none.
    only access tokens with a non-empty string subject resolve."""
    if not token:
        return None

    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type", "access") != "access":
        return None

    owner_id = payload.get("sub")
    if isinstance(owner_id, str) and owner_id:
        return owner_id
    return None
