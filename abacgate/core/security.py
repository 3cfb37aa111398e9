from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jose import JWTError, jwt

from abacgate.common.logger import get_logger
from abacgate.core.abac.permissions import Caller
from abacgate.core.config import Settings, get_settings

logger = get_logger("security")


def create_access_token(
    caller_id: str,
    roles: Iterable[str],
    settings: Optional[Settings] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token carrying the caller's id and ordered roles."""
    settings = settings or get_settings()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(caller_id),
        "roles": list(roles),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Optional[Caller]:
    """Decode and validate a JWT token. Returns the caller if valid."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.debug(f"Rejected access token: {e}")
        return None

    if payload.get("type", "access") != "access":
        return None

    try:
        return Caller.from_claims(payload)
    except ValueError:
        return None
