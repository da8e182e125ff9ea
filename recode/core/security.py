import hmac
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from jose import jwt, JWTError
from recode.core import config

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: timedelta = None):
    if not config.SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not configured")
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def create_admin_token(expires_delta: timedelta = None) -> str:
    """Issue a token carrying the admin claim; used only by the cache admin surface."""
    return create_access_token(
        {"admin": True},
        expires_delta or timedelta(hours=config.ADMIN_TOKEN_EXPIRE_HOURS),
    )


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT; returns None when it is invalid, expired or no key is configured."""
    if not config.SECRET_KEY:
        logger.error("Token rejected: SECRET_KEY is not configured")
        return None
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None


def verify_admin_password(password: str) -> bool:
    """Constant-time comparison against the configured admin password."""
    if not config.ADMIN_PASSWORD:
        return False
    return hmac.compare_digest(password.encode("utf-8"), config.ADMIN_PASSWORD.encode("utf-8"))


def missing_credentials() -> List[str]:
    """Names of unset credential settings; the API still starts but the matching auth path rejects everything."""
    return [name for name in ("SECRET_KEY", "ADMIN_PASSWORD") if not getattr(config, name)]
