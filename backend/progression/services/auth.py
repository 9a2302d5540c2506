"""
JWT handling.

Tokens are issued by the account service; this service only verifies them
with the shared secret. ``create_access_token`` exists for scripts and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from pydantic import ValidationError

from progression.core.config import settings
from progression.schemas.auth import TokenPayload

logger = structlog.get_logger()

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

    payload = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "type": "access",
    }

    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[TokenPayload]:
    """
    Decode and validate a JWT access token.

    Validates:
    - Token signature
    - Token expiration
    - Token type (must be "access")
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
        token_data = TokenPayload(**payload)
    except JWTError as e:
        logger.warning("JWT decode error", error=str(e))
        return None
    except ValidationError as e:
        logger.warning("Malformed token payload", error=str(e))
        return None

    if token_data.type != "access":
        logger.warning("Invalid token type", token_type=token_data.type)
        return None

    return token_data
