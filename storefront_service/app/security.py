import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi.security import HTTPBearer
from passlib.context import CryptContext

from .config import Settings
from .errors import Forbidden, Unauthorized
from .schemas import Identity

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# auto_error is off so a missing header becomes our own 401 instead of FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def issue_token(identity: Identity, settings: Settings) -> str:
    """Signs the identity into a JWT that expires after `jwt_expire_hours`."""
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expire_hours)
    payload = {**identity.model_dump(), "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str], settings: Settings) -> Identity:
    """
    Decodes a bearer token back into an Identity.

    Raises Unauthorized when no token is given and Forbidden when the token is
    malformed, badly signed or expired.
    """
    if not token:
        raise Unauthorized("Access token required")
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return Identity(**{k: payload.get(k) for k in ("id", "email", "role", "name") if k in payload})
    except jwt.InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", e)
        raise Forbidden("Invalid or expired token")
    except ValueError:
        raise Forbidden("Invalid or expired token")

