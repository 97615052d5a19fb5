"""Password hashing and bearer tokens"""

import datetime
import logging

import bcrypt
from jose import JWTError, jwt

import settings
from models.auth import User

logger = logging.getLogger("pingcode.auth")

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # over-long password or a malformed hash
        return False


def create_access_token(user: User, expires_delta: datetime.timedelta | None = None) -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    if expires_delta is None:
        expires_delta = datetime.timedelta(days=settings.TOKEN_EXPIRE_DAYS)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> int | None:
    """Return the user id carried by a valid token, None otherwise"""
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        logger.debug(f"Rejected token: {e}")
        return None
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None


def strip_bearer(authorization: str | None) -> str | None:
    """Accept both `Bearer <token>` and a raw token"""
    if not authorization:
        return None
    if authorization.startswith("Bearer "):
        authorization = authorization[len("Bearer ") :]
    return authorization.strip() or None
