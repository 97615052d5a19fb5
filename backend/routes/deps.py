from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session
from starlette.requests import HTTPConnection

from models.auth import User
from models.common import get_session
from services.presence import PresenceRegistry
from services.security import decode_token, strip_bearer

# auto_error off: a raw token without the Bearer scheme is accepted too
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> int | None:
    if credentials:
        token = credentials.credentials
    else:
        token = strip_bearer(request.headers.get("Authorization"))
    if not token:
        return None
    return decode_token(token)


def get_current_user(
    user_id: int | None = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> User | None:
    if not user_id:
        return None
    return session.get(User, user_id)


def current_user(user: User = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def user_from_token(session: Session, token: str | None) -> User | None:
    """Authenticate a live-channel handshake"""
    if not token:
        return None
    user_id = decode_token(token)
    if not user_id:
        return None
    return session.get(User, user_id)


def get_presence(connection: HTTPConnection) -> PresenceRegistry:
    return connection.app.state.presence
