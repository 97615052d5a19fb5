import logging
import secrets
import string

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from models.auth import User
from services.errors import ConflictError, NotFoundError, ValidationError
from services.security import MAX_PASSWORD_BYTES, hash_password, verify_password

logger = logging.getLogger("pingcode.auth")

MAX_USERNAME_LENGTH = 40


def generate_friend_code(session: Session) -> str:
    """Three uppercase letters and three digits, not used by anybody yet"""
    while True:
        letters = "".join(secrets.choice(string.ascii_uppercase) for _ in range(3))
        digits = "".join(secrets.choice(string.digits) for _ in range(3))
        code = letters + digits
        if not session.exec(select(User).where(User.friend_code == code)).first():
            return code
        logger.debug(f"Friend code {code} already taken, retrying")


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_user_by_username(session: Session, username: str) -> User | None:
    return session.exec(select(User).where(User.username == username)).first()


def _clean_username(username: str | None) -> str:
    desired = (username or "").strip()
    if not desired:
        raise ValidationError("Username cannot be empty")
    if len(desired) > MAX_USERNAME_LENGTH:
        raise ValidationError("Username too long")
    return desired


def signup(session: Session, username: str, password: str) -> User:
    if not username or not password:
        raise ValidationError("Username and password are required")
    username = _clean_username(username)
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password too long")
    if get_user_by_username(session, username):
        raise ConflictError("Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(password),
        friend_code=generate_friend_code(session),
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # lost a race on the username or the friend code
        session.rollback()
        raise ConflictError("Username already exists")
    session.refresh(user)
    logger.info(f"New user {user.username} ({user.id})")
    return user


def login(session: Session, username: str, password: str) -> User:
    if not username or not password:
        raise ValidationError("Username and password are required")
    user = get_user_by_username(session, username.strip())
    if not user or not verify_password(password, user.password_hash):
        raise ValidationError("Invalid credentials")
    return user


def update_profile(
    session: Session,
    user: User,
    username: str | None = None,
    avatar_url: str | None = None,
) -> User:
    if username is not None:
        desired = _clean_username(username)
        if desired != user.username:
            existing = get_user_by_username(session, desired)
            if existing and existing.id != user.id:
                raise ConflictError("Username already exists")
            user.username = desired

    if avatar_url:
        user.avatar_url = avatar_url

    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("Username already exists")
    session.refresh(user)
    return user
