import logging

from sqlmodel import Session, select

from models.auth import User
from models.friendship import Block
from models.schemas import UserSummary
from services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger("pingcode.blocks")


def block_user(session: Session, *, user: User, blocked_id: int) -> User:
    """Block messaging with another user.

    Friendship and pending requests are left in place: unblocking restores
    the conversation as it was.
    """
    if blocked_id == user.id:
        raise ValidationError("You cannot block yourself")
    if session.get(Block, (user.id, blocked_id)):
        raise ConflictError("User is already blocked")
    blocked = session.get(User, blocked_id)
    if not blocked:
        raise NotFoundError("User to block not found")

    session.add(Block(blocker_id=user.id, blocked_id=blocked_id))
    session.commit()
    logger.info(f"{user.id} blocked {blocked_id}")
    return blocked


def unblock_user(session: Session, *, user: User, blocked_id: int) -> None:
    block = session.get(Block, (user.id, blocked_id))
    if not block:
        raise NotFoundError("Block record not found")
    session.delete(block)
    session.commit()


def list_blocked(session: Session, user: User) -> list[dict]:
    rows = session.exec(
        select(Block, User)
        .join(User, User.id == Block.blocked_id)
        .where(Block.blocker_id == user.id)
        .order_by(Block.created_at.desc())
    ).all()
    return [
        {
            **UserSummary.model_validate(blocked).dump(),
            "blockedAt": block.created_at.isoformat(),
        }
        for block, blocked in rows
    ]
