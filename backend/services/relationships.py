"""Decisions about what two users are allowed to do with each other.

Everything here only reads the store: callers act on the answer. The state is
read right before the decision without any lock, so two users sending each
other a request at the same instant may both see `allowed`; the unique
constraints keep the store consistent in that case.
"""

from enum import Enum

from sqlalchemy import and_, or_
from sqlmodel import Session, select

from models.friendship import Block, FriendRequest, Friendship
from services.errors import AuthorizationError, NotFoundError


class FriendRequestDecision(str, Enum):
    allowed = "allowed"
    self_request = "self_request"
    already_friends = "already_friends"
    already_pending = "already_pending"
    auto_accept = "auto_accept"
    blocked = "blocked"


def pair_clause(left_col, right_col, a: int, b: int):
    """Match rows linking a and b in either direction"""
    return or_(
        and_(left_col == a, right_col == b),
        and_(left_col == b, right_col == a),
    )


def are_friends(session: Session, user_id: int, other_id: int) -> bool:
    """Both directed rows must be there"""
    return (
        session.get(Friendship, (user_id, other_id)) is not None
        and session.get(Friendship, (other_id, user_id)) is not None
    )


def is_blocked_between(session: Session, user_id: int, other_id: int) -> bool:
    block = session.exec(
        select(Block).where(
            pair_clause(Block.blocker_id, Block.blocked_id, user_id, other_id)
        )
    ).first()
    return block is not None


def pending_request(session: Session, sender_id: int, receiver_id: int) -> FriendRequest | None:
    return session.exec(
        select(FriendRequest).where(
            FriendRequest.sender_id == sender_id,
            FriendRequest.receiver_id == receiver_id,
        )
    ).first()


def can_message(session: Session, actor_id: int, counterparty_id: int) -> bool:
    if actor_id == counterparty_id:
        return False
    return are_friends(session, actor_id, counterparty_id) and not is_blocked_between(
        session, actor_id, counterparty_id
    )


def ensure_can_message(session: Session, actor_id: int, counterparty_id: int) -> None:
    """Raise when actor can't exchange messages with counterparty"""
    if actor_id == counterparty_id or not are_friends(
        session, actor_id, counterparty_id
    ):
        raise NotFoundError("Friendship not found")
    if is_blocked_between(session, actor_id, counterparty_id):
        raise AuthorizationError("Not authorized: a block exists between these users")


def can_request_friend(
    session: Session, sender_id: int, receiver_id: int
) -> FriendRequestDecision:
    if sender_id == receiver_id:
        return FriendRequestDecision.self_request
    if (
        session.get(Friendship, (sender_id, receiver_id)) is not None
        or session.get(Friendship, (receiver_id, sender_id)) is not None
    ):
        return FriendRequestDecision.already_friends
    if is_blocked_between(session, sender_id, receiver_id):
        return FriendRequestDecision.blocked
    if pending_request(session, sender_id, receiver_id):
        return FriendRequestDecision.already_pending
    if pending_request(session, receiver_id, sender_id):
        return FriendRequestDecision.auto_accept
    return FriendRequestDecision.allowed
