import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from models.auth import User
from models.friendship import Block, DeletedChat, FriendRequest, Friendship
from models.schemas import UserSummary
from services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from services.messages import latest_message, message_view, unread_count
from services.presence import PresenceRegistry
from services.relationships import (
    FriendRequestDecision,
    are_friends,
    can_request_friend,
    pair_clause,
)

logger = logging.getLogger("pingcode.friends")


@dataclass
class FriendRequestOutcome:
    receiver: User
    request: FriendRequest | None = None  # None when auto-accepted

    @property
    def accepted(self) -> bool:
        return self.request is None


def make_friends(session: Session, user_id: int, other_id: int) -> None:
    """Create both friendship rows and drop every pending request of the pair.

    One commit: either the pair exists and no request is left, or nothing
    changed.
    """
    pending = session.exec(
        select(FriendRequest).where(
            pair_clause(FriendRequest.sender_id, FriendRequest.receiver_id, user_id, other_id)
        )
    ).all()
    for request in pending:
        session.delete(request)
    for a, b in ((user_id, other_id), (other_id, user_id)):
        if session.get(Friendship, (a, b)) is None:
            session.add(Friendship(user_id=a, friend_id=b))
        # a renewed friendship shows the conversation again
        marker = session.get(DeletedChat, (a, b))
        if marker is not None:
            session.delete(marker)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        # a concurrent accept created the pair first
        if not are_friends(session, user_id, other_id):
            raise
        logger.info(f"Friendship {user_id}<->{other_id} was already created")


def send_friend_request(
    session: Session, *, sender: User, friend_code: str | None
) -> FriendRequestOutcome:
    friend_code = (friend_code or "").strip().upper()
    if not friend_code:
        raise ValidationError("Friend code is required")

    receiver = session.exec(select(User).where(User.friend_code == friend_code)).first()
    if not receiver:
        raise NotFoundError("User with this friend code not found")

    decision = can_request_friend(session, sender.id, receiver.id)
    match decision:
        case FriendRequestDecision.self_request:
            raise ValidationError("You cannot add yourself as a friend")
        case FriendRequestDecision.already_friends:
            raise ConflictError("You are already friends with this user")
        case FriendRequestDecision.already_pending:
            raise ConflictError("Friend request already sent")
        case FriendRequestDecision.blocked:
            raise AuthorizationError("Cannot send a friend request to this user")
        case FriendRequestDecision.auto_accept:
            logger.debug(f"Reverse request found, {sender.id} and {receiver.id} are now friends")
            make_friends(session, sender.id, receiver.id)
            return FriendRequestOutcome(receiver=receiver)

    request = FriendRequest(sender_id=sender.id, receiver_id=receiver.id)
    session.add(request)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("Friend request already sent")
    session.refresh(request)
    return FriendRequestOutcome(receiver=receiver, request=request)


def list_pending_requests(session: Session, user: User) -> list[dict]:
    """Incoming requests, newest first"""
    rows = session.exec(
        select(FriendRequest, User)
        .join(User, User.id == FriendRequest.sender_id)
        .where(FriendRequest.receiver_id == user.id)
        .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
    ).all()
    return [
        {
            "requestId": request.id,
            "sender": UserSummary.model_validate(sender).dump(),
            "createdAt": request.created_at.isoformat(),
        }
        for request, sender in rows
    ]


def _incoming_request(session: Session, user: User, request_id: int) -> FriendRequest:
    request = session.get(FriendRequest, request_id)
    if not request:
        raise NotFoundError("Friend request not found")
    if request.receiver_id != user.id:
        raise AuthorizationError("Not authorized to answer this request")
    return request


def accept_friend_request(session: Session, *, user: User, request_id: int) -> User:
    """Accept an incoming request, return the new friend"""
    request = _incoming_request(session, user, request_id)
    sender_id = request.sender_id
    make_friends(session, user.id, sender_id)
    return session.get(User, sender_id)


def decline_friend_request(session: Session, *, user: User, request_id: int) -> None:
    request = _incoming_request(session, user, request_id)
    session.delete(request)
    session.commit()


def get_friends(session: Session, user: User) -> list[tuple[User, Friendship]]:
    return list(
        session.exec(
            select(User, Friendship)
            .join(Friendship, Friendship.friend_id == User.id)
            .where(Friendship.user_id == user.id)
            .order_by(User.username)
        ).all()
    )


def list_friends(session: Session, user: User) -> list[dict]:
    return [
        {
            **UserSummary.model_validate(friend).dump(),
            "since": friendship.created_at.isoformat(),
        }
        for friend, friendship in get_friends(session, user)
    ]


def remove_friend(session: Session, *, user: User, friend_id: int) -> None:
    """Drop both friendship rows and hide the chat for the remover"""
    if session.get(Friendship, (user.id, friend_id)) is None:
        raise NotFoundError("Friendship not found")

    for a, b in ((user.id, friend_id), (friend_id, user.id)):
        row = session.get(Friendship, (a, b))
        if row is not None:
            session.delete(row)
    if session.get(DeletedChat, (user.id, friend_id)) is None:
        session.add(DeletedChat(user_id=user.id, other_user_id=friend_id))
    session.commit()


def dashboard(session: Session, user: User, registry: PresenceRegistry) -> dict:
    """Friends the user still wants to see, with presence and the latest chats"""
    blocked_ids = set(
        session.exec(select(Block.blocked_id).where(Block.blocker_id == user.id)).all()
    )
    hidden_ids = set(
        session.exec(
            select(DeletedChat.other_user_id).where(DeletedChat.user_id == user.id)
        ).all()
    )

    friends = []
    recent_chats = []
    for friend, _ in get_friends(session, user):
        if friend.id in blocked_ids or friend.id in hidden_ids:
            continue
        friends.append(
            {
                **UserSummary.model_validate(friend).dump(),
                "online": registry.is_online(friend.id),
            }
        )
        last = latest_message(session, user.id, friend.id)
        if last:
            recent_chats.append(
                (
                    last.created_at,
                    {
                        "friendId": friend.id,
                        "lastMessage": message_view(session, last),
                        "unread": unread_count(session, user.id, friend.id),
                    },
                )
            )

    recent_chats.sort(key=lambda item: item[0], reverse=True)
    return {"friends": friends, "recentChats": [chat for _, chat in recent_chats]}
