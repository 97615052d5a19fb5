import logging

from sqlalchemy import func
from sqlmodel import Session, select

from models.auth import User
from models.friendship import DeletedChat
from models.messages import Message, MessageStatus
from models.schemas import MessageView, UserRef
from services.errors import ConflictError, NotFoundError
from services.relationships import are_friends, ensure_can_message, pair_clause

logger = logging.getLogger("pingcode.messages")


def message_view(session: Session, message: Message) -> dict:
    view = MessageView.model_validate(message)
    sender = session.get(User, message.sender_id)
    receiver = session.get(User, message.receiver_id)
    if sender:
        view.sender = UserRef.model_validate(sender)
    if receiver:
        view.receiver = UserRef.model_validate(receiver)
    return view.dump()


def conversation(session: Session, user_id: int, other_id: int) -> list[Message]:
    return list(
        session.exec(
            select(Message)
            .where(pair_clause(Message.sender_id, Message.receiver_id, user_id, other_id))
            .order_by(Message.created_at, Message.id)
        ).all()
    )


def list_messages(session: Session, actor_id: int, counterparty_id: int) -> list[Message]:
    """Chat history in chronological order.

    Reading the history means the actor has seen everything the counterparty
    sent so far.
    """
    ensure_can_message(session, actor_id, counterparty_id)
    messages = conversation(session, actor_id, counterparty_id)

    marked = 0
    for message in messages:
        if message.sender_id == counterparty_id and message.status != MessageStatus.seen:
            message.status = MessageStatus.seen
            session.add(message)
            marked += 1
    if marked:
        session.commit()
        logger.debug(f"Marked {marked} messages as seen | user={actor_id}")
    return messages


def latest_message(session: Session, user_id: int, other_id: int) -> Message | None:
    return session.exec(
        select(Message)
        .where(pair_clause(Message.sender_id, Message.receiver_id, user_id, other_id))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(1)
    ).first()


def unread_count(session: Session, user_id: int, sender_id: int) -> int:
    return session.exec(
        select(func.count(Message.id)).where(
            Message.sender_id == sender_id,
            Message.receiver_id == user_id,
            Message.status != MessageStatus.seen,
        )
    ).one()


def hide_chat(session: Session, actor_id: int, counterparty_id: int) -> DeletedChat:
    """Hide the conversation from the actor's own view, messages are kept"""
    if not are_friends(session, actor_id, counterparty_id):
        raise NotFoundError("Friendship not found")
    if session.get(DeletedChat, (actor_id, counterparty_id)):
        raise ConflictError("Chat already deleted")

    marker = DeletedChat(user_id=actor_id, other_user_id=counterparty_id)
    session.add(marker)
    session.commit()
    return marker
