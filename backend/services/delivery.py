"""Message routing: persist first, then push to whoever is connected.

Live pushes are a notification layer only. A recipient that is offline, or
whose connection drops mid-push, finds the message on the next history fetch.
"""

import logging

from sqlmodel import Session

from models.messages import Message, MessageStatus, MessageType
from services.errors import AuthorizationError, NotFoundError, ValidationError
from services.events import OutboundEvent
from services.messages import message_view
from services.presence import PresenceRegistry
from services.relationships import ensure_can_message

logger = logging.getLogger("pingcode.delivery")


def parse_message_type(value: MessageType | str | None) -> MessageType:
    if value is None:
        return MessageType.text
    try:
        return MessageType(value)
    except ValueError:
        raise ValidationError(f"Invalid message type: {value}") from None


def parse_message_status(value: MessageStatus | str) -> MessageStatus:
    try:
        return MessageStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid message status: {value}") from None


class MessageRouter:
    def __init__(self, registry: PresenceRegistry):
        self.registry = registry

    async def send(
        self,
        session: Session,
        sender_id: int,
        receiver_id: int,
        message_type: MessageType | str | None = MessageType.text,
        content: str | None = None,
        media_url: str | None = None,
    ) -> Message:
        message_type = parse_message_type(message_type)
        if message_type == MessageType.text and not (content and content.strip()):
            raise ValidationError("Text messages need some content")
        if message_type != MessageType.text and not media_url:
            raise ValidationError(f"{message_type.value.capitalize()} messages need a mediaUrl")
        ensure_can_message(session, sender_id, receiver_id)

        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            type=message_type,
            content=content,
            media_url=media_url,
            status=MessageStatus.sent,
        )
        session.add(message)
        session.commit()
        session.refresh(message)

        payload = message_view(session, message)
        delivered = await self.registry.send_to_user(
            receiver_id, OutboundEvent.new_message, payload
        )
        # every tab of the sender stays in sync, the origin included
        await self.registry.send_to_user(sender_id, OutboundEvent.message_sent, payload)
        logger.debug(
            f"Message {message.id} {sender_id}->{receiver_id} pushed to {delivered} connections"
        )
        return message

    async def update_status(
        self,
        session: Session,
        actor_id: int,
        message_id: int,
        new_status: MessageStatus | str,
    ) -> Message:
        """Receiver-side acknowledgement (delivered/seen).

        Transitions are not checked for monotonicity: well-behaved clients only
        move forward.
        """
        new_status = parse_message_status(new_status)
        message = session.get(Message, message_id)
        if message is None:
            raise NotFoundError("Message not found")
        if message.receiver_id != actor_id:
            raise AuthorizationError("Not authorized to update this message")
        ensure_can_message(session, actor_id, message.sender_id)

        message.status = new_status
        session.add(message)
        session.commit()

        await self.registry.send_to_user(
            message.sender_id,
            OutboundEvent.message_status_update,
            {"messageId": message.id, "status": new_status.value},
        )
        return message

    async def typing_signal(
        self, session: Session, actor_id: int, counterparty_id: int, is_typing: bool
    ) -> int:
        ensure_can_message(session, actor_id, counterparty_id)
        return await self.registry.send_to_user(
            counterparty_id,
            OutboundEvent.typing_indicator,
            {"friendId": actor_id, "isTyping": is_typing},
        )
