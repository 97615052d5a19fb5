import datetime
from enum import Enum

from sqlalchemy import Column, Index, Text
from sqlmodel import SQLModel, Field

from models.common import CamelModel
from models.types import UtcAwareDateTime, utcnow


class MessageType(str, Enum):
    text = "text"
    image = "image"
    voice = "voice"


class MessageStatus(str, Enum):
    sent = "sent"
    delivered = "delivered"
    seen = "seen"


class Message(SQLModel, CamelModel, table=True):
    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_pair_date", "sender_id", "receiver_id", "created_at"),
        Index("idx_messages_receiver_status", "receiver_id", "status"),
    )

    id: int | None = Field(default=None, primary_key=True)
    sender_id: int = Field(foreign_key="users.id")
    receiver_id: int = Field(foreign_key="users.id")
    type: MessageType = Field(default=MessageType.text)
    content: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    # opaque reference to externally stored media
    media_url: str | None = None
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
    status: MessageStatus = Field(default=MessageStatus.sent)
