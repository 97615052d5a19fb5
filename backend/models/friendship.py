import datetime

from sqlalchemy import UniqueConstraint, CheckConstraint, Column, Index
from sqlmodel import SQLModel, Field

from models.common import CamelModel
from models.types import UtcAwareDateTime, utcnow


class Friendship(SQLModel, CamelModel, table=True):
    """One direction of a friendship, always stored together with its mirror row"""

    __tablename__ = "friendships"
    __table_args__ = (CheckConstraint("user_id <> friend_id", name="ck_friend_self"),)

    user_id: int = Field(foreign_key="users.id", primary_key=True)
    friend_id: int = Field(foreign_key="users.id", primary_key=True, index=True)
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )


class FriendRequest(SQLModel, CamelModel, table=True):
    __tablename__ = "friend_requests"
    __table_args__ = (
        UniqueConstraint("sender_id", "receiver_id", name="uq_friend_request_pair"),
        Index("idx_friend_requests_receiver", "receiver_id"),
    )

    id: int | None = Field(default=None, primary_key=True)
    sender_id: int = Field(foreign_key="users.id")
    receiver_id: int = Field(foreign_key="users.id")
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )


class Block(SQLModel, CamelModel, table=True):
    __tablename__ = "blocks"

    blocker_id: int = Field(foreign_key="users.id", primary_key=True)
    blocked_id: int = Field(foreign_key="users.id", primary_key=True, index=True)
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )


class DeletedChat(SQLModel, CamelModel, table=True):
    """The user hid the conversation with other_user_id from their own view"""

    __tablename__ = "deleted_chats"

    user_id: int = Field(foreign_key="users.id", primary_key=True)
    other_user_id: int = Field(foreign_key="users.id", primary_key=True)
    deleted_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
