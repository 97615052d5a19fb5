"""Request payloads and camelCase views returned by the API and the live channel"""

import datetime

from pydantic import ConfigDict

from .common import CamelModel
from .messages import MessageStatus, MessageType


class View(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class UserRef(View):
    id: int
    username: str


class UserSummary(UserRef):
    friend_code: str
    avatar_url: str | None = None


class UserProfile(UserSummary):
    created_at: datetime.datetime


class MessageView(View):
    id: int
    sender_id: int
    receiver_id: int
    type: MessageType
    content: str | None = None
    media_url: str | None = None
    created_at: datetime.datetime
    status: MessageStatus
    sender: UserRef | None = None
    receiver: UserRef | None = None


# --- Payloads ---


class Credentials(CamelModel):
    username: str
    password: str


class ProfileUpdate(CamelModel):
    username: str | None = None
    avatar_url: str | None = None


class FriendRequestPayload(CamelModel):
    friend_code: str


class SendMessagePayload(CamelModel):
    friend_id: int
    type: MessageType = MessageType.text
    content: str | None = None
    media_url: str | None = None


class MessageStatusPayload(CamelModel):
    message_id: int
    status: MessageStatus


class TypingPayload(CamelModel):
    friend_id: int
