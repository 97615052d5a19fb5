"""Models package for the PingCode backend"""

from .common import get_session, CamelModel
from .auth import User
from .friendship import Block, DeletedChat, FriendRequest, Friendship
from .messages import Message, MessageStatus, MessageType
from .types import UtcAwareDateTime

__all__ = [
    "Block",
    "DeletedChat",
    "FriendRequest",
    "Friendship",
    "Message",
    "MessageStatus",
    "MessageType",
    "User",
    "UtcAwareDateTime",
    "get_session",
    "CamelModel",
]
