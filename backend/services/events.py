from enum import Enum


class InboundEvent(str, Enum):
    """Events a client can emit on the live channel"""

    send_message = "sendMessage"
    update_message_status = "updateMessageStatus"
    typing = "typing"
    stop_typing = "stopTyping"


class OutboundEvent(str, Enum):
    """Events the server pushes on the live channel"""

    connected = "connected"
    new_message = "newMessage"
    message_sent = "messageSent"
    message_status_update = "messageStatusUpdate"
    typing_indicator = "typingIndicator"
    user_status = "userStatus"
    error = "error"


class PresenceStatus(str, Enum):
    online = "online"
    offline = "offline"
