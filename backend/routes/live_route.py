import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlmodel import Session
from starlette.websockets import WebSocketState

from models.common import get_session
from routes.deps import get_presence, user_from_token
from services.delivery import MessageRouter
from services.events import OutboundEvent
from services.live import LiveContext, dispatch
from services.presence import PresenceRegistry
from services.security import strip_bearer

router = APIRouter(tags=["live"])
logger = logging.getLogger("pingcode.live")


class LiveConnection:
    """One websocket in its user's delivery group"""

    def __init__(self, websocket: WebSocket, user_id: int):
        self.websocket = websocket
        self.user_id = user_id

    async def send_event(self, event: OutboundEvent, data: dict[str, Any]) -> None:
        await self.websocket.send_json({"event": event.value, "data": data})

    def __repr__(self):
        return f"<LiveConnection user={self.user_id}>"


def handshake_token(websocket: WebSocket) -> str | None:
    return websocket.query_params.get("token") or strip_bearer(
        websocket.headers.get("authorization")
    )


async def receive_frame(websocket: WebSocket) -> str | bytes:
    """Next text or binary frame; both are parsed the same way"""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
    text = message.get("text")
    return text if text is not None else message.get("bytes") or b""


@router.websocket("/ws")
async def live_channel(
    websocket: WebSocket,
    session: Session = Depends(get_session),
    presence: PresenceRegistry = Depends(get_presence),
):
    user = user_from_token(session, handshake_token(websocket))
    if user is None:
        logger.info("Live channel handshake refused")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection = LiveConnection(websocket, user.id)
    ctx = LiveContext(
        session=session,
        router=MessageRouter(presence),
        connection=connection,
        user_id=user.id,
    )
    await presence.register(user.id, connection)
    try:
        await connection.send_event(OutboundEvent.connected, {"userId": user.id})
        while True:
            await dispatch(ctx, await receive_frame(websocket))
    except WebSocketDisconnect:
        logger.debug(f"Live channel closed | user={user.id}")
    except Exception:
        logger.exception(f"Live channel crashed | user={user.id}")
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    finally:
        await presence.deregister(user.id, connection)
