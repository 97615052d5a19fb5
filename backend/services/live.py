"""Live channel events: parse an inbound frame and route it to its handler.

The websocket loop only moves frames around; everything a frame can do lives
here, next to the REST services it shares the rules with.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import ValidationError as PayloadError
from sqlmodel import Session

from models.schemas import MessageStatusPayload, SendMessagePayload, TypingPayload
from services.delivery import MessageRouter
from services.errors import AppError, ValidationError
from services.events import InboundEvent, OutboundEvent
from services.presence import Connection

logger = logging.getLogger("pingcode.live")


@dataclass
class LiveContext:
    session: Session
    router: MessageRouter
    connection: Connection
    user_id: int


def parse_frame(raw: str | bytes | dict) -> tuple[InboundEvent, dict[str, Any]]:
    """Frames look like {"event": "sendMessage", "data": {...}}"""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("Malformed frame: not JSON") from None
    if not isinstance(raw, dict):
        raise ValidationError("Malformed frame: expected an object")

    name = raw.get("event")
    try:
        event = InboundEvent(name)
    except ValueError:
        raise ValidationError(f"Unknown event: {name}") from None

    data = raw.get("data") or {}
    if not isinstance(data, dict):
        raise ValidationError("Malformed frame: data must be an object")
    return event, data


def _payload(model, data: dict[str, Any]):
    try:
        return model.model_validate(data)
    except PayloadError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValidationError(f"Invalid payload: {fields}") from None


async def handle_send_message(ctx: LiveContext, data: dict[str, Any]) -> None:
    payload = _payload(SendMessagePayload, data)
    await ctx.router.send(
        ctx.session,
        ctx.user_id,
        payload.friend_id,
        payload.type,
        payload.content,
        payload.media_url,
    )


async def handle_update_status(ctx: LiveContext, data: dict[str, Any]) -> None:
    payload = _payload(MessageStatusPayload, data)
    await ctx.router.update_status(
        ctx.session, ctx.user_id, payload.message_id, payload.status
    )


async def handle_typing(ctx: LiveContext, data: dict[str, Any]) -> None:
    payload = _payload(TypingPayload, data)
    await ctx.router.typing_signal(ctx.session, ctx.user_id, payload.friend_id, True)


async def handle_stop_typing(ctx: LiveContext, data: dict[str, Any]) -> None:
    payload = _payload(TypingPayload, data)
    await ctx.router.typing_signal(ctx.session, ctx.user_id, payload.friend_id, False)


HANDLERS: dict[InboundEvent, Callable[[LiveContext, dict], Awaitable[None]]] = {
    InboundEvent.send_message: handle_send_message,
    InboundEvent.update_message_status: handle_update_status,
    InboundEvent.typing: handle_typing,
    InboundEvent.stop_typing: handle_stop_typing,
}


async def dispatch(ctx: LiveContext, raw: str | bytes | dict) -> None:
    """Handle one frame; failures become `error` events, the connection stays up"""
    try:
        event, data = parse_frame(raw)
        # the connection keeps one session, don't trust what it cached
        ctx.session.expire_all()
        await HANDLERS[event](ctx, data)
    except AppError as e:
        logger.debug(f"Live event refused | user={ctx.user_id} | {e.message}")
        await ctx.connection.send_event(OutboundEvent.error, {"message": e.message})
    except Exception:
        logger.exception(f"Live event failed | user={ctx.user_id}")
        ctx.session.rollback()
        await ctx.connection.send_event(
            OutboundEvent.error, {"message": "Internal server error"}
        )
