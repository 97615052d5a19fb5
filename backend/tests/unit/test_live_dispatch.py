import json

import pytest
from sqlmodel import Session, select

from models.messages import Message, MessageStatus
from services.delivery import MessageRouter
from services.errors import ValidationError
from services.events import InboundEvent
from services.live import LiveContext, dispatch, parse_frame
from services.presence import PresenceRegistry


@pytest.fixture
def registry():
    return PresenceRegistry()


@pytest.fixture
def live(test_session: Session, friends, registry, fake_connection):
    """A context for alice, with bob connected too"""

    async def _live():
        alice, bob = friends
        alice_conn, bob_conn = fake_connection("alice"), fake_connection("bob")
        await registry.register(alice.id, alice_conn)
        await registry.register(bob.id, bob_conn)
        ctx = LiveContext(
            session=test_session,
            router=MessageRouter(registry),
            connection=alice_conn,
            user_id=alice.id,
        )
        return ctx, alice_conn, bob_conn

    return _live


def frame(event, **data):
    return json.dumps({"event": event, "data": data})


def test_parse_frame():
    event, data = parse_frame('{"event": "typing", "data": {"friendId": 2}}')
    assert event == InboundEvent.typing
    assert data == {"friendId": 2}

    assert parse_frame({"event": "stopTyping"}) == (InboundEvent.stop_typing, {})

    with pytest.raises(ValidationError, match="not JSON"):
        parse_frame("{nope")
    with pytest.raises(ValidationError, match="Unknown event"):
        parse_frame('{"event": "shout"}')
    with pytest.raises(ValidationError, match="expected an object"):
        parse_frame("[1, 2]")
    with pytest.raises(ValidationError, match="data must be an object"):
        parse_frame('{"event": "typing", "data": [1]}')


async def test_send_message_event(test_session: Session, friends, live):
    alice, bob = friends
    ctx, alice_conn, bob_conn = await live()

    await dispatch(ctx, frame("sendMessage", friendId=bob.id, content="hey"))

    [message] = test_session.exec(select(Message)).all()
    assert message.content == "hey"
    assert bob_conn.named("newMessage")[0]["id"] == message.id
    assert alice_conn.named("messageSent")[0]["id"] == message.id
    assert alice_conn.named("error") == []


async def test_status_event_from_the_receiver(test_session: Session, friends, live):
    alice, bob = friends
    ctx, alice_conn, bob_conn = await live()
    message = await ctx.router.send(test_session, bob.id, alice.id, content="yo")

    await dispatch(ctx, frame("updateMessageStatus", messageId=message.id, status="seen"))

    test_session.refresh(message)
    assert message.status == MessageStatus.seen
    assert bob_conn.named("messageStatusUpdate") == [
        {"messageId": message.id, "status": "seen"}
    ]


async def test_typing_events(friends, live):
    alice, bob = friends
    ctx, _, bob_conn = await live()

    await dispatch(ctx, frame("typing", friendId=bob.id))
    await dispatch(ctx, frame("stopTyping", friendId=bob.id))

    assert [d["isTyping"] for d in bob_conn.named("typingIndicator")] == [True, False]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("not json", "Malformed frame: not JSON"),
        (frame("dance"), "Unknown event: dance"),
        (frame("sendMessage", content="no friend"), "Invalid payload: friendId"),
        (frame("sendMessage", friendId=4242, content="hi"), "Friendship not found"),
        (frame("updateMessageStatus", messageId=1, status="lost"), "Invalid payload: status"),
    ],
)
async def test_refused_events_keep_the_connection(test_session: Session, live, raw, expected):
    ctx, alice_conn, _ = await live()

    await dispatch(ctx, raw)

    assert alice_conn.named("error") == [{"message": expected}]
    assert test_session.exec(select(Message)).all() == []


async def test_unexpected_failures_are_reported(friends, live, mocker):
    alice, bob = friends
    ctx, alice_conn, _ = await live()
    mocker.patch.object(ctx.router, "typing_signal", side_effect=RuntimeError("boom"))

    await dispatch(ctx, frame("typing", friendId=bob.id))

    assert alice_conn.named("error") == [{"message": "Internal server error"}]
