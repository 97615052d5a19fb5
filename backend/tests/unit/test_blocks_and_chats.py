import datetime

import pytest
from sqlmodel import Session

from models.friendship import Block
from models.messages import Message, MessageStatus
from services.blocks import block_user, list_blocked, unblock_user
from services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from services.friendship import dashboard
from services.messages import hide_chat, list_messages
from services.presence import PresenceRegistry
from services.relationships import are_friends, can_message


def add_message(session, sender, receiver, content, minutes_ago=0, **kwargs):
    message = Message(
        sender_id=sender.id,
        receiver_id=receiver.id,
        content=content,
        created_at=datetime.datetime.now(datetime.timezone.utc)
        - datetime.timedelta(minutes=minutes_ago),
        **kwargs,
    )
    session.add(message)
    session.commit()
    session.refresh(message)
    return message


class TestBlocks:
    def test_block_and_unblock(self, test_session: Session, friends):
        alice, bob = friends
        blocked = block_user(test_session, user=alice, blocked_id=bob.id)
        assert blocked.id == bob.id
        assert not can_message(test_session, alice.id, bob.id)
        # the friendship itself survives the block
        assert are_friends(test_session, alice.id, bob.id)

        [entry] = list_blocked(test_session, alice)
        assert entry["username"] == "bob"
        assert "blockedAt" in entry
        assert list_blocked(test_session, bob) == []

        unblock_user(test_session, user=alice, blocked_id=bob.id)
        assert can_message(test_session, alice.id, bob.id)

    def test_block_errors(self, test_session: Session, alice, bob):
        with pytest.raises(ValidationError):
            block_user(test_session, user=alice, blocked_id=alice.id)
        with pytest.raises(NotFoundError):
            block_user(test_session, user=alice, blocked_id=4242)

        block_user(test_session, user=alice, blocked_id=bob.id)
        with pytest.raises(ConflictError):
            block_user(test_session, user=alice, blocked_id=bob.id)

        # only the blocker lifts a block
        with pytest.raises(NotFoundError):
            unblock_user(test_session, user=bob, blocked_id=alice.id)

    def test_mutual_blocks(self, test_session: Session, friends):
        alice, bob = friends
        block_user(test_session, user=alice, blocked_id=bob.id)
        block_user(test_session, user=bob, blocked_id=alice.id)
        unblock_user(test_session, user=alice, blocked_id=bob.id)
        assert not can_message(test_session, alice.id, bob.id)
        assert test_session.get(Block, (bob.id, alice.id)) is not None


class TestChats:
    def test_history_marks_incoming_as_seen(self, test_session: Session, friends):
        alice, bob = friends
        first = add_message(test_session, alice, bob, "one", minutes_ago=2)
        second = add_message(test_session, bob, alice, "two", minutes_ago=1)

        messages = list_messages(test_session, bob.id, alice.id)
        assert [m.id for m in messages] == [first.id, second.id]
        test_session.refresh(first)
        test_session.refresh(second)
        assert first.status == MessageStatus.seen
        # bob's own message is untouched
        assert second.status == MessageStatus.sent

    def test_history_needs_an_unblocked_friendship(
        self, test_session: Session, friends, carol
    ):
        alice, bob = friends
        with pytest.raises(NotFoundError):
            list_messages(test_session, alice.id, carol.id)

        block_user(test_session, user=bob, blocked_id=alice.id)
        with pytest.raises(AuthorizationError):
            list_messages(test_session, alice.id, bob.id)

    def test_hide_chat(self, test_session: Session, friends, carol):
        alice, bob = friends
        add_message(test_session, alice, bob, "hi")
        hide_chat(test_session, alice.id, bob.id)
        with pytest.raises(ConflictError):
            hide_chat(test_session, alice.id, bob.id)
        with pytest.raises(NotFoundError):
            hide_chat(test_session, alice.id, carol.id)

        # hidden for alice only, the messages are still there
        assert dashboard(test_session, alice, PresenceRegistry())["friends"] == []
        assert len(dashboard(test_session, bob, PresenceRegistry())["friends"]) == 1
        assert len(list_messages(test_session, alice.id, bob.id)) == 1


class TestDashboard:
    async def test_dashboard(
        self, test_session: Session, friends, make_user, fake_connection
    ):
        from services.friendship import make_friends

        alice, bob = friends
        dave = make_user("dave", "DAV000")
        make_friends(test_session, alice.id, dave.id)
        add_message(test_session, bob, alice, "old", minutes_ago=10)
        add_message(test_session, bob, alice, "older unread", minutes_ago=9)
        add_message(test_session, dave, alice, "newest", minutes_ago=1)

        registry = PresenceRegistry()
        await registry.register(dave.id, fake_connection())

        result = dashboard(test_session, alice, registry)
        assert [(f["username"], f["online"]) for f in result["friends"]] == [
            ("bob", False),
            ("dave", True),
        ]
        chats = result["recentChats"]
        assert [c["friendId"] for c in chats] == [dave.id, bob.id]
        assert chats[0]["lastMessage"]["content"] == "newest"
        assert chats[1]["unread"] == 2

    def test_blocked_friends_are_left_out(self, test_session: Session, friends):
        alice, bob = friends
        block_user(test_session, user=alice, blocked_id=bob.id)
        assert dashboard(test_session, alice, PresenceRegistry()) == {
            "friends": [],
            "recentChats": [],
        }
