import pytest
from sqlmodel import Session

from models.friendship import Block, FriendRequest, Friendship
from services.errors import AuthorizationError, NotFoundError
from services.relationships import (
    FriendRequestDecision,
    are_friends,
    can_message,
    can_request_friend,
    ensure_can_message,
)


def test_strangers_cannot_message(test_session: Session, alice, bob):
    assert not can_message(test_session, alice.id, bob.id)
    with pytest.raises(NotFoundError):
        ensure_can_message(test_session, alice.id, bob.id)


def test_friends_can_message_both_ways(test_session: Session, friends):
    alice, bob = friends
    assert can_message(test_session, alice.id, bob.id)
    assert can_message(test_session, bob.id, alice.id)
    ensure_can_message(test_session, alice.id, bob.id)


def test_nobody_messages_themselves(test_session: Session, alice):
    assert not can_message(test_session, alice.id, alice.id)


def test_half_friendship_is_not_a_friendship(test_session: Session, alice, bob):
    test_session.add(Friendship(user_id=alice.id, friend_id=bob.id))
    test_session.commit()
    assert not are_friends(test_session, alice.id, bob.id)
    assert not can_message(test_session, bob.id, alice.id)


@pytest.mark.parametrize("blocker_is_alice", [True, False])
def test_a_block_in_either_direction_stops_both(
    test_session: Session, friends, blocker_is_alice
):
    alice, bob = friends
    blocker, blocked = (alice, bob) if blocker_is_alice else (bob, alice)
    test_session.add(Block(blocker_id=blocker.id, blocked_id=blocked.id))
    test_session.commit()

    assert not can_message(test_session, alice.id, bob.id)
    assert not can_message(test_session, bob.id, alice.id)
    with pytest.raises(AuthorizationError):
        ensure_can_message(test_session, alice.id, bob.id)


def test_request_decisions(test_session: Session, alice, bob, carol):
    assert can_request_friend(test_session, alice.id, alice.id) == (
        FriendRequestDecision.self_request
    )
    assert can_request_friend(test_session, alice.id, bob.id) == (
        FriendRequestDecision.allowed
    )

    test_session.add(FriendRequest(sender_id=alice.id, receiver_id=bob.id))
    test_session.commit()
    assert can_request_friend(test_session, alice.id, bob.id) == (
        FriendRequestDecision.already_pending
    )
    assert can_request_friend(test_session, bob.id, alice.id) == (
        FriendRequestDecision.auto_accept
    )

    test_session.add(Block(blocker_id=carol.id, blocked_id=alice.id))
    test_session.commit()
    assert can_request_friend(test_session, alice.id, carol.id) == (
        FriendRequestDecision.blocked
    )


def test_already_friends_wins_over_everything(test_session: Session, friends):
    alice, bob = friends
    test_session.add(Block(blocker_id=alice.id, blocked_id=bob.id))
    test_session.commit()
    assert can_request_friend(test_session, bob.id, alice.id) == (
        FriendRequestDecision.already_friends
    )
