from fastapi import APIRouter, Depends
from sqlmodel import Session

from models.auth import User
from models.common import get_session
from routes.deps import current_user
from services.messages import hide_chat as svc_hide_chat
from services.messages import list_messages as svc_list_messages
from services.messages import message_view

router = APIRouter(prefix="/messages")


@router.get("/{friend_id}")
async def get_messages(
    friend_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    """Chat history with a friend, oldest first; marks what they sent as seen"""
    messages = svc_list_messages(session, user.id, friend_id)
    return {"messages": [message_view(session, m) for m in messages]}


@router.delete("/{friend_id}")
async def delete_chat(
    friend_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    svc_hide_chat(session, user.id, friend_id)
    return {"message": "Chat deleted successfully"}
