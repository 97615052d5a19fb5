from fastapi import APIRouter, Depends
from sqlmodel import Session

from models.auth import User
from models.common import get_session
from routes.deps import current_user, get_presence
from services.friendship import dashboard as svc_dashboard
from services.friendship import list_friends as svc_list_friends
from services.friendship import remove_friend as svc_remove_friend
from services.presence import PresenceRegistry

router = APIRouter(prefix="/friends")


@router.get("")
async def list_friends(
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    return {"friends": svc_list_friends(session, user)}


@router.get("/dashboard")
async def dashboard(
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
    presence: PresenceRegistry = Depends(get_presence),
):
    return svc_dashboard(session, user, presence)


@router.delete("/{friend_id}")
async def remove_friend(
    friend_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    svc_remove_friend(session, user=user, friend_id=friend_id)
    return {"message": "Friend removed successfully"}
