from fastapi import APIRouter, Depends
from sqlmodel import Session

from models.auth import User
from models.common import get_session
from models.schemas import UserSummary
from routes.deps import current_user
from services.blocks import block_user as svc_block_user
from services.blocks import list_blocked as svc_list_blocked
from services.blocks import unblock_user as svc_unblock_user

router = APIRouter(prefix="/blocks")


@router.post("/{blocked_id}", status_code=201)
async def block_user(
    blocked_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    blocked = svc_block_user(session, user=user, blocked_id=blocked_id)
    return {
        "message": "User blocked successfully",
        "blockedUser": UserSummary.model_validate(blocked).dump(),
    }


@router.delete("/{blocked_id}")
async def unblock_user(
    blocked_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    svc_unblock_user(session, user=user, blocked_id=blocked_id)
    return {"message": "User unblocked successfully"}


@router.get("")
async def blocked_users(
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    return {"blocked": svc_list_blocked(session, user)}
