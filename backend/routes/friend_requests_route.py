from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session

from models.auth import User
from models.common import get_session
from models.schemas import FriendRequestPayload, UserSummary
from routes.deps import current_user
from services.friendship import (
    accept_friend_request as svc_accept_friend_request,
)
from services.friendship import (
    decline_friend_request as svc_decline_friend_request,
)
from services.friendship import (
    list_pending_requests as svc_list_pending_requests,
)
from services.friendship import (
    send_friend_request as svc_send_friend_request,
)

router = APIRouter(prefix="/friend-requests")


@router.post("")
async def send_friend_request(
    payload: FriendRequestPayload,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    outcome = svc_send_friend_request(
        session, sender=user, friend_code=payload.friend_code
    )
    receiver = UserSummary.model_validate(outcome.receiver).dump()
    if outcome.accepted:
        # the receiver had already asked us: that's a friendship now
        return {
            "message": "Friend request accepted automatically",
            "friendship": {"userId": user.id, "friend": receiver},
        }
    return JSONResponse(
        status_code=201,
        content={
            "message": "Friend request sent successfully",
            "request": {
                "requestId": outcome.request.id,
                "receiver": receiver,
                "createdAt": outcome.request.created_at.isoformat(),
            },
        },
    )


@router.get("")
async def pending_requests(
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    return {"pending": svc_list_pending_requests(session, user)}


@router.post("/accept/{request_id}")
async def accept_request(
    request_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    friend = svc_accept_friend_request(session, user=user, request_id=request_id)
    return {
        "message": "Friend request accepted",
        "friendship": {
            "userId": user.id,
            "friend": UserSummary.model_validate(friend).dump(),
        },
    }


@router.post("/decline/{request_id}")
async def decline_request(
    request_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    svc_decline_friend_request(session, user=user, request_id=request_id)
    return {"message": "Friend request declined"}
