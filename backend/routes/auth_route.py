from fastapi import APIRouter, Depends
from sqlmodel import Session

from models.auth import User
from models.common import get_session
from models.schemas import Credentials, ProfileUpdate, UserProfile, UserSummary
from routes.deps import current_user
from services.security import create_access_token
from services.users import login as svc_login
from services.users import signup as svc_signup
from services.users import update_profile as svc_update_profile
from utils import get_version

router = APIRouter()


@router.get("/")
async def index():
    return {"version": get_version(), "status": "ok"}


@router.post("/users/signup", status_code=201)
async def signup(payload: Credentials, session: Session = Depends(get_session)):
    user = svc_signup(session, payload.username, payload.password)
    return {
        "message": "User created successfully",
        "token": create_access_token(user),
        "user": UserSummary.model_validate(user).dump(),
    }


@router.post("/users/login")
async def login(payload: Credentials, session: Session = Depends(get_session)):
    user = svc_login(session, payload.username, payload.password)
    return {
        "message": "Login successful",
        "token": create_access_token(user),
        "user": UserSummary.model_validate(user).dump(),
    }


@router.get("/users/profile")
async def get_profile(user: User = Depends(current_user)):
    return UserProfile.model_validate(user).dump()


@router.put("/users/profile")
async def update_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    user: User = Depends(current_user),
):
    user = svc_update_profile(
        session, user, username=payload.username, avatar_url=payload.avatar_url
    )
    return {
        "message": "Profile updated successfully",
        "user": UserProfile.model_validate(user).dump(),
    }
