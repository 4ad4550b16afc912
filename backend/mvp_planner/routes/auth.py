"""Authentication routes: register, login, logout, current user, user list."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..constants import ADMIN_USERNAME
from ..database import get_db
from ..models.user import RevokedToken, User
from ..schemas.auth_schema import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserPublic,
)
from ..schemas.common import Envelope
from ..services.auth_dependency import AuthContext, get_auth_context, require_admin
from ..services.auth_utils import (
    ACCESS_TOKEN_COOKIE,
    create_access_token,
    hash_password,
    token_max_age_seconds,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Authentication"])


# ===================================================================== #
#  Utility                                                                #
# ===================================================================== #

def _user_public(user: User) -> UserPublic:
    return UserPublic(id=user.id, username=user.username, is_admin=user.username == ADMIN_USERNAME)


def _issue_session(response: Response, user: User) -> AuthResponse:
    """Create a token, set it as an HTTP-only cookie, and build the body."""
    token = create_access_token(str(user.id), user.username)
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=token,
        max_age=token_max_age_seconds(),
        httponly=True,
        samesite="lax",
    )
    return AuthResponse(data=_user_public(user), access_token=token)


# ===================================================================== #
#  Routes                                                                 #
# ===================================================================== #

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new account and log in",
)
def register(payload: RegisterRequest, response: Response, db: Session = Depends(get_db)) -> AuthResponse:
    existing = db.query(User).filter(User.username == payload.username).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists",
        )

    user = User(
        id=uuid4(),
        username=payload.username,
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    print(f"✅ [Auth] User registered: {user.username}")
    return _issue_session(response, user)


@router.post("/login", response_model=AuthResponse, summary="Log in with username and password")
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)) -> AuthResponse:
    user = db.query(User).filter(User.username == payload.username).first()
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    print(f"✅ [Auth] User logged in: {user.username}")
    return _issue_session(response, user)


@router.post("/logout", response_model=MessageResponse, summary="Revoke the current token")
def logout(
    response: Response,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> MessageResponse:
    if ctx.token_id:
        db.merge(RevokedToken(jti=ctx.token_id, revoked_at=datetime.utcnow()))
        db.commit()
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    print(f"👋 [Auth] User logged out: {ctx.user.username}")
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=Envelope[UserPublic], summary="Current user")
def current_user(ctx: AuthContext = Depends(get_auth_context)) -> Envelope[UserPublic]:
    return Envelope[UserPublic](data=_user_public(ctx.user))


@router.get("/users", response_model=Envelope[List[UserPublic]], summary="All users (admin only)")
def list_users(
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Envelope[List[UserPublic]]:
    users = db.query(User).order_by(User.created_at).all()
    return Envelope[List[UserPublic]](data=[_user_public(u) for u in users])
