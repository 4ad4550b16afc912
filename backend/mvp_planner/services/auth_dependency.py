"""FastAPI dependencies that resolve the caller into an explicit ``AuthContext``.

Routes receive the context as a parameter instead of poking at cookies
themselves. The token is read from ``Authorization: Bearer`` first, then from
the ``access_token`` cookie set by login. Revoked tokens (logout) are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..constants import ADMIN_USERNAME
from ..database import get_db
from ..models.user import RevokedToken, User
from .auth_utils import ACCESS_TOKEN_COOKIE, decode_access_token

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user: User
    token_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.user.username == ADMIN_USERNAME


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve(request: Request, creds: Optional[HTTPAuthorizationCredentials], db: Session) -> AuthContext:
    token = creds.credentials if creds is not None else request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise _unauthorized("Authentication required")

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    jti = payload.get("jti")
    if jti and db.query(RevokedToken).filter(RevokedToken.jti == jti).first() is not None:
        raise _unauthorized("Token has been revoked")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _unauthorized("User not found")

    return AuthContext(user=user, token_id=jti)


def get_auth_context(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Return the authenticated caller. Raises 401 if missing, invalid, or revoked."""
    return _resolve(request, creds, db)


def require_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not ctx.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin privileges required.",
        )
    return ctx
