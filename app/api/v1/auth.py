"""JWT login and auth dependencies (get_current_user, require_manager)."""

from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import (
    PASSWORD_MAX_LEN,
    create_access_token,
    decode_access_token,
    verify_password,
)
from app.models.user import User
from app.schemas.auth import CurrentUser, LoginRequest, TokenResponse
from app.schemas.user import MANAGER_ROLES

router = APIRouter()
security = HTTPBearer(auto_error=False)

_INVALID_CREDENTIALS = "Invalid login or password."


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post("", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with slug or email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    if len(body.password) > PASSWORD_MAX_LEN:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid password length.",
        )

    login_value = body.login.strip()
    user = (
        db.query(User)
        .filter(or_(User.slug == login_value.lower(), User.email == login_value))
        .first()
    )
    if user is None or not verify_password(body.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_INVALID_CREDENTIALS,
        )
    token = create_access_token(sub=user.slug, role=user.role)
    return TokenResponse(access_token=token, token_type="bearer")


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: require valid Bearer JWT and return the current user. Raises 401 if missing or invalid."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")
    slug = payload.get("sub")
    if not slug or not isinstance(slug, str):
        raise _unauthorized("Invalid token payload")
    user = db.query(User).filter(User.slug == slug).first()
    if user is None:
        raise _unauthorized("User not found")
    return CurrentUser.model_validate(user)


def require_manager(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require the owner or an admin. Raises 403 otherwise."""
    if current_user.role not in MANAGER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner or admin access required",
        )
    return current_user
