from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import get_current_active_user
from refurb_ops.core.security import create_access_token, create_refresh_token, decode_token
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.repositories.security import UserRepository
from refurb_ops.schemas.auth import ProfileUpdate, RefreshRequest, RoleInfo, TokenPair, UserRead
from refurb_ops.schemas.common import MessageResponse
from refurb_ops.services.users import UserService
from refurb_ops.workflow.users import get_module_access, get_role_display_name

router = APIRouter(prefix="/auth", tags=["Auth"])


def _tokens_for(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(subject=str(user.id), role=user.role),
        refresh_token=create_refresh_token(subject=str(user.id)),
    )


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=TokenPair,
    summary="Login",
    description="Authenticate using OAuth2 password form (username is the email) and receive access/refresh tokens.",
)
async def login_for_tokens(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_async_session),
) -> TokenPair:
    """Authenticate user and issue tokens."""
    svc = UserService(session)
    user = await svc.authenticate(form_data.username, form_data.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    await svc.record_login(user)
    return _tokens_for(user)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh access token",
    description="Issue a new token pair from a valid refresh token.",
)
async def refresh_token(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_async_session),
) -> TokenPair:
    """Validate refresh token and issue a new access token pair."""
    try:
        claims: Dict[str, Any] = decode_token(payload.refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    if claims.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid token type")

    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    user = await UserRepository(session).get_user_by_id(user_id)
    if not user or user.is_deleted or not user.active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _tokens_for(user)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Stateless logout. Clients should discard tokens. No server state maintained.",
)
async def logout() -> MessageResponse:
    """Acknowledge logout in stateless JWT systems."""
    return MessageResponse(message="Logged out")


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=UserRead,
    summary="Read current user",
)
async def read_current_user(user: User = Depends(get_current_active_user)) -> UserRead:
    """Return current user profile."""
    return UserRead.model_validate(user)


# PUBLIC_INTERFACE
@router.get(
    "/me/access",
    response_model=RoleInfo,
    summary="Modules for current user",
    description="Role display name and the modules the current user may open.",
)
async def read_current_access(user: User = Depends(get_current_active_user)) -> RoleInfo:
    return RoleInfo(
        code=user.role,
        display_name=get_role_display_name(user.role),
        modules=get_module_access(user.role),
    )


# PUBLIC_INTERFACE
@router.patch(
    "/me",
    response_model=UserRead,
    summary="Update own profile",
    description="Change display name and/or password. Changing the password requires the current one.",
)
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    updated = await UserService(session).update_profile(user, payload)
    return UserRead.model_validate(updated)
