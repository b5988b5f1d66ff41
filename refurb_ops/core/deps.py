from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.logging import user_id_var
from refurb_ops.core.security import decode_token
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.repositories.security import UserRepository
from refurb_ops.workflow.enums import Role

logger = logging.getLogger(__name__)

# OAuth2 bearer (used by docs); login endpoint path referenced here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


# PUBLIC_INTERFACE
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Resolve and return the current user from the Authorization bearer token.

    Only access tokens are accepted. Deleted users are treated as unknown.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

    user_id = payload.get("sub")
    try:
        uid = UUID(str(user_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await UserRepository(session).get_user_by_id(uid)
    if not user or user.is_deleted:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    user_id_var.set(str(user.id))
    return user


# PUBLIC_INTERFACE
async def get_current_active_user(user: User = Depends(get_current_user)) -> User:
    """Ensure user is active."""
    if not user.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return user


def has_role(user: User, roles: Iterable[str]) -> bool:
    """SUPERADMIN passes every role check."""
    allowed = {Role(r).value for r in roles}
    return user.role == Role.SUPERADMIN.value or user.role in allowed


# PUBLIC_INTERFACE
def require_roles(*required: str):
    """
    Create a dependency that requires the current user to hold one of the given roles.

    Returns the user so routes can use it directly.
    """

    async def _dep(user: User = Depends(get_current_active_user)) -> User:
        if not has_role(user, required):
            logger.info("User %s with role %s denied; requires %s", user.email, user.role, required)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user

    return _dep
