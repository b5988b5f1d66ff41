from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.auth import UserCreate, UserRead, UserUpdate
from refurb_ops.services.users import UserService
from refurb_ops.workflow.users import USER_ADMIN_ROLES

router = APIRouter(prefix="/admin/users", tags=["Users"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[UserRead],
    summary="List users",
    description="List all accounts that have not been deleted.",
    dependencies=[Depends(require_roles(*USER_ADMIN_ROLES))],
)
async def list_users(session: AsyncSession = Depends(get_async_session)) -> List[UserRead]:
    users = await UserService(session).list_users()
    return [UserRead.model_validate(u) for u in users]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    payload: UserCreate,
    actor: User = Depends(require_roles(*USER_ADMIN_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    user = await UserService(session).create_user(payload, actor)
    return UserRead.model_validate(user)


# PUBLIC_INTERFACE
@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get user",
    dependencies=[Depends(require_roles(*USER_ADMIN_ROLES))],
)
async def get_user(
    user_id: UUID = Path(..., description="User ID"),
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    return UserRead.model_validate(await UserService(session).get_user(user_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Update user",
    description="Change name, email, role, active flag or password. Admins cannot demote or deactivate themselves.",
)
async def update_user(
    payload: UserUpdate,
    user_id: UUID = Path(..., description="User ID"),
    actor: User = Depends(require_roles(*USER_ADMIN_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    user = await UserService(session).update_user(user_id, payload, actor)
    return UserRead.model_validate(user)


# PUBLIC_INTERFACE
@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
    description="Soft delete; the account keeps its history but can no longer sign in.",
)
async def delete_user(
    user_id: UUID = Path(..., description="User ID"),
    actor: User = Depends(require_roles(*USER_ADMIN_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await UserService(session).delete_user(user_id, actor)
