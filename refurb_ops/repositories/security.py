from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select

from refurb_ops.db.models.security import User
from refurb_ops.workflow.enums import Role
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for user accounts."""

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        return await self.scalar_one_or_none(stmt)

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    async def list_users(self, *, include_deleted: bool = False, limit: int = 100, offset: int = 0) -> List[User]:
        stmt = select(User)
        if not include_deleted:
            stmt = stmt.where(User.deleted_at.is_(None))
        stmt = stmt.order_by(User.created_at.desc()).offset(offset).limit(limit)
        result = await self.scalars(stmt)
        return list(result)

    async def list_active_by_roles(self, roles: Iterable[str]) -> List[User]:
        """Active, non-deleted users holding any of the given roles."""
        stmt = (
            select(User)
            .where(User.role.in_([Role(r).value for r in roles]))
            .where(User.active.is_(True))
            .where(User.deleted_at.is_(None))
            .order_by(User.name)
        )
        result = await self.scalars(stmt)
        return list(result)

    async def get_users_by_ids(self, user_ids: Iterable[UUID]) -> List[User]:
        ids = [uid for uid in user_ids if uid is not None]
        if not ids:
            return []
        result = await self.scalars(select(User).where(User.id.in_(ids)))
        return list(result)

    async def create_user(
        self,
        *,
        email: str,
        name: str,
        hashed_password: str,
        role: str,
        active: bool = True,
    ) -> User:
        user = User(email=email, name=name, hashed_password=hashed_password, role=role, active=active)
        await self.add(user)
        await self.flush()
        return user
