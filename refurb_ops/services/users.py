from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import ConflictError, DomainError, NotFoundError
from refurb_ops.core.security import get_password_hash, verify_password
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.security import User
from refurb_ops.repositories.security import UserRepository
from refurb_ops.schemas.auth import ProfileUpdate, UserCreate, UserUpdate
from refurb_ops.workflow.enums import ActivityAction, Role
from refurb_ops.workflow.users import (
    is_valid_role,
    sanitize_email,
    validate_email,
    validate_name,
    validate_new_user,
    validate_password,
    validate_self_action,
)
from .activity import ActivityService
from .base import BaseService

logger = logging.getLogger(__name__)


class UserService(BaseService):
    """Authentication and user administration."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = UserRepository(session)
        self.activity = ActivityService(session)

    # PUBLIC_INTERFACE
    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials; deleted or inactive users never authenticate."""
        user = await self.repo.get_user_by_email(sanitize_email(email))
        if user is None or user.is_deleted or not user.active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    # PUBLIC_INTERFACE
    async def record_login(self, user: User) -> None:
        await self.activity.record(
            ActivityAction.LOGIN, user_id=user.id, details=f"{user.name} logged in"
        )

    async def _get(self, user_id: UUID) -> User:
        user = await self.repo.get_user_by_id(user_id)
        if user is None or user.is_deleted:
            raise NotFoundError("User not found")
        return user

    # PUBLIC_INTERFACE
    async def list_users(self) -> List[User]:
        return await self.repo.list_users(limit=1000)

    # PUBLIC_INTERFACE
    async def get_user(self, user_id: UUID) -> User:
        return await self._get(user_id)

    # PUBLIC_INTERFACE
    async def create_user(self, payload: UserCreate, actor: User) -> User:
        validate_new_user(payload.email, payload.name, payload.password, payload.role).raise_if_invalid()
        email = sanitize_email(payload.email)
        if await self.repo.get_user_by_email(email) is not None:
            raise ConflictError("A user with this email already exists")
        user = await self.repo.create_user(
            email=email,
            name=payload.name.strip(),
            hashed_password=get_password_hash(payload.password),
            role=Role(payload.role).value,
            active=payload.active,
        )
        await self.repo.commit()
        logger.info("User %s created with role %s", email, user.role)
        await self.activity.record(
            ActivityAction.CREATED_USER,
            user_id=actor.id,
            details=f"Created user {email}",
            metadata={"user_id": str(user.id), "role": user.role},
        )
        return user

    # PUBLIC_INTERFACE
    async def update_user(self, user_id: UUID, payload: UserUpdate, actor: User) -> User:
        user = await self._get(user_id)
        changing_role = payload.role is not None and payload.role != user.role
        deactivating = payload.active is False and user.active
        validate_self_action(
            actor.id, user.id, deactivating=deactivating, changing_role=changing_role
        ).raise_if_invalid()

        if payload.name is not None:
            if not validate_name(payload.name):
                raise DomainError("Name must be at least 2 characters")
            user.name = payload.name.strip()
        if payload.email is not None:
            if not validate_email(payload.email):
                raise DomainError("A valid email address is required")
            email = sanitize_email(payload.email)
            existing = await self.repo.get_user_by_email(email)
            if existing is not None and existing.id != user.id:
                raise ConflictError("A user with this email already exists")
            user.email = email
        if payload.role is not None:
            if not is_valid_role(payload.role):
                raise DomainError("Invalid role")
            user.role = Role(payload.role).value
        if payload.active is not None:
            user.active = payload.active
        if payload.password:
            validate_password(payload.password).raise_if_invalid()
            user.hashed_password = get_password_hash(payload.password)

        await self.repo.commit()
        await self.activity.record(
            ActivityAction.UPDATED_USER,
            user_id=actor.id,
            details=f"Updated user {user.email}",
            metadata={"user_id": str(user.id)},
        )
        return user

    # PUBLIC_INTERFACE
    async def delete_user(self, user_id: UUID, actor: User) -> None:
        """Soft delete: the row stays for history, the account can no longer log in."""
        user = await self._get(user_id)
        validate_self_action(actor.id, user.id, deleting=True).raise_if_invalid()
        user.deleted_at = utcnow()
        user.active = False
        await self.repo.commit()
        await self.activity.record(
            ActivityAction.DELETED_USER,
            user_id=actor.id,
            details=f"Deleted user {user.email}",
            metadata={"user_id": str(user.id)},
        )

    # PUBLIC_INTERFACE
    async def update_profile(self, user: User, payload: ProfileUpdate) -> User:
        if payload.name is not None:
            if not validate_name(payload.name):
                raise DomainError("Name must be at least 2 characters")
            user.name = payload.name.strip()
        if payload.new_password:
            if not payload.current_password or not verify_password(payload.current_password, user.hashed_password):
                raise DomainError("Current password is incorrect")
            validate_password(payload.new_password).raise_if_invalid()
            user.hashed_password = get_password_hash(payload.new_password)
        await self.repo.commit()
        return user
