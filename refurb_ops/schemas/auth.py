from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TokenPair(BaseModel):
    """Access and refresh tokens."""
    token_type: str = Field("bearer", description="Token type, typically 'bearer'")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class RefreshRequest(BaseModel):
    """Request to refresh an access token."""
    refresh_token: str = Field(..., description="Refresh token")


class UserRead(BaseModel):
    """User read model."""
    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="User email")
    name: str = Field(..., description="Display name")
    role: str = Field(..., description="Role code")
    active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Admin create user payload. Field rules are checked by the service."""
    email: str = Field(..., description="Email")
    name: str = Field(..., description="Display name")
    password: str = Field(..., description="Initial password")
    role: str = Field(..., description="Role code")
    active: bool = Field(default=True)


class UserUpdate(BaseModel):
    """Admin update user payload."""
    email: Optional[str] = Field(None)
    name: Optional[str] = Field(None)
    role: Optional[str] = Field(None)
    active: Optional[bool] = Field(None)
    password: Optional[str] = Field(None, description="New password")


class ProfileUpdate(BaseModel):
    """Self-service profile change."""
    name: Optional[str] = Field(None)
    current_password: Optional[str] = Field(None, description="Required when changing password")
    new_password: Optional[str] = Field(None)


class RoleInfo(BaseModel):
    """Role catalogue entry."""
    code: str = Field(..., description="Role code")
    display_name: str = Field(..., description="Human-readable role name")
    modules: List[str] = Field(default_factory=list, description="Modules the role can open; '*' means all")
