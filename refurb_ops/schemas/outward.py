from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .inward import DeviceRead


class OutwardCreate(BaseModel):
    type: Optional[str] = Field(None, description="SALES or RENTAL")
    customer: Optional[str] = None
    reference: Optional[str] = None
    device_ids: List[UUID] = Field(default_factory=list)
    shipping_details: Optional[str] = None
    packed_by_id: Optional[UUID] = None
    checked_by_id: Optional[UUID] = None


class OutwardUpdate(BaseModel):
    customer: Optional[str] = None
    reference: Optional[str] = None
    shipping_details: Optional[str] = None
    packed_by_id: Optional[UUID] = None
    checked_by_id: Optional[UUID] = None


class OutwardRead(BaseModel):
    id: UUID
    outward_id: str
    type: str
    customer: str
    reference: str
    date: datetime
    shipping_details: Optional[str] = None
    packed_by_id: Optional[UUID] = None
    checked_by_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class OutwardDetail(OutwardRead):
    devices: List[DeviceRead] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
