from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ExpectedItemInput(BaseModel):
    category: str
    brand: str
    model: str
    quantity: int = Field(..., ge=1)


class PurchaseOrderCreate(BaseModel):
    po_number: str = Field(..., min_length=1)
    supplier_code: Optional[str] = None
    supplier_name: str = Field(..., min_length=1)
    expected_items: List[ExpectedItemInput] = Field(default_factory=list)
    pdf_url: Optional[str] = None


class PurchaseOrderRead(BaseModel):
    id: UUID
    po_number: str
    supplier_code: Optional[str] = None
    supplier_name: str
    expected_devices: int
    expected_items: list
    pdf_url: Optional[str] = None
    is_addressed: bool
    created_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderDetail(PurchaseOrderRead):
    available_rack_capacity: int = 0
    batch_ids: List[UUID] = Field(default_factory=list)


class RackCreate(BaseModel):
    rack_code: str = Field(..., min_length=1)
    stage: str
    capacity: int = Field(20, ge=1)
    location: Optional[str] = None


class RackUpdate(BaseModel):
    stage: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    location: Optional[str] = None
    is_active: Optional[bool] = None


class RackRead(BaseModel):
    id: UUID
    rack_code: str
    stage: str
    capacity: int
    location: Optional[str] = None
    is_active: bool
    current_count: int = 0

    class Config:
        from_attributes = True


class RackStageStats(BaseModel):
    stage: str
    total: int = Field(..., description="Number of racks")
    used: int = Field(..., description="Devices parked")
    capacity: int = Field(..., description="Total slots")
