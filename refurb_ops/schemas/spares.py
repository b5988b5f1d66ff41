from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SparePartCreate(BaseModel):
    part_code: str = Field(..., description="Letters, digits, '-' and '_'")
    description: str
    category: Optional[str] = None
    compatible_models: Optional[str] = Field(None, description="Comma-separated model names")
    min_stock: int = 0
    max_stock: int = 100
    current_stock: int = 0
    bin_location: Optional[str] = Field(None, description="RACK-shelf-position, e.g. A-2-05")


class SparePartUpdate(BaseModel):
    description: Optional[str] = None
    category: Optional[str] = None
    compatible_models: Optional[str] = None
    min_stock: Optional[int] = None
    max_stock: Optional[int] = None
    bin_location: Optional[str] = None


class StockAdjustment(BaseModel):
    adjustment: int = Field(..., description="Positive to add stock, negative to remove")
    reason: str = Field(..., min_length=1)


class SparePartRead(BaseModel):
    id: UUID
    part_code: str
    description: str
    category: Optional[str] = None
    compatible_models: Optional[str] = None
    min_stock: int
    max_stock: int
    current_stock: int
    bin_location: Optional[str] = None
    stock_status: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
