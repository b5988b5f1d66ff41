from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .inward import DeviceAttributes, DeviceRead
from .quality import QCRecordRead
from .repair import PaintPanelRead, RepairJobRead


class DeviceUpdate(DeviceAttributes):
    """Edit of a device that has not entered the pipeline yet."""
    brand: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    condition_notes: Optional[str] = None


class DeviceDetail(DeviceRead):
    """Device with its latest repair job, QC history and paint panels."""
    latest_repair_job: Optional[RepairJobRead] = None
    qc_records: List[QCRecordRead] = Field(default_factory=list)
    paint_panels: List[PaintPanelRead] = Field(default_factory=list)


class InventoryPage(BaseModel):
    devices: List[DeviceRead]
    total: int
    page: int
    limit: int
    total_pages: int


class StockMoveRequest(BaseModel):
    to_location: str = Field(..., description="Destination location label")
    rack_id: Optional[UUID] = Field(None, description="Destination rack, if any")
    reference: Optional[str] = Field(None)


class StockMovementRead(BaseModel):
    id: UUID
    device_id: UUID
    type: str
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    reference: Optional[str] = None
    user_id: Optional[UUID] = None
    date: datetime

    class Config:
        from_attributes = True


class HistoryEvent(BaseModel):
    """One entry on a device timeline."""
    timestamp: datetime
    kind: str = Field(..., description="movement, repair_job, parallel_job, paint_panel, qc, activity")
    title: str
    details: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
