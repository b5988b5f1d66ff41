from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .inward import DeviceRead


class RepairJobRead(BaseModel):
    id: UUID
    job_id: str
    device_id: UUID
    inspection_eng_id: Optional[UUID] = None
    repair_eng_id: Optional[UUID] = None
    l2_engineer_id: Optional[UUID] = None
    reported_issues: Optional[str] = None
    root_cause: Optional[str] = None
    spares_required: Optional[str] = None
    spares_issued: Optional[str] = None
    repair_start_date: Optional[datetime] = None
    repair_end_date: Optional[datetime] = None
    tat_due_date: Optional[datetime] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RepairJobWithDevice(RepairJobRead):
    device: DeviceRead
    is_overdue: bool = False


class CompleteRepairRequest(BaseModel):
    notes: Optional[str] = Field(None, description="Repair notes appended to the job")
    root_cause: Optional[str] = Field(None)


class SendToPaintRequest(BaseModel):
    panels: List[str] = Field(..., min_length=1, description="Panel types to paint")


class SparesRequest(BaseModel):
    spares_required: str = Field(..., min_length=1, description="Parts needed, free text")


class IssueSparesItem(BaseModel):
    part_id: UUID
    quantity: int = Field(..., ge=1)


class IssueSparesRequest(BaseModel):
    spares_issued: Optional[str] = Field(None, description="What was handed over, free text")
    parts: List[IssueSparesItem] = Field(default_factory=list, description="Stocked parts to decrement")


class SendToL3Request(BaseModel):
    issue_type: str = Field(..., description="MOTHERBOARD, DOMAIN_LOCK, BIOS_LOCK or POWER_ON_ISSUE")
    description: Optional[str] = None


class SendToDisplayRequest(BaseModel):
    reported_issues: Optional[str] = None


class SendToBatteryRequest(BaseModel):
    initial_capacity: Optional[str] = None
    target_capacity: Optional[str] = None


class CompleteL3Request(BaseModel):
    resolution: str = Field(..., min_length=1)
    notes: Optional[str] = None


class CompleteDisplayRequest(BaseModel):
    notes: Optional[str] = None


class CompleteBatteryRequest(BaseModel):
    final_capacity: str = Field(..., description="e.g. 85%")
    notes: Optional[str] = None


class ParallelJobRead(BaseModel):
    """Common shape for L3, display and battery jobs."""
    id: UUID
    device_id: UUID
    assigned_to_id: Optional[UUID] = None
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    issue_type: Optional[str] = None
    description: Optional[str] = None
    resolution: Optional[str] = None
    reported_issues: Optional[str] = None
    initial_capacity: Optional[str] = None
    target_capacity: Optional[str] = None
    final_capacity: Optional[str] = None
    completed_by_l2: Optional[bool] = None
    created_at: datetime
    device: DeviceRead

    class Config:
        from_attributes = True


class TechnicianQueue(BaseModel):
    mine: List[ParallelJobRead] = Field(default_factory=list)
    pending: List[ParallelJobRead] = Field(default_factory=list)
    others: List[ParallelJobRead] = Field(default_factory=list)


class PaintPanelRead(BaseModel):
    id: UUID
    device_id: UUID
    panel_type: str
    status: str
    technician_id: Optional[UUID] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PaintQueueEntry(BaseModel):
    device: DeviceRead
    panels: List[PaintPanelRead]
    progress: dict = Field(default_factory=dict)


class PanelStatusUpdate(BaseModel):
    status: str = Field(..., description="Target panel status (must be the next step)")


class BulkPanelStatusUpdate(BaseModel):
    panel_ids: List[UUID] = Field(..., min_length=1)
    status: str


class L2DeviceSummary(BaseModel):
    """A device on the L2 bench with the state of its parallel work."""
    device: DeviceRead
    repair_job: RepairJobRead
    display_job: Optional[ParallelJobRead] = None
    battery_job: Optional[ParallelJobRead] = None
    l3_job: Optional[ParallelJobRead] = None
    paint_panels: List[PaintPanelRead] = Field(default_factory=list)
    ready_for_qc: bool = False
    blockers: List[str] = Field(default_factory=list)


class ParallelJobCompletion(BaseModel):
    job: ParallelJobRead
    target_met: Optional[bool] = Field(None, description="Battery only: whether the final capacity meets the target")
