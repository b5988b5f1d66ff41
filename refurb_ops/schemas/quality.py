from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ChecklistDefinitionRead(BaseModel):
    index: int
    text: str
    notes_placeholder: Optional[str] = None


class ChecklistItemRead(BaseModel):
    id: UUID
    device_id: UUID
    item_index: int
    item_text: str
    status: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class ChecklistItemUpdate(BaseModel):
    status: str = Field(..., description="PASS, FAIL, NOT_APPLICABLE or PENDING")
    notes: Optional[str] = None


class QCRecordRead(BaseModel):
    id: UUID
    device_id: UUID
    qc_eng_id: Optional[UUID] = None
    checklist_results: Optional[str] = None
    remarks: Optional[str] = None
    final_grade: Optional[str] = None
    status: str
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class QCSubmit(BaseModel):
    status: str = Field(..., description="PASSED or FAILED_REWORK")
    final_grade: Optional[str] = Field(None, description="A or B; required when passed")
    remarks: Optional[str] = None
    checklist_results: Optional[str] = Field(None, description="Free-text or JSON checklist summary")


class QCStart(BaseModel):
    """Everything the QC bench needs for a device."""
    device_id: UUID
    barcode: str
    checklist: List[ChecklistItemRead]
    counts: Dict[str, int]
    inspection_notes: Optional[str] = None
