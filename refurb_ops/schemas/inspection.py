from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .inward import DeviceRead
from .quality import ChecklistDefinitionRead
from .repair import RepairJobRead


class InspectionStart(BaseModel):
    device: DeviceRead
    checklist: List[ChecklistDefinitionRead]


class ChecklistResultInput(BaseModel):
    item_index: int = Field(..., ge=1)
    status: str = Field(..., description="PASS, FAIL or NOT_APPLICABLE")
    notes: Optional[str] = None


class InspectionSubmit(BaseModel):
    """
    Inspection outcome.

    Either a full checklist or the older free-text reported/cosmetic issues;
    when both are given the checklist wins.
    """
    checklist: List[ChecklistResultInput] = Field(default_factory=list)
    reported_issues: Optional[str] = None
    cosmetic_issues: Optional[str] = None
    overall_notes: Optional[str] = None
    spares_required: Optional[str] = None
    paint_panels: List[str] = Field(default_factory=list)
    display_repair_required: bool = False
    battery_boost_required: bool = False
    l3_repair_required: bool = False


class InspectionResult(BaseModel):
    device: DeviceRead
    repair_job: Optional[RepairJobRead] = None
