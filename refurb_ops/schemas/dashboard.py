from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ActivityRead(BaseModel):
    id: UUID
    action: str
    details: Optional[str] = None
    user_id: Optional[UUID] = None
    user_name: Optional[str] = None
    user_role: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime


class PipelineSummary(BaseModel):
    inward: int = 0
    inspection: int = 0
    spares: int = 0
    repair: int = 0
    paint: int = 0
    qc: int = 0
    ready: int = 0
    dispatched: int = 0


class DashboardStats(BaseModel):
    total_devices: int
    status_counts: Dict[str, int] = Field(default_factory=dict)
    pipeline: PipelineSummary
    overdue_repairs: int
    low_stock_parts: int
    recent_activity: List[ActivityRead] = Field(default_factory=list)
