from __future__ import annotations

from typing import Generic, List, Optional, Sequence, Type, TypeVar, Union
from uuid import UUID

from sqlalchemy import func, or_, select

from refurb_ops.db.models.repair import (
    BatteryBoostJob,
    DisplayRepairJob,
    L3RepairJob,
    PaintPanel,
    RepairJob,
)
from refurb_ops.workflow.enums import ParallelWorkStatus, RepairJobStatus
from .base import BaseRepository

ParallelJob = Union[L3RepairJob, DisplayRepairJob, BatteryBoostJob]
J = TypeVar("J", L3RepairJob, DisplayRepairJob, BatteryBoostJob)


class RepairJobRepository(BaseRepository):
    """Repository for repair jobs."""

    async def get_job(self, job_pk: UUID) -> Optional[RepairJob]:
        return await self.get(RepairJob, job_pk)

    async def latest_for_device(self, device_id: UUID) -> Optional[RepairJob]:
        stmt = (
            select(RepairJob)
            .where(RepairJob.device_id == device_id)
            .order_by(RepairJob.created_at.desc())
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)

    async def list_for_device(self, device_id: UUID) -> List[RepairJob]:
        stmt = select(RepairJob).where(RepairJob.device_id == device_id).order_by(RepairJob.created_at)
        result = await self.scalars(stmt)
        return list(result)

    async def list_jobs(
        self,
        *,
        statuses: Optional[Sequence[str]] = None,
        repair_eng_id: Optional[UUID] = None,
        l2_engineer_id: Optional[UUID] = None,
        unassigned_l2: bool = False,
        limit: int = 500,
        offset: int = 0,
        oldest_first: bool = True,
    ) -> List[RepairJob]:
        stmt = select(RepairJob)
        if statuses:
            stmt = stmt.where(RepairJob.status.in_([RepairJobStatus(s).value for s in statuses]))
        if repair_eng_id:
            stmt = stmt.where(RepairJob.repair_eng_id == repair_eng_id)
        if l2_engineer_id:
            stmt = stmt.where(RepairJob.l2_engineer_id == l2_engineer_id)
        if unassigned_l2:
            stmt = stmt.where(RepairJob.l2_engineer_id.is_(None))
        ordering = RepairJob.created_at.asc() if oldest_first else RepairJob.created_at.desc()
        stmt = stmt.order_by(ordering).offset(offset).limit(limit)
        result = await self.scalars(stmt)
        return list(result)

    async def list_engineer_queue(self, engineer_id: UUID) -> List[RepairJob]:
        """Jobs assigned to the engineer plus unassigned jobs ready to pick up."""
        stmt = (
            select(RepairJob)
            .where(
                or_(
                    RepairJob.repair_eng_id == engineer_id,
                    (RepairJob.repair_eng_id.is_(None))
                    & (RepairJob.status == RepairJobStatus.READY_FOR_REPAIR.value),
                )
            )
            .where(RepairJob.status != RepairJobStatus.COMPLETED.value)
            .order_by(RepairJob.created_at)
        )
        result = await self.scalars(stmt)
        return list(result)

    async def count_active_for_engineer(self, engineer_id: UUID) -> int:
        stmt = select(RepairJob.id).where(
            RepairJob.repair_eng_id == engineer_id,
            RepairJob.status == RepairJobStatus.UNDER_REPAIR.value,
        )
        return await self.count(stmt)

    async def count_for_year(self, year: int) -> int:
        stmt = select(RepairJob.id).where(RepairJob.job_id.like(f"JOB-{year}-%"))
        return await self.count(stmt)

    async def list_with_tat(self, statuses: Sequence[str]) -> List[RepairJob]:
        stmt = (
            select(RepairJob)
            .where(RepairJob.status.in_([RepairJobStatus(s).value for s in statuses]))
            .where(RepairJob.tat_due_date.is_not(None))
            .order_by(RepairJob.tat_due_date)
        )
        result = await self.scalars(stmt)
        return list(result)


class PaintPanelRepository(BaseRepository):
    """Repository for paint panels."""

    async def get_panel(self, panel_id: UUID) -> Optional[PaintPanel]:
        return await self.get(PaintPanel, panel_id)

    async def list_for_device(self, device_id: UUID) -> List[PaintPanel]:
        stmt = select(PaintPanel).where(PaintPanel.device_id == device_id).order_by(PaintPanel.created_at)
        result = await self.scalars(stmt)
        return list(result)

    async def list_by_ids(self, panel_ids: Sequence[UUID]) -> List[PaintPanel]:
        if not panel_ids:
            return []
        result = await self.scalars(select(PaintPanel).where(PaintPanel.id.in_(list(panel_ids))))
        return list(result)

    async def list_device_ids_with_status(self, statuses: Sequence[str]) -> List[UUID]:
        stmt = select(PaintPanel.device_id).where(PaintPanel.status.in_(list(statuses))).distinct()
        result = await self.scalars(stmt)
        return list(result)


class ParallelJobRepository(BaseRepository, Generic[J]):
    """Repository shared by the L3, display and battery job tables."""

    def __init__(self, session, model: Type[J]) -> None:
        super().__init__(session)
        self.model = model

    async def get_job(self, job_pk: UUID) -> Optional[J]:
        return await self.get(self.model, job_pk)

    async def list_open(self) -> List[J]:
        stmt = (
            select(self.model)
            .where(self.model.status.in_([ParallelWorkStatus.PENDING.value, ParallelWorkStatus.IN_PROGRESS.value]))
            .order_by(self.model.created_at)
        )
        result = await self.scalars(stmt)
        return list(result)

    async def list_for_device(self, device_id: UUID) -> List[J]:
        stmt = select(self.model).where(self.model.device_id == device_id).order_by(self.model.created_at)
        result = await self.scalars(stmt)
        return list(result)

    async def latest_for_device(self, device_id: UUID) -> Optional[J]:
        stmt = (
            select(self.model)
            .where(self.model.device_id == device_id)
            .order_by(self.model.created_at.desc())
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)

    async def count_by_status(self) -> dict[str, int]:
        stmt = select(self.model.status, func.count(self.model.id)).group_by(self.model.status)
        result = await self.execute(stmt)
        return {status: int(count) for status, count in result.all()}
