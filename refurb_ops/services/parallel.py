from __future__ import annotations

import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import DomainError, NotFoundError
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.security import User
from refurb_ops.repositories.repair import ParallelJob, ParallelJobRepository
from refurb_ops.workflow.enums import ActivityAction, ParallelWorkStatus
from refurb_ops.workflow.parallel import (
    TechnicianJobs,
    can_complete_parallel_work,
    can_start_parallel_work,
    does_battery_meet_target,
    filter_jobs_by_technician,
    is_valid_battery_capacity,
)
from .activity import ActivityService
from .base import BaseService
from .l2 import PARALLEL_KINDS

logger = logging.getLogger(__name__)


class SpecialistQueueService(BaseService):
    """
    Queue for one kind of specialist work (display, battery or L3).

    Completing a job here only closes the job; the L2 engineer collects the
    device afterwards, which marks the work done on the device.
    """

    def __init__(self, session: AsyncSession, kind: str) -> None:
        super().__init__(session)
        if kind not in PARALLEL_KINDS:
            raise ValueError(f"Unknown specialist queue: {kind}")
        self.kind = kind
        self.model, self.label, _ = PARALLEL_KINDS[kind]
        self.jobs = ParallelJobRepository(session, self.model)
        self.activity = ActivityService(session)

    async def get_job(self, job_pk: UUID) -> ParallelJob:
        job = await self.jobs.get_job(job_pk)
        if job is None:
            raise NotFoundError(f"{self.label} job not found")
        return job

    # PUBLIC_INTERFACE
    async def queue(self, actor: User) -> TechnicianJobs:
        return filter_jobs_by_technician(await self.jobs.list_open(), actor.id)

    # PUBLIC_INTERFACE
    async def start(self, job_pk: UUID, actor: User) -> ParallelJob:
        job = await self.get_job(job_pk)
        can_start_parallel_work(job.status).raise_if_invalid()
        job.assigned_to_id = actor.id
        job.status = ParallelWorkStatus.IN_PROGRESS.value
        job.started_at = utcnow()
        await self.session.commit()
        await self.activity.record(
            ActivityAction.STARTED_PARALLEL_WORK,
            user_id=actor.id,
            details=f"{actor.name} started {self.label.lower()} on {job.device.barcode}",
            metadata={"barcode": job.device.barcode, "kind": self.kind},
        )
        return job

    # PUBLIC_INTERFACE
    async def complete(
        self,
        job_pk: UUID,
        actor: User,
        *,
        notes: Optional[str] = None,
        resolution: Optional[str] = None,
        final_capacity: Optional[str] = None,
    ) -> Tuple[ParallelJob, Optional[bool]]:
        """
        Close an in-progress job. Returns the job and, for battery work, whether
        the final capacity meets the target (None for other kinds).
        """
        job = await self.get_job(job_pk)
        can_complete_parallel_work(job.status, job.assigned_to_id, actor.id).raise_if_invalid()

        target_met: Optional[bool] = None
        if self.kind == "l3":
            if not resolution or not resolution.strip():
                raise DomainError("Resolution is required")
            job.resolution = resolution.strip()
        elif self.kind == "battery":
            if not is_valid_battery_capacity(final_capacity):
                raise DomainError(f"Invalid battery capacity: {final_capacity}")
            job.final_capacity = final_capacity
            target_met = does_battery_meet_target(final_capacity, job.target_capacity)

        if notes:
            job.notes = notes
        job.status = ParallelWorkStatus.COMPLETED.value
        job.completed_at = utcnow()
        await self.session.commit()
        logger.info("%s job %s completed by %s", self.label, job.id, actor.email)
        await self.activity.record(
            ActivityAction.COMPLETED_PARALLEL_WORK,
            user_id=actor.id,
            details=f"{self.label} completed on {job.device.barcode}",
            metadata={"barcode": job.device.barcode, "kind": self.kind, "target_met": target_met},
        )
        return job, target_met
