from __future__ import annotations

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import DomainError, NotFoundError, PermissionDeniedError
from refurb_ops.core.settings import get_app_settings
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.inventory import Device
from refurb_ops.db.models.repair import PaintPanel, RepairJob
from refurb_ops.db.models.security import User
from refurb_ops.repositories.repair import PaintPanelRepository, RepairJobRepository
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.schemas.repair import CompleteRepairRequest, RepairJobRead, RepairJobWithDevice
from refurb_ops.workflow.enums import ActivityAction, DeviceStatus, PaintStatus, RepairJobStatus, Role
from refurb_ops.workflow.identifiers import calculate_tat_due_date, is_repair_overdue
from refurb_ops.workflow.paint import PANEL_TYPES
from refurb_ops.workflow.transitions import determine_next_status_after_repair
from .activity import ActivityService
from .base import BaseService

logger = logging.getLogger(__name__)

SUPERVISOR_ROLES = (Role.ADMIN.value, Role.SUPERADMIN.value)


def append_notes(existing: Optional[str], new: Optional[str]) -> Optional[str]:
    if not new or not new.strip():
        return existing
    if not existing or not existing.strip():
        return new.strip()
    return f"{existing}\n\n{new.strip()}"


def is_supervisor(user: User) -> bool:
    return user.role in SUPERVISOR_ROLES


# PUBLIC_INTERFACE
def job_with_device(job: RepairJob) -> RepairJobWithDevice:
    overdue = job.status != RepairJobStatus.COMPLETED.value and is_repair_overdue(job.tat_due_date)
    return RepairJobWithDevice(
        **RepairJobRead.model_validate(job).model_dump(),
        device=DeviceRead.model_validate(job.device),
        is_overdue=overdue,
    )


def validate_panel_list(panels: Sequence[str]) -> List[str]:
    cleaned = [p.strip() for p in panels if p and p.strip()]
    if not cleaned:
        raise DomainError("Select at least one panel")
    for panel in cleaned:
        if panel not in PANEL_TYPES:
            raise DomainError(f"Invalid panel type: {panel}")
    return cleaned


def start_job_clock(job: RepairJob, device: Device) -> None:
    """Put a job and its device under repair and start the TAT clock."""
    now = utcnow()
    job.status = RepairJobStatus.UNDER_REPAIR.value
    job.repair_start_date = now
    job.tat_due_date = calculate_tat_due_date(now, get_app_settings().TAT_DAYS)
    device.status = DeviceStatus.UNDER_REPAIR.value


class RepairService(BaseService):
    """Classic repair bench: pick up a job, repair it, hand it on to paint or QC."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repair_jobs = RepairJobRepository(session)
        self.panels = PaintPanelRepository(session)
        self.activity = ActivityService(session)

    async def get_job(self, job_pk: UUID) -> RepairJob:
        job = await self.repair_jobs.get_job(job_pk)
        if job is None:
            raise NotFoundError("Repair job not found")
        return job

    # PUBLIC_INTERFACE
    async def my_jobs(self, actor: User) -> List[RepairJob]:
        """Jobs assigned to the engineer plus unassigned jobs ready for repair."""
        return await self.repair_jobs.list_engineer_queue(actor.id)

    # PUBLIC_INTERFACE
    async def list_jobs(self, *, status: Optional[str] = None, limit: int = 200, offset: int = 0) -> List[RepairJob]:
        try:
            statuses = [RepairJobStatus(status)] if status else None
        except ValueError:
            raise DomainError(f"Invalid job status: {status}")
        return await self.repair_jobs.list_jobs(statuses=statuses, limit=limit, offset=offset, oldest_first=False)

    # PUBLIC_INTERFACE
    async def start_repair(self, job_pk: UUID, actor: User) -> RepairJob:
        job = await self.get_job(job_pk)
        if job.status != RepairJobStatus.READY_FOR_REPAIR.value:
            raise DomainError(f"Job is not ready for repair. Current status: {job.status}")
        if job.repair_eng_id and job.repair_eng_id != actor.id:
            raise PermissionDeniedError("Job is assigned to another engineer")
        limit = get_app_settings().MAX_ACTIVE_REPAIR_JOBS
        if await self.repair_jobs.count_active_for_engineer(actor.id) >= limit:
            raise DomainError(f"Max {limit} active jobs allowed")

        job.repair_eng_id = actor.id
        start_job_clock(job, job.device)
        await self.session.commit()
        await self.activity.record(
            ActivityAction.STARTED_REPAIR,
            user_id=actor.id,
            details=f"Started repair {job.job_id} on {job.device.barcode}",
            metadata={"barcode": job.device.barcode, "job_id": job.job_id},
        )
        return job

    # PUBLIC_INTERFACE
    async def complete_repair(self, job_pk: UUID, payload: CompleteRepairRequest, actor: User) -> RepairJob:
        job = await self.get_job(job_pk)
        if job.status != RepairJobStatus.UNDER_REPAIR.value:
            raise DomainError(f"Job is not under repair. Current status: {job.status}")
        if job.repair_eng_id and job.repair_eng_id != actor.id and not is_supervisor(actor):
            raise PermissionDeniedError("Job is assigned to another engineer")

        device = job.device
        next_status = determine_next_status_after_repair(device.paint_required, device.paint_completed)
        job.notes = append_notes(job.notes, payload.notes)
        if payload.root_cause:
            job.root_cause = payload.root_cause.strip()
        job.repair_end_date = utcnow()
        job.status = RepairJobStatus(next_status.value).value
        device.repair_completed = True
        device.status = next_status.value
        await self.session.commit()

        logger.info("Repair %s complete, %s -> %s", job.job_id, device.barcode, next_status.value)
        await self.activity.record(
            ActivityAction.COMPLETED_REPAIR,
            user_id=actor.id,
            details=f"Completed repair {job.job_id} on {device.barcode}",
            metadata={"barcode": device.barcode, "job_id": job.job_id, "status": next_status.value},
        )
        return job

    # PUBLIC_INTERFACE
    async def send_to_paint(self, job_pk: UUID, panels: Sequence[str], actor: User) -> RepairJob:
        job = await self.get_job(job_pk)
        if job.status != RepairJobStatus.UNDER_REPAIR.value:
            raise DomainError(f"Job is not under repair. Current status: {job.status}")
        cleaned = validate_panel_list(panels)

        device = job.device
        await self.panels.add_all(
            PaintPanel(device_id=device.id, panel_type=p, status=PaintStatus.AWAITING_PAINT.value) for p in cleaned
        )
        device.paint_required = True
        device.paint_completed = False
        device.status = DeviceStatus.IN_PAINT_SHOP.value
        job.status = RepairJobStatus.IN_PAINT_SHOP.value
        await self.session.commit()
        await self.activity.record(
            ActivityAction.SENT_TO_PAINT,
            user_id=actor.id,
            details=f"Sent {device.barcode} to paint: {', '.join(cleaned)}",
            metadata={"barcode": device.barcode, "panels": cleaned},
        )
        return job
