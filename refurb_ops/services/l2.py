from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Type
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import ConflictError, DomainError, NotFoundError, PermissionDeniedError
from refurb_ops.core.settings import get_app_settings
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.inventory import Device
from refurb_ops.db.models.repair import (
    BatteryBoostJob,
    DisplayRepairJob,
    L3RepairJob,
    PaintPanel,
    RepairJob,
)
from refurb_ops.db.models.security import User
from refurb_ops.repositories.repair import (
    PaintPanelRepository,
    ParallelJob,
    ParallelJobRepository,
    RepairJobRepository,
)
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.schemas.repair import (
    CompleteBatteryRequest,
    L2DeviceSummary,
    PaintPanelRead,
    ParallelJobRead,
    RepairJobRead,
    SendToBatteryRequest,
    SendToDisplayRequest,
    SendToL3Request,
)
from refurb_ops.workflow.enums import (
    ActivityAction,
    DeviceStatus,
    L3IssueType,
    PaintStatus,
    ParallelWorkStatus,
    RepairJobStatus,
)
from refurb_ops.workflow.paint import has_active_panels
from refurb_ops.workflow.parallel import (
    CLAIMABLE_STATUSES,
    can_send_to_qc,
    does_battery_meet_target,
    is_device_claimable,
    is_valid_battery_capacity,
)
from .activity import ActivityService
from .base import BaseService
from .notifications import NotificationService
from .paint import PaintService
from .repair import is_supervisor, start_job_clock, validate_panel_list

logger = logging.getLogger(__name__)

L2_WORKING_STATUSES = (RepairJobStatus.READY_FOR_REPAIR.value, RepairJobStatus.UNDER_REPAIR.value)
OPEN_PARALLEL_STATUSES = (ParallelWorkStatus.PENDING.value, ParallelWorkStatus.IN_PROGRESS.value)

# kind -> (model, label, device flag prefix)
PARALLEL_KINDS = {
    "display": (DisplayRepairJob, "Display repair", "display_repair"),
    "battery": (BatteryBoostJob, "Battery boost", "battery_boost"),
    "l3": (L3RepairJob, "L3 repair", "l3_repair"),
}


def _open_job(jobs: Sequence[ParallelJob]) -> Optional[ParallelJob]:
    for job in reversed(jobs):
        if job.status in OPEN_PARALLEL_STATUSES:
            return job
    return None


def qc_blockers(device: Device) -> List[str]:
    return can_send_to_qc(
        display_repair_required=device.display_repair_required,
        display_repair_completed=device.display_repair_completed,
        battery_boost_required=device.battery_boost_required,
        battery_boost_completed=device.battery_boost_completed,
        l3_repair_required=device.l3_repair_required,
        l3_repair_completed=device.l3_repair_completed,
        paint_required=device.paint_required,
        paint_completed=device.paint_completed,
    ).errors


class L2Service(BaseService):
    """
    L2 bench: an engineer claims a device, fans out display, battery, L3 and
    paint work, collects it back and sends the device to QC.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repair_jobs = RepairJobRepository(session)
        self.panels = PaintPanelRepository(session)
        self.activity = ActivityService(session)
        self.notifications = NotificationService(session)

    def _parallel_repo(self, model: Type) -> ParallelJobRepository:
        return ParallelJobRepository(self.session, model)

    async def _owned_job(self, device_id: UUID, actor: User) -> Tuple[Device, RepairJob]:
        """Device and repair job, checking the actor is the job's L2 engineer."""
        device = await self.load_device(device_id)
        job = await self.repair_jobs.latest_for_device(device.id)
        if job is None:
            raise NotFoundError("No repair job found for this device")
        if job.l2_engineer_id != actor.id and not is_supervisor(actor):
            raise PermissionDeniedError("Only the assigned L2 engineer can do this")
        return device, job

    async def _working_job(self, device_id: UUID, actor: User) -> Tuple[Device, RepairJob]:
        device, job = await self._owned_job(device_id, actor)
        if job.status not in L2_WORKING_STATUSES:
            raise DomainError(f"Device is not under repair. Current status: {job.status}")
        return device, job

    # Queues

    # PUBLIC_INTERFACE
    async def ready_to_claim(self) -> List[RepairJob]:
        jobs = await self.repair_jobs.list_jobs(
            statuses=[RepairJobStatus(s.value) for s in CLAIMABLE_STATUSES], unassigned_l2=True
        )
        return [j for j in jobs if DeviceStatus(j.device.status) in CLAIMABLE_STATUSES]

    # PUBLIC_INTERFACE
    async def my_devices(self, actor: User) -> List[L2DeviceSummary]:
        statuses = [s for s in RepairJobStatus if s != RepairJobStatus.COMPLETED]
        jobs = await self.repair_jobs.list_jobs(statuses=statuses, l2_engineer_id=actor.id)
        return [await self.summary(job) for job in jobs]

    # PUBLIC_INTERFACE
    async def summary(self, job: RepairJob) -> L2DeviceSummary:
        device = job.device
        parallel = {}
        for kind, (model, _, _) in PARALLEL_KINDS.items():
            latest = await self._parallel_repo(model).latest_for_device(device.id)
            parallel[kind] = ParallelJobRead.model_validate(latest) if latest else None
        panels = await self.panels.list_for_device(device.id)
        blockers = qc_blockers(device)
        return L2DeviceSummary(
            device=DeviceRead.model_validate(device),
            repair_job=RepairJobRead.model_validate(job),
            display_job=parallel["display"],
            battery_job=parallel["battery"],
            l3_job=parallel["l3"],
            paint_panels=[PaintPanelRead.model_validate(p) for p in panels],
            ready_for_qc=not blockers and job.status in L2_WORKING_STATUSES,
            blockers=blockers,
        )

    # PUBLIC_INTERFACE
    async def device_summary(self, device_id: UUID, actor: User) -> L2DeviceSummary:
        _, job = await self._owned_job(device_id, actor)
        return await self.summary(job)

    # PUBLIC_INTERFACE
    async def claim(self, device_id: UUID, actor: User) -> RepairJob:
        device = await self.load_device(device_id)
        job = await self.repair_jobs.latest_for_device(device.id)
        is_device_claimable(
            device.status, job is not None, job is not None and job.l2_engineer_id is not None
        ).raise_if_invalid()

        job.l2_engineer_id = actor.id
        if job.repair_eng_id is None:
            job.repair_eng_id = actor.id
        if device.status == DeviceStatus.READY_FOR_REPAIR.value:
            start_job_clock(job, device)
        await self.session.commit()
        await self.activity.record(
            ActivityAction.STARTED_REPAIR,
            user_id=actor.id,
            details=f"{actor.name} claimed {device.barcode}",
            metadata={"barcode": device.barcode, "job_id": job.job_id},
        )
        return job

    # Fan out

    async def _start_parallel(self, kind: str, device_id: UUID, actor: User, **fields) -> ParallelJob:
        model, label, flag = PARALLEL_KINDS[kind]
        device, _ = await self._working_job(device_id, actor)
        repo = self._parallel_repo(model)
        if _open_job(await repo.list_for_device(device.id)) is not None:
            raise ConflictError(f"{label} already in progress for this device")

        job = model(device_id=device.id, status=ParallelWorkStatus.PENDING.value, **fields)
        await repo.add(job)
        setattr(device, f"{flag}_required", True)
        setattr(device, f"{flag}_completed", False)
        await self.session.commit()
        await self.session.refresh(job, attribute_names=["device"])
        await self.activity.record(
            ActivityAction.STARTED_PARALLEL_WORK,
            user_id=actor.id,
            details=f"Sent {device.barcode} to {label.lower()}",
            metadata={"barcode": device.barcode, "kind": kind},
        )
        return job

    # PUBLIC_INTERFACE
    async def send_to_display(self, device_id: UUID, payload: SendToDisplayRequest, actor: User) -> ParallelJob:
        return await self._start_parallel("display", device_id, actor, reported_issues=payload.reported_issues)

    # PUBLIC_INTERFACE
    async def send_to_battery(self, device_id: UUID, payload: SendToBatteryRequest, actor: User) -> ParallelJob:
        target = payload.target_capacity or get_app_settings().DEFAULT_BATTERY_TARGET
        for value in (payload.initial_capacity, target):
            if value is not None and not is_valid_battery_capacity(value):
                raise DomainError(f"Invalid battery capacity: {value}")
        return await self._start_parallel(
            "battery", device_id, actor, initial_capacity=payload.initial_capacity, target_capacity=target
        )

    # PUBLIC_INTERFACE
    async def send_to_l3(self, device_id: UUID, payload: SendToL3Request, actor: User) -> ParallelJob:
        try:
            issue_type = L3IssueType(payload.issue_type)
        except ValueError:
            raise DomainError(f"Invalid L3 issue type: {payload.issue_type}")
        return await self._start_parallel(
            "l3", device_id, actor, issue_type=issue_type.value, description=payload.description
        )

    # PUBLIC_INTERFACE
    async def send_to_paint(self, device_id: UUID, panels: Sequence[str], actor: User) -> List[PaintPanel]:
        """Paint runs alongside the repair; the device keeps its repair status."""
        device, _ = await self._working_job(device_id, actor)
        cleaned = validate_panel_list(panels)
        existing = await self.panels.list_for_device(device.id)
        if has_active_panels([p.status for p in existing]):
            raise ConflictError("Device already has panels in the paint shop")

        created = [
            PaintPanel(device_id=device.id, panel_type=p, status=PaintStatus.AWAITING_PAINT.value) for p in cleaned
        ]
        await self.panels.add_all(created)
        device.paint_required = True
        device.paint_completed = False
        await self.session.commit()
        await self.activity.record(
            ActivityAction.SENT_TO_PAINT,
            user_id=actor.id,
            details=f"Sent {device.barcode} to paint: {', '.join(cleaned)}",
            metadata={"barcode": device.barcode, "panels": cleaned},
        )
        return created

    # L2 doing the work itself

    async def _complete_as_l2(self, kind: str, device_id: UUID, actor: User, **fields) -> ParallelJob:
        model, label, flag = PARALLEL_KINDS[kind]
        device, _ = await self._owned_job(device_id, actor)
        job = _open_job(await self._parallel_repo(model).list_for_device(device.id))
        if job is None:
            raise NotFoundError(f"No open {label.lower()} job for this device")

        for key, value in fields.items():
            setattr(job, key, value)
        job.status = ParallelWorkStatus.COMPLETED.value
        job.completed_by_l2 = True
        job.assigned_to_id = job.assigned_to_id or actor.id
        job.started_at = job.started_at or utcnow()
        job.completed_at = utcnow()
        setattr(device, f"{flag}_completed", True)
        await self.session.commit()
        await self.activity.record(
            ActivityAction.COMPLETED_PARALLEL_WORK,
            user_id=actor.id,
            details=f"{label} completed by L2 on {device.barcode}",
            metadata={"barcode": device.barcode, "kind": kind, "completed_by_l2": True},
        )
        return job

    # PUBLIC_INTERFACE
    async def complete_display(self, device_id: UUID, notes: Optional[str], actor: User) -> ParallelJob:
        return await self._complete_as_l2("display", device_id, actor, notes=notes)

    # PUBLIC_INTERFACE
    async def complete_battery(
        self, device_id: UUID, payload: CompleteBatteryRequest, actor: User
    ) -> Tuple[ParallelJob, bool]:
        if not is_valid_battery_capacity(payload.final_capacity):
            raise DomainError(f"Invalid battery capacity: {payload.final_capacity}")
        job = await self._complete_as_l2(
            "battery", device_id, actor, final_capacity=payload.final_capacity, notes=payload.notes
        )
        return job, does_battery_meet_target(job.final_capacity, job.target_capacity)

    # Collect back

    # PUBLIC_INTERFACE
    async def collect(self, kind: str, device_id: UUID, actor: User) -> Device:
        """Take finished specialist or paint work back onto the L2 bench."""
        if kind == "paint":
            await self._owned_job(device_id, actor)
            return await PaintService(self.session).collect(device_id, actor)
        if kind not in PARALLEL_KINDS:
            raise NotFoundError(f"Unknown work type: {kind}")

        model, label, flag = PARALLEL_KINDS[kind]
        device, _ = await self._owned_job(device_id, actor)
        latest = await self._parallel_repo(model).latest_for_device(device.id)
        if latest is None:
            raise NotFoundError(f"No {label.lower()} job for this device")
        if latest.status != ParallelWorkStatus.COMPLETED.value:
            raise DomainError(f"{label} is not completed yet")
        setattr(device, f"{flag}_completed", True)
        await self.session.commit()
        await self.activity.record(
            ActivityAction.COMPLETED_PARALLEL_WORK,
            user_id=actor.id,
            details=f"Collected {device.barcode} from {label.lower()}",
            metadata={"barcode": device.barcode, "kind": kind},
        )
        return device

    # PUBLIC_INTERFACE
    async def request_spares(self, device_id: UUID, spares_required: str, actor: User) -> RepairJob:
        device, job = await self._working_job(device_id, actor)
        spares = spares_required.strip()
        if not spares:
            raise DomainError("Spares required cannot be empty")
        job.spares_required = spares
        job.status = RepairJobStatus.WAITING_FOR_SPARES.value
        device.status = DeviceStatus.WAITING_FOR_SPARES.value
        await self.session.commit()

        await self.notifications.notify_spares_requested(
            device_barcode=device.barcode,
            device_model=f"{device.brand} {device.model}",
            spares_required=spares,
            requested_by=actor.name,
        )
        await self.activity.record(
            ActivityAction.REQUESTED_SPARES,
            user_id=actor.id,
            details=f"Spares requested for {device.barcode}: {spares}",
            metadata={"barcode": device.barcode, "job_id": job.job_id},
        )
        return job

    # PUBLIC_INTERFACE
    async def send_to_qc(self, device_id: UUID, actor: User) -> RepairJob:
        device, job = await self._working_job(device_id, actor)
        blockers = qc_blockers(device)
        if blockers:
            raise DomainError(blockers[0], details={"errors": blockers})

        job.repair_end_date = utcnow()
        job.status = RepairJobStatus.AWAITING_QC.value
        device.repair_completed = True
        device.status = DeviceStatus.AWAITING_QC.value
        await self.session.commit()
        logger.info("L2 job %s sent %s to QC", job.job_id, device.barcode)
        await self.activity.record(
            ActivityAction.COMPLETED_REPAIR,
            user_id=actor.id,
            details=f"Sent {device.barcode} to QC",
            metadata={"barcode": device.barcode, "job_id": job.job_id},
        )
        return job
