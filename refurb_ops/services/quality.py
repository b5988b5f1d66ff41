from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import DomainError, NotFoundError
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.inventory import Device
from refurb_ops.db.models.quality import ChecklistItem, QCRecord
from refurb_ops.db.models.repair import RepairJob
from refurb_ops.db.models.security import User
from refurb_ops.repositories.quality import ChecklistItemRepository, QCRecordRepository
from refurb_ops.repositories.repair import PaintPanelRepository, RepairJobRepository
from refurb_ops.schemas.quality import ChecklistItemRead, ChecklistItemUpdate, QCStart, QCSubmit
from refurb_ops.workflow.enums import ActivityAction, ChecklistStatus, PaintStatus, QCStatus, RepairJobStatus
from refurb_ops.workflow.issues import parse_reported_issues
from refurb_ops.workflow.parallel import count_checklist_statuses
from refurb_ops.workflow.quality import (
    append_qc_notes,
    can_perform_qc,
    format_qc_failure_notes,
    validate_qc_data,
)
from refurb_ops.workflow.transitions import determine_next_status_after_qc, state_after_qc_failure
from .activity import ActivityService
from .base import BaseService
from .devices import DeviceService
from .l2 import qc_blockers
from .notifications import NotificationService

logger = logging.getLogger(__name__)


def _ensure_qc_ready(device: Device) -> None:
    can_perform_qc(
        device.status,
        device.repair_required,
        device.repair_completed,
        device.paint_required,
        device.paint_completed,
    ).raise_if_invalid()


class QCService(BaseService):
    """Quality control: final checklist review, grading and rework."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.device_service = DeviceService(session)
        self.checklist_items = ChecklistItemRepository(session)
        self.records = QCRecordRepository(session)
        self.repair_jobs = RepairJobRepository(session)
        self.panels = PaintPanelRepository(session)
        self.activity = ActivityService(session)
        self.notifications = NotificationService(session)

    # PUBLIC_INTERFACE
    async def start(self, barcode: str) -> QCStart:
        device = await self.device_service.get_by_barcode(barcode)
        _ensure_qc_ready(device)
        items = await self.checklist_items.list_for_device(device.id)
        job = await self.repair_jobs.latest_for_device(device.id)
        notes: Optional[str] = None
        if job is not None:
            notes = parse_reported_issues(job.reported_issues).notes or job.notes
        return QCStart(
            device_id=device.id,
            barcode=device.barcode,
            checklist=[ChecklistItemRead.model_validate(i) for i in items],
            counts=count_checklist_statuses([i.status for i in items]),
            inspection_notes=notes,
        )

    # PUBLIC_INTERFACE
    async def update_item(self, item_id: UUID, payload: ChecklistItemUpdate) -> ChecklistItem:
        item = await self.checklist_items.get_item(item_id)
        if item is None:
            raise NotFoundError("Checklist item not found")
        try:
            status = ChecklistStatus(payload.status)
        except ValueError:
            raise DomainError(f"Invalid checklist status: {payload.status}")
        item.status = status.value
        if payload.notes is not None:
            item.notes = payload.notes
        await self.session.commit()
        return item

    # PUBLIC_INTERFACE
    async def submit(self, device_id: UUID, payload: QCSubmit, actor: User) -> QCRecord:
        device = await self.device_service.get_device(device_id)
        _ensure_qc_ready(device)
        try:
            status = QCStatus(payload.status)
        except ValueError:
            raise DomainError(f"Invalid QC status: {payload.status}")
        validate_qc_data(str(actor.id), status, payload.final_grade, payload.remarks).raise_if_invalid()

        if status == QCStatus.PASSED:
            items = await self.checklist_items.list_for_device(device.id)
            if any(i.status == ChecklistStatus.PENDING.value for i in items):
                raise DomainError("All checklist items must be checked before passing QC")
            blockers = qc_blockers(device)
            if blockers:
                raise DomainError(blockers[0], details={"errors": blockers})

        record = QCRecord(
            device_id=device.id,
            qc_eng_id=actor.id,
            checklist_results=payload.checklist_results,
            remarks=payload.remarks,
            final_grade=payload.final_grade if status == QCStatus.PASSED else None,
            status=status.value,
            completed_at=utcnow(),
        )
        await self.records.add(record)

        job = await self.repair_jobs.latest_for_device(device.id)
        if status == QCStatus.PASSED:
            device.status = determine_next_status_after_qc(status).value
            device.grade = payload.final_grade
            if job is not None:
                job.status = RepairJobStatus.COMPLETED.value
        else:
            rework = state_after_qc_failure(device.paint_required)
            device.status = rework.device_status.value
            device.repair_completed = rework.repair_completed
            device.paint_completed = rework.paint_completed
            device.grade = None
            qc_notes = format_qc_failure_notes(payload.remarks, payload.checklist_results)
            if job is not None:
                job.status = rework.repair_job_status.value
                job.notes = append_qc_notes(job.notes, qc_notes)
            else:
                # Clean or paint-only devices reach QC without a repair job
                job = RepairJob(
                    job_id=await self.new_job_id(),
                    device_id=device.id,
                    reported_issues=payload.remarks,
                    status=rework.repair_job_status.value,
                    notes=qc_notes,
                )
                await self.repair_jobs.add(job)
                device.repair_required = True
            if device.paint_required:
                for panel in await self.panels.list_for_device(device.id):
                    panel.status = PaintStatus.AWAITING_PAINT.value
                    panel.started_at = None
                    panel.completed_at = None
        await self.session.commit()
        await self.session.refresh(record, attribute_names=["device"])

        logger.info("QC %s for %s by %s", status.value, device.barcode, actor.email)
        await self.activity.record(
            ActivityAction.COMPLETED_QC,
            user_id=actor.id,
            details=f"QC {status.value} for {device.barcode}",
            metadata={"barcode": device.barcode, "status": status.value, "grade": record.final_grade},
        )
        if status == QCStatus.FAILED_REWORK:
            await self.notifications.notify_qc_failed(
                device_barcode=device.barcode,
                device_model=f"{device.brand} {device.model}",
                remarks=payload.remarks,
                qc_engineer=actor.name,
                repair_eng_id=(job.repair_eng_id or job.l2_engineer_id) if job else None,
            )
        return record

    # PUBLIC_INTERFACE
    async def list_records(self, *, status: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[QCRecord]:
        return await self.records.list_records(status=status, limit=limit, offset=offset)
