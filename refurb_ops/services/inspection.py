from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import DomainError
from refurb_ops.db.models.inventory import Device
from refurb_ops.db.models.quality import ChecklistItem
from refurb_ops.db.models.repair import PaintPanel, RepairJob
from refurb_ops.db.models.security import User
from refurb_ops.repositories.quality import ChecklistItemRepository
from refurb_ops.repositories.repair import RepairJobRepository
from refurb_ops.schemas.inspection import ChecklistResultInput, InspectionSubmit
from refurb_ops.workflow.checklists import ChecklistItemDefinition, get_checklist_for_category
from refurb_ops.workflow.enums import ActivityAction, ChecklistStatus, DeviceStatus, PaintStatus, RepairJobStatus
from refurb_ops.workflow.paint import PANEL_TYPES
from refurb_ops.workflow.transitions import (
    determine_next_status_after_checklist_inspection,
    determine_next_status_after_inspection,
)
from .activity import ActivityService
from .base import BaseService
from .devices import DeviceService
from .notifications import NotificationService

logger = logging.getLogger(__name__)

INSPECTABLE_STATUSES = (DeviceStatus.RECEIVED, DeviceStatus.PENDING_INSPECTION)
REPAIR_ROUTE = (DeviceStatus.WAITING_FOR_SPARES, DeviceStatus.READY_FOR_REPAIR)
RECORDABLE_CHECKLIST_STATUSES = (ChecklistStatus.PASS, ChecklistStatus.FAIL, ChecklistStatus.NOT_APPLICABLE)


def _ensure_inspectable(device: Device) -> None:
    if DeviceStatus(device.status) not in INSPECTABLE_STATUSES:
        raise DomainError(f"Device is not ready for inspection. Current status: {device.status}")


def validate_panels(panels: List[str]) -> List[str]:
    cleaned = [p.strip() for p in panels if p and p.strip()]
    for panel in cleaned:
        if panel not in PANEL_TYPES:
            raise DomainError(f"Invalid panel type: {panel}")
    return cleaned


def validate_checklist_results(
    definitions: List[ChecklistItemDefinition], results: List[ChecklistResultInput]
) -> Dict[int, ChecklistResultInput]:
    """Index the submitted results by item, rejecting unknown items and statuses."""
    known = {d.index for d in definitions}
    by_index: Dict[int, ChecklistResultInput] = {}
    for result in results:
        if result.item_index not in known:
            raise DomainError(f"Invalid checklist item: {result.item_index}")
        try:
            status = ChecklistStatus(result.status)
        except ValueError:
            raise DomainError(f"Invalid checklist status: {result.status}")
        if status not in RECORDABLE_CHECKLIST_STATUSES:
            raise DomainError(f"Invalid checklist status: {result.status}")
        by_index[result.item_index] = result
    return by_index


def checklist_issues_json(
    definitions: List[ChecklistItemDefinition],
    results: Dict[int, ChecklistResultInput],
    overall_notes: Optional[str],
) -> str:
    failed = [
        {"itemIndex": d.index, "itemText": d.text, "notes": results[d.index].notes}
        for d in definitions
        if d.index in results and ChecklistStatus(results[d.index].status) == ChecklistStatus.FAIL
    ]
    return json.dumps({"failedItems": failed, "notes": overall_notes})


def legacy_issues_json(functional: Optional[str], cosmetic: Optional[str]) -> Optional[str]:
    if not (functional or cosmetic):
        return None
    return json.dumps({"functional": functional, "cosmetic": cosmetic})


class InspectionService(BaseService):
    """Inspection bench: checklist capture and routing of the device into the pipeline."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.device_service = DeviceService(session)
        self.checklist_items = ChecklistItemRepository(session)
        self.repair_jobs = RepairJobRepository(session)
        self.activity = ActivityService(session)
        self.notifications = NotificationService(session)

    # PUBLIC_INTERFACE
    async def start(self, barcode: str) -> Tuple[Device, List[ChecklistItemDefinition]]:
        """Open a device for inspection; a RECEIVED device moves to PENDING_INSPECTION."""
        device = await self.device_service.get_by_barcode(barcode)
        _ensure_inspectable(device)
        if device.status == DeviceStatus.RECEIVED.value:
            device.status = DeviceStatus.PENDING_INSPECTION.value
            await self.session.commit()
        return device, get_checklist_for_category(device.category)

    # PUBLIC_INTERFACE
    async def submit(self, device_id: UUID, payload: InspectionSubmit, actor: User) -> Tuple[Device, Optional[RepairJob]]:
        """
        Record the inspection outcome and route the device.

        With a checklist, FAIL items are the reported issues; otherwise the free
        text functional issues are. Display, battery and L3 flags also count as
        issues so the device goes through repair, where an L2 engineer sends it
        on to the specialists.
        """
        device = await self.device_service.get_device(device_id)
        _ensure_inspectable(device)

        panels = validate_panels(payload.paint_panels)
        spares = (payload.spares_required or "").strip() or None
        specialist_work = (
            payload.display_repair_required or payload.battery_boost_required or payload.l3_repair_required
        )

        if payload.checklist:
            definitions = get_checklist_for_category(device.category)
            results = validate_checklist_results(definitions, payload.checklist)
            await self.checklist_items.clear_for_device(device.id)
            await self.checklist_items.add_all(
                ChecklistItem(
                    device_id=device.id,
                    item_index=d.index,
                    item_text=d.text,
                    status=ChecklistStatus(results[d.index].status).value,
                    notes=results[d.index].notes,
                )
                for d in definitions
                if d.index in results
            )
            reported_issues: Optional[str] = checklist_issues_json(definitions, results, payload.overall_notes)
            next_status = determine_next_status_after_checklist_inspection(
                [r.status for r in results.values()], spares, panels
            )
        else:
            reported_issues = legacy_issues_json(payload.reported_issues, payload.cosmetic_issues)
            next_status = determine_next_status_after_inspection(
                payload.reported_issues, spares, bool(panels), panels
            )

        if specialist_work and next_status not in REPAIR_ROUTE:
            next_status = DeviceStatus.READY_FOR_REPAIR
        repair_required = next_status in REPAIR_ROUTE

        job: Optional[RepairJob] = None
        if repair_required:
            job = RepairJob(
                job_id=await self.new_job_id(),
                device_id=device.id,
                inspection_eng_id=actor.id,
                reported_issues=reported_issues,
                spares_required=spares,
                status=RepairJobStatus(next_status.value).value,
                notes=payload.overall_notes,
            )
            await self.repair_jobs.add(job)

        await self.repair_jobs.add_all(
            PaintPanel(device_id=device.id, panel_type=panel, status=PaintStatus.AWAITING_PAINT.value)
            for panel in panels
        )

        device.repair_required = repair_required
        device.repair_completed = False
        device.paint_required = bool(panels)
        device.paint_completed = False
        device.display_repair_required = payload.display_repair_required
        device.display_repair_completed = False
        device.battery_boost_required = payload.battery_boost_required
        device.battery_boost_completed = False
        device.l3_repair_required = payload.l3_repair_required
        device.l3_repair_completed = False
        device.status = next_status.value
        await self.session.commit()

        logger.info("Inspection of %s complete, next status %s", device.barcode, next_status.value)
        await self.activity.record(
            ActivityAction.COMPLETED_INSPECTION,
            user_id=actor.id,
            details=f"Inspected {device.barcode}: {next_status.value}",
            metadata={"barcode": device.barcode, "status": next_status.value, "job_id": job.job_id if job else None},
        )
        if spares:
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
                metadata={"barcode": device.barcode},
            )
        return device, job
