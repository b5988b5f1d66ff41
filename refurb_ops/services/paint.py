from __future__ import annotations

import logging
from typing import List, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import DomainError, NotFoundError
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.inventory import Device
from refurb_ops.db.models.repair import PaintPanel
from refurb_ops.db.models.security import User
from refurb_ops.repositories.inventory import DeviceRepository
from refurb_ops.repositories.repair import PaintPanelRepository, RepairJobRepository
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.schemas.repair import PaintPanelRead, PaintQueueEntry
from refurb_ops.workflow.enums import ActivityAction, PaintStatus, RepairJobStatus
from refurb_ops.workflow.paint import (
    ACTIVE_PAINT_STATUSES,
    calculate_paint_progress,
    can_collect_from_paint,
    can_transition_panel_status,
    has_active_panels,
    is_device_in_paint_shop,
)
from refurb_ops.workflow.transitions import determine_next_status_after_paint_collection
from .activity import ActivityService
from .base import BaseService
from .notifications import NotificationService

logger = logging.getLogger(__name__)


def _target_status(status: str) -> PaintStatus:
    try:
        return PaintStatus(status)
    except ValueError:
        raise DomainError(f"Invalid panel status: {status}")


class PaintService(BaseService):
    """Paint shop queue, panel progress and collection back into the pipeline."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.devices = DeviceRepository(session)
        self.panels = PaintPanelRepository(session)
        self.repair_jobs = RepairJobRepository(session)
        self.activity = ActivityService(session)
        self.notifications = NotificationService(session)

    # PUBLIC_INTERFACE
    async def queue(self) -> List[PaintQueueEntry]:
        """
        Devices the paint shop should be working on.

        A device is listed while it has panels awaiting or in paint and either
        its repair is out of the way, it was routed straight to the paint shop,
        or an L2 engineer sent the panels in parallel with the repair.
        """
        device_ids = await self.panels.list_device_ids_with_status([s.value for s in ACTIVE_PAINT_STATUSES])
        entries: List[PaintQueueEntry] = []
        for device in await self.devices.list_by_ids(device_ids):
            panels = await self.panels.list_for_device(device.id)
            statuses = [p.status for p in panels]
            if not has_active_panels(statuses):
                continue
            if not is_device_in_paint_shop(
                device.status,
                device.repair_required,
                device.repair_completed,
                statuses,
                await self._l2_claimed(device.id),
            ):
                continue
            entries.append(
                PaintQueueEntry(
                    device=DeviceRead.model_validate(device),
                    panels=[PaintPanelRead.model_validate(p) for p in panels],
                    progress=calculate_paint_progress(statuses),
                )
            )
        entries.sort(key=lambda e: e.device.updated_at)
        return entries

    async def _l2_claimed(self, device_id: UUID) -> bool:
        job = await self.repair_jobs.latest_for_device(device_id)
        return job is not None and job.l2_engineer_id is not None

    async def _ensure_in_paint_shop(self, device: Device) -> None:
        statuses = [p.status for p in await self.panels.list_for_device(device.id)]
        if not is_device_in_paint_shop(
            device.status,
            device.repair_required,
            device.repair_completed,
            statuses,
            await self._l2_claimed(device.id),
        ):
            raise DomainError(f"Device is not in the paint shop. Current status: {device.status}")

    def _apply(self, panel: PaintPanel, target: PaintStatus, actor: User) -> None:
        if not can_transition_panel_status(panel.status, target):
            raise DomainError(f"Cannot move {panel.panel_type} from {panel.status} to {target.value}")
        panel.status = target.value
        panel.technician_id = actor.id
        if target == PaintStatus.IN_PAINT:
            panel.started_at = utcnow()
        elif target == PaintStatus.READY_FOR_COLLECTION:
            panel.completed_at = utcnow()

    async def _notify_if_ready(self, device_ids: Sequence[UUID], actor: User) -> None:
        for device_id in dict.fromkeys(device_ids):
            panels = await self.panels.list_for_device(device_id)
            if not all(p.status == PaintStatus.READY_FOR_COLLECTION.value for p in panels):
                continue
            device = panels[0].device
            job = await self.repair_jobs.latest_for_device(device_id)
            engineer_id = (job.repair_eng_id or job.l2_engineer_id) if job else None
            await self.activity.record(
                ActivityAction.COMPLETED_PAINT,
                user_id=actor.id,
                details=f"Paint complete for {device.barcode}",
                metadata={"barcode": device.barcode},
            )
            await self.notifications.notify_paint_ready(
                device_barcode=device.barcode,
                device_model=f"{device.brand} {device.model}",
                panels=[p.panel_type for p in panels],
                repair_eng_id=engineer_id,
            )

    # PUBLIC_INTERFACE
    async def update_panel(self, panel_id: UUID, status: str, actor: User) -> PaintPanel:
        panel = await self.panels.get_panel(panel_id)
        if panel is None:
            raise NotFoundError("Panel not found")
        await self._ensure_in_paint_shop(await self.load_device(panel.device_id))
        self._apply(panel, _target_status(status), actor)
        await self.session.commit()
        await self._notify_if_ready([panel.device_id], actor)
        return panel

    # PUBLIC_INTERFACE
    async def bulk_update(self, panel_ids: Sequence[UUID], status: str, actor: User) -> List[PaintPanel]:
        """All-or-nothing: every panel must be allowed to move to the target status."""
        target = _target_status(status)
        panels = await self.panels.list_by_ids(panel_ids)
        if len(panels) != len(set(panel_ids)):
            raise NotFoundError("One or more panels not found")
        for device_id in dict.fromkeys(p.device_id for p in panels):
            await self._ensure_in_paint_shop(await self.load_device(device_id))
        for panel in panels:
            self._apply(panel, target, actor)
        await self.session.commit()
        await self._notify_if_ready([p.device_id for p in panels], actor)
        return panels

    # PUBLIC_INTERFACE
    async def collect(self, device_id: UUID, actor: User) -> Device:
        """Fit painted panels and send the device on to repair or QC."""
        device = await self.load_device(device_id)
        panels = await self.panels.list_for_device(device.id)
        can_collect_from_paint(
            device.status, [p.status for p in panels], await self._l2_claimed(device.id)
        ).raise_if_invalid()

        for panel in panels:
            panel.status = PaintStatus.FITTED.value
        device.paint_completed = True
        next_status = determine_next_status_after_paint_collection(device.repair_required, device.repair_completed)
        device.status = next_status.value
        job = await self.repair_jobs.latest_for_device(device.id)
        if job is not None and job.status != RepairJobStatus.COMPLETED.value:
            job.status = RepairJobStatus(next_status.value).value
        await self.session.commit()

        await self.activity.record(
            ActivityAction.COLLECTED_FROM_PAINT,
            user_id=actor.id,
            details=f"Collected {device.barcode} from paint shop",
            metadata={"barcode": device.barcode, "status": next_status.value},
        )
        return device

