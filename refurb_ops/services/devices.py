from __future__ import annotations

import logging
import math
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import DomainError, NotFoundError
from refurb_ops.db.models.inventory import Device, StockMovement
from refurb_ops.db.models.repair import BatteryBoostJob, DisplayRepairJob, L3RepairJob
from refurb_ops.db.models.security import User
from refurb_ops.repositories.activity import ActivityLogRepository
from refurb_ops.repositories.inventory import DeviceRepository, RackRepository, StockMovementRepository
from refurb_ops.repositories.quality import QCRecordRepository
from refurb_ops.repositories.repair import PaintPanelRepository, ParallelJobRepository, RepairJobRepository
from refurb_ops.schemas.devices import DeviceDetail, DeviceUpdate, HistoryEvent, InventoryPage, StockMoveRequest
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.schemas.quality import QCRecordRead
from refurb_ops.schemas.repair import PaintPanelRead, RepairJobRead
from refurb_ops.workflow.devices import get_category_specific_fields, validate_device_update
from refurb_ops.workflow.enums import ActivityAction, MovementType
from refurb_ops.workflow.identifiers import as_utc
from .activity import ActivityService
from .base import BaseService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("brand", "model", "serial", "condition_notes")

_PARALLEL_KINDS = (
    ("L3 repair", L3RepairJob),
    ("Display repair", DisplayRepairJob),
    ("Battery boost", BatteryBoostJob),
)


class DeviceService(BaseService):
    """Device lookup, edits, inventory search, stock moves and history."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.devices = DeviceRepository(session)
        self.racks = RackRepository(session)
        self.movements = StockMovementRepository(session)
        self.repair_jobs = RepairJobRepository(session)
        self.panels = PaintPanelRepository(session)
        self.qc_records = QCRecordRepository(session)
        self.activity = ActivityService(session)

    # PUBLIC_INTERFACE
    async def get_by_barcode(self, barcode: str) -> Device:
        if not barcode or not barcode.strip():
            raise DomainError("Please enter a barcode")
        device = await self.devices.get_by_barcode(barcode)
        if device is None:
            raise NotFoundError("Device not found")
        return device

    # PUBLIC_INTERFACE
    async def get_device(self, device_id: UUID) -> Device:
        return await self.load_device(device_id)

    # PUBLIC_INTERFACE
    async def get_detail(self, barcode: str) -> DeviceDetail:
        """Device with its latest repair job, QC history and paint panels."""
        device = await self.get_by_barcode(barcode)
        job = await self.repair_jobs.latest_for_device(device.id)
        records = await self.qc_records.list_records(device_id=device.id)
        panels = await self.panels.list_for_device(device.id)
        return DeviceDetail(
            **DeviceRead.model_validate(device).model_dump(),
            latest_repair_job=RepairJobRead.model_validate(job) if job else None,
            qc_records=[QCRecordRead.model_validate(r) for r in records],
            paint_panels=[PaintPanelRead.model_validate(p) for p in panels],
        )

    # PUBLIC_INTERFACE
    async def update_device(self, device_id: UUID, payload: DeviceUpdate, actor: User) -> Device:
        device = await self.get_device(device_id)
        updates = payload.model_dump(exclude_unset=True)
        validate_device_update(device.status, updates).raise_if_invalid()

        allowed = set(EDITABLE_FIELDS) | set(get_category_specific_fields(device.category))
        changed = []
        for key, value in updates.items():
            if key not in allowed:
                continue
            if isinstance(value, str):
                value = value.strip() or None
            setattr(device, key, value)
            changed.append(key)
        await self.devices.commit()
        await self.activity.record(
            ActivityAction.UPDATED_DEVICE,
            user_id=actor.id,
            details=f"Updated device {device.barcode}",
            metadata={"barcode": device.barcode, "fields": sorted(changed)},
        )
        return device

    # PUBLIC_INTERFACE
    async def search(
        self,
        *,
        q: Optional[str] = None,
        category: Optional[str] = None,
        ownership: Optional[str] = None,
        grade: Optional[str] = None,
        status: Optional[str] = None,
        include_out_of_stock: bool = False,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 50,
    ) -> InventoryPage:
        page = max(page, 1)
        limit = max(min(limit, 500), 1)
        devices, total = await self.devices.search(
            q=q,
            category=category,
            ownership=ownership,
            grade=grade,
            status=status,
            include_out_of_stock=include_out_of_stock,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return InventoryPage(
            devices=[DeviceRead.model_validate(d) for d in devices],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    # PUBLIC_INTERFACE
    async def move_device(self, device_id: UUID, payload: StockMoveRequest, actor: User) -> Device:
        device = await self.get_device(device_id)
        to_location = payload.to_location.strip()
        if not to_location:
            raise DomainError("Destination location is required")
        if payload.rack_id is not None and payload.rack_id != device.rack_id:
            rack = await self.racks.get_rack(payload.rack_id)
            if rack is None or not rack.is_active:
                raise NotFoundError("Rack not found")
            used = (await self.racks.occupancy([rack]))[rack.id]
            if used >= rack.capacity:
                raise DomainError(f"Rack {rack.rack_code} is full")

        from_location = device.location
        device.location = to_location
        device.rack_id = payload.rack_id
        await self.movements.add(
            StockMovement(
                device_id=device.id,
                type=MovementType.MOVE.value,
                from_location=from_location,
                to_location=to_location,
                reference=payload.reference,
                user_id=actor.id,
            )
        )
        await self.devices.commit()
        logger.info("Moved %s from %s to %s", device.barcode, from_location, to_location)
        await self.activity.record(
            ActivityAction.MOVED_STOCK,
            user_id=actor.id,
            details=f"Moved {device.barcode} to {to_location}",
            metadata={"barcode": device.barcode, "from": from_location, "to": to_location},
        )
        return device

    # PUBLIC_INTERFACE
    async def history(self, device_id: UUID) -> List[HistoryEvent]:
        """Chronological timeline of everything that happened to a device."""
        device = await self.get_device(device_id)
        events: List[HistoryEvent] = []

        for m in await self.movements.list_for_device(device.id):
            events.append(
                HistoryEvent(
                    timestamp=as_utc(m.date),
                    kind="movement",
                    title=f"Stock movement: {m.type}",
                    details=" -> ".join(filter(None, [m.from_location, m.to_location])) or None,
                    data={"reference": m.reference},
                )
            )
        for job in await self.repair_jobs.list_for_device(device.id):
            events.append(
                HistoryEvent(
                    timestamp=as_utc(job.created_at),
                    kind="repair_job",
                    title=f"Repair job {job.job_id} ({job.status})",
                    details=job.notes,
                    data={"job_id": job.job_id, "status": job.status},
                )
            )
        for label, model in _PARALLEL_KINDS:
            for pjob in await ParallelJobRepository(self.session, model).list_for_device(device.id):
                events.append(
                    HistoryEvent(
                        timestamp=as_utc(pjob.created_at),
                        kind="parallel_job",
                        title=f"{label} ({pjob.status})",
                        details=pjob.notes,
                        data={"status": pjob.status},
                    )
                )
        for panel in await self.panels.list_for_device(device.id):
            events.append(
                HistoryEvent(
                    timestamp=as_utc(panel.created_at),
                    kind="paint_panel",
                    title=f"Paint panel {panel.panel_type} ({panel.status})",
                    data={"status": panel.status},
                )
            )
        for record in await self.qc_records.list_records(device_id=device.id):
            events.append(
                HistoryEvent(
                    timestamp=as_utc(record.created_at),
                    kind="qc",
                    title=f"QC {record.status}",
                    details=record.remarks,
                    data={"grade": record.final_grade},
                )
            )
        for entry in await ActivityLogRepository(self.session).mentioning(device.barcode):
            events.append(
                HistoryEvent(
                    timestamp=as_utc(entry.created_at),
                    kind="activity",
                    title=entry.action,
                    details=entry.details,
                    data=entry.extra or {},
                )
            )

        events.sort(key=lambda e: e.timestamp)
        return events
