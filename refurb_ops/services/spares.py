from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import ConflictError, DomainError, NotFoundError
from refurb_ops.db.models.inventory import SparePart
from refurb_ops.db.models.repair import RepairJob
from refurb_ops.db.models.security import User
from refurb_ops.repositories.inventory import SparePartRepository
from refurb_ops.repositories.repair import RepairJobRepository
from refurb_ops.schemas.repair import IssueSparesRequest
from refurb_ops.schemas.spares import SparePartCreate, SparePartRead, SparePartUpdate, StockAdjustment
from refurb_ops.workflow.enums import ActivityAction, DeviceStatus, RepairJobStatus
from refurb_ops.workflow.spares import (
    StockStatus,
    can_issue_part,
    format_bin_location,
    get_stock_status,
    is_compatible,
    is_valid_stock_adjustment,
    parse_bin_location,
    validate_part_code,
    validate_stock_levels,
)
from .activity import ActivityService
from .base import BaseService

logger = logging.getLogger(__name__)


def _bin_location(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    parsed = parse_bin_location(value)
    if parsed is None:
        raise DomainError("Invalid bin location. Use RACK-shelf-position, e.g. A-2-05")
    return format_bin_location(*parsed)


# PUBLIC_INTERFACE
def part_read(part: SparePart) -> SparePartRead:
    """Read model with the computed stock status."""
    read = SparePartRead.model_validate(part)
    read.stock_status = get_stock_status(part.current_stock, part.min_stock, part.max_stock).value
    return read


class SparesService(BaseService):
    """Spares requests raised by repair and the spare part catalogue."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.parts = SparePartRepository(session)
        self.repair_jobs = RepairJobRepository(session)
        self.activity = ActivityService(session)

    # PUBLIC_INTERFACE
    async def queue(self) -> List[RepairJob]:
        """Repair jobs waiting for spares, oldest first."""
        return await self.repair_jobs.list_jobs(statuses=[RepairJobStatus.WAITING_FOR_SPARES], oldest_first=True)

    # PUBLIC_INTERFACE
    async def issue_spares(self, job_pk: UUID, payload: IssueSparesRequest, actor: User) -> RepairJob:
        """Hand over the requested parts; the job and device become ready for repair."""
        job = await self.repair_jobs.get_job(job_pk)
        if job is None:
            raise NotFoundError("Repair job not found")
        if job.status != RepairJobStatus.WAITING_FOR_SPARES.value:
            raise DomainError(f"Job is not waiting for spares. Current status: {job.status}")

        issued: List[str] = []
        for item in payload.parts:
            part = await self.parts.get_part(item.part_id)
            if part is None:
                raise NotFoundError("Spare part not found")
            if not can_issue_part(part.current_stock, item.quantity):
                raise DomainError(
                    f"Insufficient stock for {part.part_code}. Available: {part.current_stock}"
                )
            part.current_stock -= item.quantity
            issued.append(f"{part.part_code} x{item.quantity}")

        job.spares_issued = (payload.spares_issued or "").strip() or ", ".join(issued) or None
        job.status = RepairJobStatus.READY_FOR_REPAIR.value
        job.device.status = DeviceStatus.READY_FOR_REPAIR.value
        await self.session.commit()

        await self.activity.record(
            ActivityAction.ISSUED_SPARES,
            user_id=actor.id,
            details=f"Issued spares for {job.device.barcode}: {job.spares_issued or 'n/a'}",
            metadata={"barcode": job.device.barcode, "job_id": job.job_id, "parts": issued},
        )
        return job

    # Catalogue

    # PUBLIC_INTERFACE
    async def list_parts(
        self, *, q: Optional[str] = None, category: Optional[str] = None, low_stock: bool = False
    ) -> List[SparePartRead]:
        reads = [part_read(p) for p in await self.parts.list_parts(q=q, category=category)]
        if low_stock:
            reads = [r for r in reads if r.stock_status == StockStatus.LOW.value]
        return reads

    async def get_part(self, part_id: UUID) -> SparePart:
        part = await self.parts.get_part(part_id)
        if part is None:
            raise NotFoundError("Spare part not found")
        return part

    # PUBLIC_INTERFACE
    async def create_part(self, payload: SparePartCreate) -> SparePart:
        if not validate_part_code(payload.part_code):
            raise DomainError("Invalid part code. Use letters, digits, '-' and '_' only")
        validate_stock_levels(payload.min_stock, payload.max_stock, payload.current_stock).raise_if_invalid()
        code = payload.part_code.strip().upper()
        if await self.parts.get_by_code(code) is not None:
            raise ConflictError(f"Part code {code} already exists")
        part = SparePart(
            **{**payload.model_dump(), "part_code": code, "bin_location": _bin_location(payload.bin_location)}
        )
        await self.parts.add(part)
        await self.parts.commit()
        return part

    # PUBLIC_INTERFACE
    async def update_part(self, part_id: UUID, payload: SparePartUpdate) -> SparePart:
        part = await self.get_part(part_id)
        changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
        if "bin_location" in changes:
            changes["bin_location"] = _bin_location(changes["bin_location"])
        validate_stock_levels(
            changes.get("min_stock", part.min_stock),
            changes.get("max_stock", part.max_stock),
            part.current_stock,
        ).raise_if_invalid()
        for key, value in changes.items():
            setattr(part, key, value)
        await self.parts.commit()
        return part

    # PUBLIC_INTERFACE
    async def delete_part(self, part_id: UUID) -> None:
        part = await self.get_part(part_id)
        await self.parts.delete(part)
        await self.parts.commit()

    # PUBLIC_INTERFACE
    async def adjust_stock(self, part_id: UUID, payload: StockAdjustment, actor: User) -> SparePart:
        part = await self.get_part(part_id)
        if not is_valid_stock_adjustment(part.current_stock, payload.adjustment):
            raise DomainError(f"Stock cannot go below zero. Current stock: {part.current_stock}")
        part.current_stock += payload.adjustment
        await self.parts.commit()
        await self.activity.record(
            ActivityAction.ADJUSTED_SPARE_STOCK,
            user_id=actor.id,
            details=f"Adjusted {part.part_code} by {payload.adjustment:+d}: {payload.reason}",
            metadata={"part_code": part.part_code, "adjustment": payload.adjustment, "stock": part.current_stock},
        )
        return part

    # PUBLIC_INTERFACE
    async def compatible_parts(self, device_model: str) -> List[SparePartRead]:
        if not device_model or not device_model.strip():
            raise DomainError("Device model is required")
        parts = await self.parts.list_parts()
        return [part_read(p) for p in parts if is_compatible(device_model.strip(), p.compatible_models)]
