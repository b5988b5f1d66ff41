from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select

from refurb_ops.db.models.inventory import Device, Rack, SparePart, StockMovement
from refurb_ops.workflow.enums import OUT_OF_STOCK_STATUSES, DeviceStatus
from .base import BaseRepository

DEVICE_SORT_COLUMNS = {
    "created_at": Device.created_at,
    "updated_at": Device.updated_at,
    "barcode": Device.barcode,
    "brand": Device.brand,
    "model": Device.model,
    "category": Device.category,
    "status": Device.status,
    "grade": Device.grade,
    "location": Device.location,
}


class DeviceRepository(BaseRepository):
    """Repository for devices."""

    async def get_device(self, device_id: UUID) -> Optional[Device]:
        return await self.get(Device, device_id)

    async def get_by_barcode(self, barcode: str) -> Optional[Device]:
        stmt = select(Device).where(Device.barcode == barcode.strip())
        return await self.scalar_one_or_none(stmt)

    async def barcode_exists(self, barcode: str) -> bool:
        stmt = select(Device.id).where(Device.barcode == barcode)
        return (await self.scalar_one_or_none(stmt)) is not None

    async def list_by_ids(self, device_ids: Iterable[UUID]) -> List[Device]:
        ids = list(device_ids)
        if not ids:
            return []
        result = await self.scalars(select(Device).where(Device.id.in_(ids)))
        return list(result)

    async def list_by_batch(self, batch_id: UUID) -> List[Device]:
        stmt = select(Device).where(Device.inward_batch_id == batch_id).order_by(Device.created_at)
        result = await self.scalars(stmt)
        return list(result)

    async def list_by_outward(self, outward_record_id: UUID) -> List[Device]:
        stmt = select(Device).where(Device.outward_record_id == outward_record_id).order_by(Device.barcode)
        result = await self.scalars(stmt)
        return list(result)

    async def list_by_status(self, statuses: Sequence[str], *, limit: int = 500) -> List[Device]:
        stmt = (
            select(Device)
            .where(Device.status.in_([DeviceStatus(s).value for s in statuses]))
            .order_by(Device.updated_at)
            .limit(limit)
        )
        result = await self.scalars(stmt)
        return list(result)

    async def list_by_ownership(self, ownership: str, *, limit: int = 1000) -> List[Device]:
        stmt = select(Device).where(Device.ownership == ownership).order_by(Device.created_at.desc()).limit(limit)
        result = await self.scalars(stmt)
        return list(result)

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
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Device], int]:
        """
        Inventory search.

        Without an explicit status filter, devices that already left the building
        (sold, rented out, scrapped) are hidden unless include_out_of_stock is set.
        """
        stmt = select(Device)
        if q:
            pattern = f"%{q.strip()}%"
            stmt = stmt.where(
                or_(
                    Device.barcode.ilike(pattern),
                    Device.brand.ilike(pattern),
                    Device.model.ilike(pattern),
                    Device.location.ilike(pattern),
                    Device.serial.ilike(pattern),
                )
            )
        if category:
            stmt = stmt.where(Device.category == category)
        if ownership:
            stmt = stmt.where(Device.ownership == ownership)
        if grade:
            stmt = stmt.where(Device.grade == grade)
        if status:
            stmt = stmt.where(Device.status == status)
        elif not include_out_of_stock:
            stmt = stmt.where(Device.status.notin_([s.value for s in OUT_OF_STOCK_STATUSES]))

        total = await self.count(stmt)

        column = DEVICE_SORT_COLUMNS.get(sort_by, Device.created_at)
        ordering = column.asc() if sort_order.lower() == "asc" else column.desc()
        stmt = stmt.order_by(ordering, Device.barcode).offset(offset).limit(limit)
        result = await self.scalars(stmt)
        return list(result), total

    async def count_by_status(self) -> Dict[str, int]:
        stmt = select(Device.status, func.count(Device.id)).group_by(Device.status)
        result = await self.execute(stmt)
        return {status: int(count) for status, count in result.all()}

    async def count_in_racks(self, rack_ids: Sequence[UUID]) -> Dict[UUID, int]:
        if not rack_ids:
            return {}
        stmt = (
            select(Device.rack_id, func.count(Device.id))
            .where(Device.rack_id.in_(list(rack_ids)))
            .group_by(Device.rack_id)
        )
        result = await self.execute(stmt)
        return {rack_id: int(count) for rack_id, count in result.all()}


class StockMovementRepository(BaseRepository):
    """Repository for stock movements."""

    async def list_for_device(self, device_id: UUID) -> List[StockMovement]:
        stmt = select(StockMovement).where(StockMovement.device_id == device_id).order_by(StockMovement.date)
        result = await self.scalars(stmt)
        return list(result)


class RackRepository(BaseRepository):
    """Repository for racks and their occupancy."""

    async def list_racks(self, *, stage: Optional[str] = None, active_only: bool = False) -> List[Rack]:
        stmt = select(Rack)
        if stage:
            stmt = stmt.where(Rack.stage == stage)
        if active_only:
            stmt = stmt.where(Rack.is_active.is_(True))
        stmt = stmt.order_by(Rack.stage, Rack.rack_code)
        result = await self.scalars(stmt)
        return list(result)

    async def get_rack(self, rack_id: UUID) -> Optional[Rack]:
        return await self.get(Rack, rack_id)

    async def get_by_code(self, rack_code: str) -> Optional[Rack]:
        return await self.scalar_one_or_none(select(Rack).where(Rack.rack_code == rack_code))

    async def occupancy(self, racks: Sequence[Rack]) -> Dict[UUID, int]:
        """Number of devices currently parked in each rack."""
        counts = await DeviceRepository(self.session).count_in_racks([r.id for r in racks])
        return {r.id: counts.get(r.id, 0) for r in racks}

    async def available_capacity(self, stage: str) -> int:
        racks = await self.list_racks(stage=stage, active_only=True)
        used = await self.occupancy(racks)
        return sum(max(r.capacity - used[r.id], 0) for r in racks)

    async def find_rack_with_space(self, stage: str) -> Optional[Rack]:
        racks = await self.list_racks(stage=stage, active_only=True)
        used = await self.occupancy(racks)
        for rack in racks:
            if used[rack.id] < rack.capacity:
                return rack
        return None


class SparePartRepository(BaseRepository):
    """Repository for spare parts."""

    async def list_parts(self, *, q: Optional[str] = None, category: Optional[str] = None) -> List[SparePart]:
        stmt = select(SparePart)
        if q:
            pattern = f"%{q.strip()}%"
            stmt = stmt.where(or_(SparePart.part_code.ilike(pattern), SparePart.description.ilike(pattern)))
        if category:
            stmt = stmt.where(SparePart.category == category)
        stmt = stmt.order_by(SparePart.part_code)
        result = await self.scalars(stmt)
        return list(result)

    async def get_part(self, part_id: UUID) -> Optional[SparePart]:
        return await self.get(SparePart, part_id)

    async def get_by_code(self, part_code: str) -> Optional[SparePart]:
        stmt = select(SparePart).where(func.upper(SparePart.part_code) == part_code.strip().upper())
        return await self.scalar_one_or_none(stmt)

    async def count_low_stock(self) -> int:
        stmt = select(SparePart).where(SparePart.current_stock <= SparePart.min_stock)
        return await self.count(stmt)
