from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import ConflictError, DomainError, NotFoundError
from refurb_ops.db.models.inventory import Rack
from refurb_ops.db.models.procurement import PurchaseOrder
from refurb_ops.db.models.security import User
from refurb_ops.repositories.inventory import RackRepository
from refurb_ops.repositories.procurement import InwardBatchRepository, PurchaseOrderRepository
from refurb_ops.schemas.procurement import (
    PurchaseOrderCreate,
    PurchaseOrderDetail,
    PurchaseOrderRead,
    RackCreate,
    RackRead,
    RackStageStats,
    RackUpdate,
)
from refurb_ops.workflow.devices import normalize_category
from refurb_ops.workflow.enums import ActivityAction, RackStage
from .activity import ActivityService
from .base import BaseService

logger = logging.getLogger(__name__)

RACK_PREFIXES = {
    RackStage.RECEIVED: "RCV",
    RackStage.WAITING_FOR_REPAIR: "WFR",
    RackStage.UNDER_REPAIR: "UR",
    RackStage.AWAITING_QC: "AQC",
    RackStage.READY_FOR_DISPATCH: "RFD",
}
DEFAULT_RACKS_PER_STAGE = 2
DEFAULT_RACK_CAPACITY = 20


def default_rack_codes() -> List[Tuple[str, RackStage]]:
    return [
        (f"{prefix}-{n:02d}", stage)
        for stage, prefix in RACK_PREFIXES.items()
        for n in range(1, DEFAULT_RACKS_PER_STAGE + 1)
    ]


def _stage(value: str) -> RackStage:
    try:
        return RackStage(value)
    except ValueError:
        raise DomainError(f"Invalid rack stage: {value}")


class PurchaseOrderService(BaseService):
    """Supplier purchase orders awaiting delivery."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.orders = PurchaseOrderRepository(session)
        self.batches = InwardBatchRepository(session)
        self.racks = RackRepository(session)
        self.activity = ActivityService(session)

    async def get_order(self, po_id: UUID) -> PurchaseOrder:
        po = await self.orders.get_purchase_order(po_id)
        if po is None:
            raise NotFoundError("Purchase order not found")
        return po

    # PUBLIC_INTERFACE
    async def create(self, payload: PurchaseOrderCreate, actor: User) -> PurchaseOrder:
        po_number = payload.po_number.strip()
        if await self.orders.get_by_number(po_number) is not None:
            raise ConflictError(f"Purchase order {po_number} already exists")
        items = []
        for item in payload.expected_items:
            category = normalize_category(item.category)
            if category is None:
                raise DomainError(f"Invalid category: {item.category}")
            items.append({**item.model_dump(), "category": category.value})

        po = PurchaseOrder(
            po_number=po_number,
            supplier_code=payload.supplier_code,
            supplier_name=payload.supplier_name.strip(),
            expected_items=items,
            expected_devices=sum(i["quantity"] for i in items),
            pdf_url=payload.pdf_url,
            created_by_id=actor.id,
        )
        await self.orders.add(po)
        await self.orders.commit()
        await self.activity.record(
            ActivityAction.CREATED_PURCHASE_ORDER,
            user_id=actor.id,
            details=f"Created purchase order {po.po_number} ({po.expected_devices} devices)",
            metadata={"po_number": po.po_number},
        )
        return po

    # PUBLIC_INTERFACE
    async def list_orders(
        self, *, is_addressed: Optional[bool] = None, limit: int = 100, offset: int = 0
    ) -> List[PurchaseOrder]:
        return await self.orders.list_purchase_orders(is_addressed=is_addressed, limit=limit, offset=offset)

    # PUBLIC_INTERFACE
    async def get_detail(self, po_id: UUID) -> PurchaseOrderDetail:
        po = await self.get_order(po_id)
        batches = await self.batches.list_for_purchase_order(po.id)
        return PurchaseOrderDetail(
            **PurchaseOrderRead.model_validate(po).model_dump(),
            available_rack_capacity=await self.racks.available_capacity(RackStage.RECEIVED.value),
            batch_ids=[b.id for b in batches],
        )

    # PUBLIC_INTERFACE
    async def delete(self, po_id: UUID, actor: User) -> None:
        po = await self.get_order(po_id)
        if po.is_addressed:
            raise DomainError("Cannot delete a purchase order that has already been received")
        await self.orders.delete(po)
        await self.orders.commit()
        await self.activity.record(
            ActivityAction.DELETED_PURCHASE_ORDER,
            user_id=actor.id,
            details=f"Deleted purchase order {po.po_number}",
            metadata={"po_number": po.po_number},
        )


class RackService(BaseService):
    """Racks on the floor and their occupancy per stage."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.racks = RackRepository(session)

    async def get_rack(self, rack_id: UUID) -> Rack:
        rack = await self.racks.get_rack(rack_id)
        if rack is None:
            raise NotFoundError("Rack not found")
        return rack

    async def _read(self, rack: Rack) -> RackRead:
        used = (await self.racks.occupancy([rack]))[rack.id]
        return RackRead.model_validate(rack).model_copy(update={"current_count": used})

    # PUBLIC_INTERFACE
    async def list_racks(self, *, stage: Optional[str] = None) -> List[RackRead]:
        racks = await self.racks.list_racks(stage=_stage(stage).value if stage else None)
        used = await self.racks.occupancy(racks)
        return [RackRead.model_validate(r).model_copy(update={"current_count": used[r.id]}) for r in racks]

    # PUBLIC_INTERFACE
    async def create(self, payload: RackCreate) -> RackRead:
        code = payload.rack_code.strip().upper()
        if await self.racks.get_by_code(code) is not None:
            raise ConflictError(f"Rack {code} already exists")
        rack = Rack(
            rack_code=code,
            stage=_stage(payload.stage).value,
            capacity=payload.capacity,
            location=payload.location,
        )
        await self.racks.add(rack)
        await self.racks.commit()
        return await self._read(rack)

    # PUBLIC_INTERFACE
    async def update(self, rack_id: UUID, payload: RackUpdate) -> RackRead:
        rack = await self.get_rack(rack_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("capacity") is not None:
            used = (await self.racks.occupancy([rack]))[rack.id]
            if changes["capacity"] < used:
                raise DomainError(f"Capacity cannot be less than current device count ({used})")
        if changes.get("stage") is not None:
            changes["stage"] = _stage(changes["stage"]).value
        for key, value in changes.items():
            if value is not None:
                setattr(rack, key, value)
        await self.racks.commit()
        return await self._read(rack)

    # PUBLIC_INTERFACE
    async def delete(self, rack_id: UUID) -> None:
        rack = await self.get_rack(rack_id)
        used = (await self.racks.occupancy([rack]))[rack.id]
        if used:
            raise DomainError(f"Cannot delete rack with {used} devices. Move devices first.")
        await self.racks.delete(rack)
        await self.racks.commit()

    # PUBLIC_INTERFACE
    async def stage_stats(self) -> List[RackStageStats]:
        racks = await self.racks.list_racks(active_only=True)
        used = await self.racks.occupancy(racks)
        stats = []
        for stage in RackStage:
            stage_racks = [r for r in racks if r.stage == stage.value]
            stats.append(
                RackStageStats(
                    stage=stage.value,
                    total=len(stage_racks),
                    used=sum(used[r.id] for r in stage_racks),
                    capacity=sum(r.capacity for r in stage_racks),
                )
            )
        return stats

    # PUBLIC_INTERFACE
    async def initialize_defaults(self) -> int:
        """Create any missing default racks; returns how many were added."""
        created = 0
        for code, stage in default_rack_codes():
            if await self.racks.get_by_code(code) is not None:
                continue
            await self.racks.add(Rack(rack_code=code, stage=stage.value, capacity=DEFAULT_RACK_CAPACITY))
            created += 1
        await self.racks.commit()
        logger.info("Initialized %d default racks", created)
        return created
