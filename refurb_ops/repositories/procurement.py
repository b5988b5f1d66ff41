from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from refurb_ops.db.models.procurement import InwardBatch, PurchaseOrder
from .base import BaseRepository


class PurchaseOrderRepository(BaseRepository):
    """Repository for supplier purchase orders."""

    async def list_purchase_orders(
        self, *, is_addressed: Optional[bool] = None, limit: int = 100, offset: int = 0
    ) -> List[PurchaseOrder]:
        stmt = select(PurchaseOrder)
        if is_addressed is not None:
            stmt = stmt.where(PurchaseOrder.is_addressed.is_(is_addressed))
        stmt = stmt.order_by(PurchaseOrder.created_at.desc()).offset(offset).limit(limit)
        result = await self.scalars(stmt)
        return list(result)

    async def get_purchase_order(self, po_id: UUID) -> Optional[PurchaseOrder]:
        return await self.get(PurchaseOrder, po_id)

    async def get_by_number(self, po_number: str) -> Optional[PurchaseOrder]:
        return await self.scalar_one_or_none(select(PurchaseOrder).where(PurchaseOrder.po_number == po_number))

    async def list_aging(self, created_before: datetime) -> List[PurchaseOrder]:
        """Unaddressed purchase orders created on or before the cutoff."""
        stmt = (
            select(PurchaseOrder)
            .where(PurchaseOrder.is_addressed.is_(False))
            .where(PurchaseOrder.created_at <= created_before)
            .order_by(PurchaseOrder.created_at)
        )
        result = await self.scalars(stmt)
        return list(result)


class InwardBatchRepository(BaseRepository):
    """Repository for inward batches."""

    async def list_batches(self, *, type: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[InwardBatch]:
        stmt = select(InwardBatch)
        if type:
            stmt = stmt.where(InwardBatch.type == type)
        stmt = stmt.order_by(InwardBatch.date.desc()).offset(offset).limit(limit)
        result = await self.scalars(stmt)
        return list(result)

    async def get_batch(self, batch_pk: UUID) -> Optional[InwardBatch]:
        return await self.get(InwardBatch, batch_pk)

    async def count_for_year(self, year: int) -> int:
        stmt = select(InwardBatch.id).where(InwardBatch.batch_id.like(f"BATCH-{year}-%"))
        return await self.count(stmt)

    async def list_for_purchase_order(self, po_id: UUID) -> List[InwardBatch]:
        stmt = select(InwardBatch).where(InwardBatch.purchase_order_id == po_id).order_by(InwardBatch.date)
        result = await self.scalars(stmt)
        return list(result)
