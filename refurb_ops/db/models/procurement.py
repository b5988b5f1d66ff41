from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from refurb_ops.db.base import Base, JSONType, UUIDPkMixin, TimestampMixin, utcnow
from refurb_ops.workflow.enums import VerificationStatus


class PurchaseOrder(UUIDPkMixin, TimestampMixin, Base):
    """Supplier purchase order listing the devices expected on delivery."""
    __tablename__ = "purchase_orders"

    po_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    supplier_code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    supplier_name: Mapped[str] = mapped_column(Text, nullable=False)
    expected_devices: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # [{"category", "brand", "model", "quantity"}]
    expected_items: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    pdf_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_addressed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class InwardBatch(UUIDPkMixin, TimestampMixin, Base):
    """A received shipment: either a refurb purchase or returned rental units."""
    __tablename__ = "inward_batches"

    batch_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    po_invoice_no: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    supplier: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rental_ref: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email_subject: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    purchase_order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("purchase_orders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    vehicle_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    driver_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivery_challan_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verification_status: Mapped[str] = mapped_column(
        Text, nullable=False, default=VerificationStatus.UNVERIFIED.value
    )
    verification_result: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    override_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
