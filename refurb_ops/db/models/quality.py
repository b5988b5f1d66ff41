from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from refurb_ops.db.base import Base, UUIDPkMixin, TimestampMixin
from refurb_ops.workflow.enums import ChecklistStatus

from .inventory import Device


class ChecklistItem(UUIDPkMixin, TimestampMixin, Base):
    """Result of one inspection checklist line for a device."""
    __tablename__ = "checklist_items"
    __table_args__ = (
        UniqueConstraint("device_id", "item_index", name="uq_checklist_items_device_index"),
    )

    device_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_index: Mapped[int] = mapped_column(Integer, nullable=False)
    item_text: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=ChecklistStatus.PENDING.value)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class QCRecord(UUIDPkMixin, TimestampMixin, Base):
    """Outcome of a quality-control pass over a device."""
    __tablename__ = "qc_records"

    device_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    qc_eng_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    checklist_results: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    final_grade: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    device: Mapped[Device] = relationship(Device, lazy="selectin")
