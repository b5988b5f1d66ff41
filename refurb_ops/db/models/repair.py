from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from refurb_ops.db.base import Base, UUIDPkMixin, TimestampMixin
from refurb_ops.workflow.enums import PaintStatus, ParallelWorkStatus, RepairJobStatus

from .inventory import Device


def _device_fk() -> Mapped[uuid.UUID]:
    return mapped_column(Uuid, ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True)


def _user_fk() -> Mapped[Optional[uuid.UUID]]:
    return mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class RepairJob(UUIDPkMixin, TimestampMixin, Base):
    """Repair ticket opened at inspection and carried through L2 and rework."""
    __tablename__ = "repair_jobs"

    job_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    device_id: Mapped[uuid.UUID] = _device_fk()
    inspection_eng_id: Mapped[Optional[uuid.UUID]] = _user_fk()
    repair_eng_id: Mapped[Optional[uuid.UUID]] = _user_fk()
    l2_engineer_id: Mapped[Optional[uuid.UUID]] = _user_fk()
    reported_issues: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    root_cause: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    spares_required: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    spares_issued: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    repair_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    repair_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    tat_due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=RepairJobStatus.READY_FOR_REPAIR.value, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    device: Mapped[Device] = relationship(Device, lazy="selectin")


class PaintPanel(UUIDPkMixin, TimestampMixin, Base):
    """One cosmetic panel of a device sent through the paint shop."""
    __tablename__ = "paint_panels"

    device_id: Mapped[uuid.UUID] = _device_fk()
    panel_type: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=PaintStatus.AWAITING_PAINT.value, index=True)
    technician_id: Mapped[Optional[uuid.UUID]] = _user_fk()
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    device: Mapped[Device] = relationship(Device, lazy="selectin")


class ParallelJobMixin:
    """Columns shared by the specialist jobs an L2 engineer fans out."""
    status: Mapped[str] = mapped_column(Text, nullable=False, default=ParallelWorkStatus.PENDING.value, index=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class L3RepairJob(UUIDPkMixin, ParallelJobMixin, TimestampMixin, Base):
    __tablename__ = "l3_repair_jobs"

    device_id: Mapped[uuid.UUID] = _device_fk()
    assigned_to_id: Mapped[Optional[uuid.UUID]] = _user_fk()
    issue_type: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    device: Mapped[Device] = relationship(Device, lazy="selectin")


class DisplayRepairJob(UUIDPkMixin, ParallelJobMixin, TimestampMixin, Base):
    __tablename__ = "display_repair_jobs"

    device_id: Mapped[uuid.UUID] = _device_fk()
    assigned_to_id: Mapped[Optional[uuid.UUID]] = _user_fk()
    reported_issues: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_by_l2: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    device: Mapped[Device] = relationship(Device, lazy="selectin")


class BatteryBoostJob(UUIDPkMixin, ParallelJobMixin, TimestampMixin, Base):
    __tablename__ = "battery_boost_jobs"

    device_id: Mapped[uuid.UUID] = _device_fk()
    assigned_to_id: Mapped[Optional[uuid.UUID]] = _user_fk()
    initial_capacity: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_capacity: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    final_capacity: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_by_l2: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    device: Mapped[Device] = relationship(Device, lazy="selectin")
