from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from refurb_ops.db.base import Base, UUIDPkMixin, TimestampMixin, utcnow
from refurb_ops.workflow.enums import DeviceStatus


class Rack(UUIDPkMixin, TimestampMixin, Base):
    """Physical rack on the floor; devices are parked in racks per workflow stage."""
    __tablename__ = "racks"

    rack_code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    stage: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class Device(UUIDPkMixin, TimestampMixin, Base):
    """A single unit of refurbished hardware tracked by barcode."""
    __tablename__ = "devices"

    barcode: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    category: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    brand: Mapped[str] = mapped_column(Text, nullable=False)
    model: Mapped[str] = mapped_column(Text, nullable=False)

    # Compute
    cpu: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ram: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ssd: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gpu: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    screen_size: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Server
    form_factor: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    raid_controller: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    network_ports: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Monitor
    monitor_size: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    panel_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refresh_rate: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    monitor_ports: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Storage
    storage_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    capacity: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    storage_form_factor: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    interface: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rpm: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Networking card
    nic_speed: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    port_count: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    connector_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    nic_interface: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bracket_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    serial: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    condition_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ownership: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=DeviceStatus.RECEIVED.value, index=True)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    grade: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    repair_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    repair_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paint_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paint_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_repair_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_repair_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    battery_boost_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    battery_boost_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    l3_repair_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    l3_repair_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    inward_batch_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("inward_batches.id", ondelete="SET NULL"), nullable=True, index=True
    )
    outward_record_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("outward_records.id", ondelete="SET NULL"), nullable=True, index=True
    )
    rack_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("racks.id", ondelete="SET NULL"), nullable=True, index=True
    )


class StockMovement(UUIDPkMixin, TimestampMixin, Base):
    """Audit trail of where a device physically went."""
    __tablename__ = "stock_movements"

    device_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(Text, nullable=False)
    from_location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    to_location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class SparePart(UUIDPkMixin, TimestampMixin, Base):
    """Stocked spare part with reorder levels."""
    __tablename__ = "spare_parts"

    part_code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    compatible_models: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    min_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bin_location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
