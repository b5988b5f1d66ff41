from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DeviceAttributes(BaseModel):
    """Category-specific device attributes; which ones apply depends on the category."""
    cpu: Optional[str] = None
    ram: Optional[str] = None
    ssd: Optional[str] = None
    gpu: Optional[str] = None
    screen_size: Optional[str] = None
    form_factor: Optional[str] = None
    raid_controller: Optional[str] = None
    network_ports: Optional[str] = None
    monitor_size: Optional[str] = None
    resolution: Optional[str] = None
    panel_type: Optional[str] = None
    refresh_rate: Optional[str] = None
    monitor_ports: Optional[str] = None
    storage_type: Optional[str] = None
    capacity: Optional[str] = None
    storage_form_factor: Optional[str] = None
    interface: Optional[str] = None
    rpm: Optional[str] = None
    nic_speed: Optional[str] = None
    port_count: Optional[str] = None
    connector_type: Optional[str] = None
    nic_interface: Optional[str] = None
    bracket_type: Optional[str] = None


class DeviceCreate(DeviceAttributes):
    """Device registered on an inward batch."""
    category: Optional[str] = Field(None, description="Device category, e.g. LAPTOP")
    brand: Optional[str] = Field(None)
    model: Optional[str] = Field(None)
    serial: Optional[str] = Field(None)
    condition_notes: Optional[str] = Field(None)


class DeviceRead(DeviceAttributes):
    """Device read model."""
    id: UUID
    barcode: str
    category: str
    brand: str
    model: str
    serial: Optional[str] = None
    condition_notes: Optional[str] = None
    ownership: str
    status: str
    location: Optional[str] = None
    grade: Optional[str] = None
    repair_required: bool
    repair_completed: bool
    paint_required: bool
    paint_completed: bool
    display_repair_required: bool
    display_repair_completed: bool
    battery_boost_required: bool
    battery_boost_completed: bool
    l3_repair_required: bool
    l3_repair_completed: bool
    inward_batch_id: Optional[UUID] = None
    outward_record_id: Optional[UUID] = None
    rack_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InwardBatchCreate(BaseModel):
    """New inward batch."""
    type: str = Field(..., description="REFURB_PURCHASE or RENTAL_RETURN")
    po_invoice_no: Optional[str] = Field(None)
    supplier: Optional[str] = Field(None)
    customer: Optional[str] = Field(None)
    rental_ref: Optional[str] = Field(None)
    email_subject: Optional[str] = Field(None)


class InwardBatchUpdate(BaseModel):
    po_invoice_no: Optional[str] = None
    supplier: Optional[str] = None
    customer: Optional[str] = None
    rental_ref: Optional[str] = None
    email_subject: Optional[str] = None
    vehicle_number: Optional[str] = None
    driver_name: Optional[str] = None


class BatchFromPurchaseOrder(BaseModel):
    """Receive a delivery against a purchase order."""
    purchase_order_id: UUID = Field(..., description="Purchase order being received")
    delivery_challan_url: Optional[str] = Field(None, description="Uploaded delivery challan key or URL")
    vehicle_number: Optional[str] = Field(None)
    driver_name: Optional[str] = Field(None)


class InwardBatchRead(BaseModel):
    """Inward batch read model."""
    id: UUID
    batch_id: str
    type: str
    date: datetime
    po_invoice_no: Optional[str] = None
    supplier: Optional[str] = None
    customer: Optional[str] = None
    rental_ref: Optional[str] = None
    email_subject: Optional[str] = None
    created_by_id: Optional[UUID] = None
    purchase_order_id: Optional[UUID] = None
    vehicle_number: Optional[str] = None
    driver_name: Optional[str] = None
    delivery_challan_url: Optional[str] = None
    verification_status: str
    verification_result: Optional[Dict[str, Any]] = None
    override_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InwardBatchDetail(InwardBatchRead):
    devices: List[DeviceRead] = Field(default_factory=list)


class VerificationOverride(BaseModel):
    reason: str = Field(..., description="Why the batch is accepted without a full match")


class BulkRowError(BaseModel):
    sheet: str
    row: int = Field(..., description="Spreadsheet row number (header is row 1)")
    errors: List[str]


class BulkUploadResult(BaseModel):
    created: int = Field(..., description="Devices added to the batch")
    failed: int = Field(..., description="Rows rejected")
    errors: List[BulkRowError] = Field(default_factory=list)
    barcodes: List[str] = Field(default_factory=list)


class DeviceAdded(BaseModel):
    device: DeviceRead
    warnings: List[str] = Field(default_factory=list, description="Advisory field-level warnings")
