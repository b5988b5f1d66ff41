from __future__ import annotations

from enum import Enum


class DeviceStatus(str, Enum):
    """Lifecycle status of a device on the shop floor."""

    RECEIVED = "RECEIVED"
    PENDING_INSPECTION = "PENDING_INSPECTION"
    WAITING_FOR_SPARES = "WAITING_FOR_SPARES"
    READY_FOR_REPAIR = "READY_FOR_REPAIR"
    UNDER_REPAIR = "UNDER_REPAIR"
    IN_PAINT_SHOP = "IN_PAINT_SHOP"
    AWAITING_QC = "AWAITING_QC"
    QC_PASSED = "QC_PASSED"
    QC_FAILED_REWORK = "QC_FAILED_REWORK"
    READY_FOR_STOCK = "READY_FOR_STOCK"
    STOCK_OUT_SOLD = "STOCK_OUT_SOLD"
    STOCK_OUT_RENTAL = "STOCK_OUT_RENTAL"
    SCRAPPED = "SCRAPPED"


# Devices that have left the building.
OUT_OF_STOCK_STATUSES = (
    DeviceStatus.STOCK_OUT_SOLD,
    DeviceStatus.STOCK_OUT_RENTAL,
    DeviceStatus.SCRAPPED,
)


class DeviceCategory(str, Enum):
    LAPTOP = "LAPTOP"
    DESKTOP = "DESKTOP"
    WORKSTATION = "WORKSTATION"
    SERVER = "SERVER"
    MONITOR = "MONITOR"
    STORAGE = "STORAGE"
    NETWORKING_CARD = "NETWORKING_CARD"


class Ownership(str, Enum):
    REFURB_STOCK = "REFURB_STOCK"
    RENTAL_RETURN = "RENTAL_RETURN"


class InwardType(str, Enum):
    REFURB_PURCHASE = "REFURB_PURCHASE"
    RENTAL_RETURN = "RENTAL_RETURN"


class Grade(str, Enum):
    A = "A"
    B = "B"


class QCStatus(str, Enum):
    PASSED = "PASSED"
    FAILED_REWORK = "FAILED_REWORK"


class MovementType(str, Enum):
    INWARD = "INWARD"
    MOVE = "MOVE"
    SALES_OUTWARD = "SALES_OUTWARD"
    RENTAL_OUTWARD = "RENTAL_OUTWARD"
    RETURN_TO_VENDOR = "RETURN_TO_VENDOR"
    SCRAP = "SCRAP"


class OutwardType(str, Enum):
    SALES = "SALES"
    RENTAL = "RENTAL"


class RepairJobStatus(str, Enum):
    """Repair job status mirrors the device pipeline stages a job passes through."""

    WAITING_FOR_SPARES = "WAITING_FOR_SPARES"
    READY_FOR_REPAIR = "READY_FOR_REPAIR"
    UNDER_REPAIR = "UNDER_REPAIR"
    IN_PAINT_SHOP = "IN_PAINT_SHOP"
    AWAITING_QC = "AWAITING_QC"
    COMPLETED = "COMPLETED"


class PaintStatus(str, Enum):
    AWAITING_PAINT = "AWAITING_PAINT"
    IN_PAINT = "IN_PAINT"
    READY_FOR_COLLECTION = "READY_FOR_COLLECTION"
    FITTED = "FITTED"


class ParallelWorkStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class L3IssueType(str, Enum):
    MOTHERBOARD = "MOTHERBOARD"
    DOMAIN_LOCK = "DOMAIN_LOCK"
    BIOS_LOCK = "BIOS_LOCK"
    POWER_ON_ISSUE = "POWER_ON_ISSUE"


class ChecklistStatus(str, Enum):
    PENDING = "PENDING"
    PASS = "PASS"
    FAIL = "FAIL"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class VerificationStatus(str, Enum):
    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"
    PARTIAL = "PARTIAL"
    SKIPPED = "SKIPPED"


class RackStage(str, Enum):
    RECEIVED = "RECEIVED"
    WAITING_FOR_REPAIR = "WAITING_FOR_REPAIR"
    UNDER_REPAIR = "UNDER_REPAIR"
    AWAITING_QC = "AWAITING_QC"
    READY_FOR_DISPATCH = "READY_FOR_DISPATCH"


class Role(str, Enum):
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    MIS_WAREHOUSE_EXECUTIVE = "MIS_WAREHOUSE_EXECUTIVE"
    WAREHOUSE_MANAGER = "WAREHOUSE_MANAGER"
    INSPECTION_ENGINEER = "INSPECTION_ENGINEER"
    REPAIR_ENGINEER = "REPAIR_ENGINEER"
    L2_ENGINEER = "L2_ENGINEER"
    L3_ENGINEER = "L3_ENGINEER"
    DISPLAY_TECHNICIAN = "DISPLAY_TECHNICIAN"
    BATTERY_TECHNICIAN = "BATTERY_TECHNICIAN"
    PAINT_SHOP_TECHNICIAN = "PAINT_SHOP_TECHNICIAN"
    QC_ENGINEER = "QC_ENGINEER"


class ActivityAction(str, Enum):
    CREATED_INWARD = "CREATED_INWARD"
    UPDATED_INWARD = "UPDATED_INWARD"
    VERIFIED_INWARD = "VERIFIED_INWARD"
    ADDED_DEVICE = "ADDED_DEVICE"
    UPDATED_DEVICE = "UPDATED_DEVICE"
    COMPLETED_INSPECTION = "COMPLETED_INSPECTION"
    REQUESTED_SPARES = "REQUESTED_SPARES"
    ISSUED_SPARES = "ISSUED_SPARES"
    STARTED_REPAIR = "STARTED_REPAIR"
    UPDATED_REPAIR = "UPDATED_REPAIR"
    COMPLETED_REPAIR = "COMPLETED_REPAIR"
    SENT_TO_PAINT = "SENT_TO_PAINT"
    COLLECTED_FROM_PAINT = "COLLECTED_FROM_PAINT"
    COMPLETED_PAINT = "COMPLETED_PAINT"
    STARTED_PARALLEL_WORK = "STARTED_PARALLEL_WORK"
    COMPLETED_PARALLEL_WORK = "COMPLETED_PARALLEL_WORK"
    COMPLETED_QC = "COMPLETED_QC"
    MOVED_STOCK = "MOVED_STOCK"
    CREATED_OUTWARD = "CREATED_OUTWARD"
    UPDATED_OUTWARD = "UPDATED_OUTWARD"
    CREATED_USER = "CREATED_USER"
    UPDATED_USER = "UPDATED_USER"
    DELETED_USER = "DELETED_USER"
    LOGIN = "LOGIN"
    CREATED_PURCHASE_ORDER = "CREATED_PURCHASE_ORDER"
    DELETED_PURCHASE_ORDER = "DELETED_PURCHASE_ORDER"
    ADJUSTED_SPARE_STOCK = "ADJUSTED_SPARE_STOCK"
