"""
Device lifecycle state machine.

Each function answers one question: after a workstation event, which status
must the device move to. They are pure and take plain values so services and
tests can call them without a database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .enums import (
    ChecklistStatus,
    DeviceStatus,
    MovementType,
    OutwardType,
    QCStatus,
    RepairJobStatus,
)


# PUBLIC_INTERFACE
def determine_next_status_after_inspection(
    reported_issues: Optional[str],
    spares_required: Optional[str],
    paint_required: bool,
    paint_panels: Sequence[str],
) -> DeviceStatus:
    """
    Route a freshly inspected device.

    Repair takes priority over paint: a device with issues or a spares request
    goes to the repair pipeline even when panels also need painting.
    """
    has_issues = bool((reported_issues or "").strip())
    repair_required = has_issues or bool(spares_required)
    needs_paint = bool(paint_required) and len(paint_panels) > 0

    if repair_required:
        return DeviceStatus.WAITING_FOR_SPARES if spares_required else DeviceStatus.READY_FOR_REPAIR
    if needs_paint:
        return DeviceStatus.IN_PAINT_SHOP
    return DeviceStatus.AWAITING_QC


# PUBLIC_INTERFACE
def determine_next_status_after_checklist_inspection(
    item_statuses: Iterable[ChecklistStatus | str],
    spares_required: Optional[str],
    paint_panels: Sequence[str] = (),
) -> DeviceStatus:
    """Checklist variant: any FAIL item counts as a reported issue."""
    has_failed = any(ChecklistStatus(s) == ChecklistStatus.FAIL for s in item_statuses)
    return determine_next_status_after_inspection(
        "failed checklist items" if has_failed else "",
        spares_required,
        paint_required=len(paint_panels) > 0,
        paint_panels=paint_panels,
    )


# PUBLIC_INTERFACE
def determine_next_status_after_repair(paint_required: bool, paint_completed: bool) -> DeviceStatus:
    """Repair done: outstanding paint work goes to the paint shop, otherwise QC."""
    if paint_required and not paint_completed:
        return DeviceStatus.IN_PAINT_SHOP
    return DeviceStatus.AWAITING_QC


# PUBLIC_INTERFACE
def determine_next_status_after_paint_collection(
    repair_required: bool, repair_completed: bool
) -> DeviceStatus:
    """Painted panels fitted: unfinished repair sends the device back to the bench."""
    if repair_required and not repair_completed:
        return DeviceStatus.UNDER_REPAIR
    return DeviceStatus.AWAITING_QC


# PUBLIC_INTERFACE
def determine_next_status_after_qc(status: QCStatus | str) -> DeviceStatus:
    if QCStatus(status) == QCStatus.PASSED:
        return DeviceStatus.READY_FOR_STOCK
    return DeviceStatus.READY_FOR_REPAIR


# PUBLIC_INTERFACE
def determine_next_status_after_outward(outward_type: OutwardType | str) -> DeviceStatus:
    if OutwardType(outward_type) == OutwardType.SALES:
        return DeviceStatus.STOCK_OUT_SOLD
    return DeviceStatus.STOCK_OUT_RENTAL


# PUBLIC_INTERFACE
def movement_type_for_outward(outward_type: OutwardType | str) -> MovementType:
    if OutwardType(outward_type) == OutwardType.SALES:
        return MovementType.SALES_OUTWARD
    return MovementType.RENTAL_OUTWARD


@dataclass(frozen=True)
class ReworkState:
    """Flags a device and its repair job take after failing QC."""

    device_status: DeviceStatus
    repair_completed: bool
    paint_completed: bool
    repair_job_status: RepairJobStatus


# PUBLIC_INTERFACE
def state_after_qc_failure(paint_required: bool) -> ReworkState:
    """Failed QC reopens repair; paint is redone only when it was part of the job."""
    return ReworkState(
        device_status=DeviceStatus.READY_FOR_REPAIR,
        repair_completed=False,
        paint_completed=not paint_required,
        repair_job_status=RepairJobStatus.READY_FOR_REPAIR,
    )
