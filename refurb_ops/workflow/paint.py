from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .enums import OUT_OF_STOCK_STATUSES, DeviceStatus, PaintStatus
from .results import ValidationResult, fail, ok

PANEL_TYPES = (
    "Top Cover",
    "Bottom Cover",
    "Palmrest",
    "Bezel",
    "Hinge Cover",
    "LCD Back",
)

_NEXT_STATUS: Dict[PaintStatus, Optional[PaintStatus]] = {
    PaintStatus.AWAITING_PAINT: PaintStatus.IN_PAINT,
    PaintStatus.IN_PAINT: PaintStatus.READY_FOR_COLLECTION,
    PaintStatus.READY_FOR_COLLECTION: PaintStatus.FITTED,
    PaintStatus.FITTED: None,
}

ACTIVE_PAINT_STATUSES = (PaintStatus.AWAITING_PAINT, PaintStatus.IN_PAINT)

# Statuses an L2 engineer holds a device in while its panels are out at paint
L2_BENCH_STATUSES = (DeviceStatus.UNDER_REPAIR, DeviceStatus.WAITING_FOR_SPARES)

# Past the paint shop for good
_PAST_PAINT_STATUSES = (
    DeviceStatus.AWAITING_QC,
    DeviceStatus.QC_PASSED,
    DeviceStatus.READY_FOR_STOCK,
) + OUT_OF_STOCK_STATUSES


def is_valid_panel_status(status: str) -> bool:
    return status in {s.value for s in PaintStatus}


# PUBLIC_INTERFACE
def get_next_panel_status(current: PaintStatus | str) -> Optional[PaintStatus]:
    """Panels move strictly forward one step at a time; FITTED is final."""
    return _NEXT_STATUS[PaintStatus(current)]


# PUBLIC_INTERFACE
def can_transition_panel_status(current: PaintStatus | str, target: PaintStatus | str) -> bool:
    nxt = get_next_panel_status(current)
    return nxt is not None and nxt == PaintStatus(target)


def _statuses(panel_statuses: Iterable[PaintStatus | str]) -> List[PaintStatus]:
    return [PaintStatus(s) for s in panel_statuses]


# PUBLIC_INTERFACE
def are_panels_ready_for_collection(panel_statuses: Iterable[PaintStatus | str]) -> bool:
    """Every panel is back from paint and at least one still needs fitting."""
    statuses = _statuses(panel_statuses)
    return (
        all(s in (PaintStatus.READY_FOR_COLLECTION, PaintStatus.FITTED) for s in statuses)
        and PaintStatus.READY_FOR_COLLECTION in statuses
    )


# PUBLIC_INTERFACE
def are_panels_complete(panel_statuses: Iterable[PaintStatus | str]) -> bool:
    statuses = _statuses(panel_statuses)
    return bool(statuses) and all(s == PaintStatus.FITTED for s in statuses)


def has_active_panels(panel_statuses: Iterable[PaintStatus | str]) -> bool:
    return any(s in ACTIVE_PAINT_STATUSES for s in _statuses(panel_statuses))


# PUBLIC_INTERFACE
def should_show_in_paint_shop(
    repair_required: bool,
    repair_completed: bool,
    panel_statuses: Sequence[PaintStatus | str],
) -> bool:
    """
    A device appears in the paint queue once its repair is out of the way.

    Devices that never needed repair show immediately; the others only after the
    repair is completed. In both cases at least one panel must still be awaiting
    or in paint.
    """
    repair_condition_met = not repair_required or repair_completed
    return repair_condition_met and has_active_panels(panel_statuses)


# PUBLIC_INTERFACE
def is_device_in_paint_shop(
    device_status: DeviceStatus | str,
    repair_required: bool,
    repair_completed: bool,
    panel_statuses: Sequence[PaintStatus | str],
    l2_claimed: bool,
) -> bool:
    """
    Whether the paint shop may work on a device's panels.

    True for devices routed to IN_PAINT_SHOP, for devices on an L2 bench whose
    panels went out in parallel with the repair, and for devices still ahead of
    QC that pass should_show_in_paint_shop.
    """
    status = DeviceStatus(device_status)
    if status == DeviceStatus.IN_PAINT_SHOP:
        return True
    if l2_claimed and status in L2_BENCH_STATUSES:
        return True
    return status not in _PAST_PAINT_STATUSES and should_show_in_paint_shop(
        repair_required, repair_completed, panel_statuses
    )


# PUBLIC_INTERFACE
def can_collect_from_paint(
    device_status: DeviceStatus | str,
    panel_statuses: Sequence[PaintStatus | str],
    l2_claimed: bool,
) -> ValidationResult:
    status = DeviceStatus(device_status)
    in_shop = status == DeviceStatus.IN_PAINT_SHOP or (l2_claimed and status == DeviceStatus.UNDER_REPAIR)
    if not in_shop:
        return fail(f"Device is not in the paint shop. Current status: {status.value}")
    if not panel_statuses:
        return fail("No paint panels for this device")
    if not are_panels_ready_for_collection(panel_statuses):
        return fail("All panels must be ready for collection")
    return ok()


# PUBLIC_INTERFACE
def calculate_paint_progress(panel_statuses: Iterable[PaintStatus | str]) -> Dict[str, int]:
    statuses = _statuses(panel_statuses)
    progress = {s.value: 0 for s in PaintStatus}
    for s in statuses:
        progress[s.value] += 1
    progress["total"] = len(statuses)
    return progress
