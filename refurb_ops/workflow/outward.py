from __future__ import annotations

import re
from typing import List, Optional, Sequence, TypeVar

from .enums import DeviceStatus, OutwardType
from .results import ValidationResult, ok

_CARRIER_RE = re.compile(r"fedex|ups|dhl|bluedart|dtdc|gati", re.IGNORECASE)
_TRACKING_RE = re.compile(r"\d{8,}")

T = TypeVar("T")


def _is_outward_type(value: Optional[str]) -> bool:
    try:
        OutwardType(value)
    except ValueError:
        return False
    return True


# PUBLIC_INTERFACE
def validate_outward_data(
    outward_type: Optional[str],
    customer: Optional[str],
    reference: Optional[str],
    device_ids: Sequence[object],
) -> ValidationResult:
    """Header fields and device selection for a dispatch."""
    errors: List[str] = []
    if not outward_type or not _is_outward_type(outward_type):
        errors.append("Invalid outward type")
    if not customer or not customer.strip():
        errors.append("Customer name is required")
    if not reference or not reference.strip():
        errors.append("Reference (Invoice/Rental Ref) is required")
    if not device_ids:
        errors.append("At least one device must be selected")
    return ValidationResult(errors=errors)


# PUBLIC_INTERFACE
def can_device_be_dispatched(status: DeviceStatus | str) -> bool:
    return DeviceStatus(status) == DeviceStatus.READY_FOR_STOCK


def filter_dispatchable(devices: Sequence[T]) -> List[T]:
    """Keep objects whose `status` allows dispatch."""
    return [d for d in devices if can_device_be_dispatched(getattr(d, "status"))]


def filter_not_dispatchable(devices: Sequence[T]) -> List[T]:
    return [d for d in devices if not can_device_be_dispatched(getattr(d, "status"))]


# PUBLIC_INTERFACE
def validate_shipping_details(details: Optional[str]) -> ValidationResult:
    """Shipping details are optional; only warnings are produced."""
    if not details or not details.strip():
        return ok("Shipping details are empty - consider adding carrier and tracking info")
    warnings: List[str] = []
    if not _CARRIER_RE.search(details):
        warnings.append("No carrier name detected")
    if not _TRACKING_RE.search(details):
        warnings.append("No tracking number detected")
    return ok(*warnings)


# PUBLIC_INTERFACE
def validate_dual_verification(packed_by_id: Optional[str], checked_by_id: Optional[str]) -> ValidationResult:
    if not packed_by_id and not checked_by_id:
        return ok("Both Packed By and Checked By are empty")
    if packed_by_id and checked_by_id and packed_by_id == checked_by_id:
        return ok("Same person packed and checked - consider dual verification")
    return ok()


def validate_outward_update(customer: Optional[str]) -> ValidationResult:
    """Updates may leave the customer untouched (None) but never blank it."""
    result = ValidationResult()
    if customer is not None and not customer.strip():
        result.errors.append("Customer cannot be empty")
    return result
