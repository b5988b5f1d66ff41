from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from .enums import DeviceCategory, DeviceStatus
from .results import ValidationResult, fail, ok

CATEGORY_FIELDS: Dict[DeviceCategory, List[str]] = {
    DeviceCategory.LAPTOP: ["cpu", "ram", "ssd", "gpu", "screen_size"],
    DeviceCategory.DESKTOP: ["cpu", "ram", "ssd", "gpu"],
    DeviceCategory.WORKSTATION: ["cpu", "ram", "ssd", "gpu"],
    DeviceCategory.SERVER: ["cpu", "ram", "form_factor", "raid_controller", "network_ports"],
    DeviceCategory.MONITOR: ["monitor_size", "resolution", "panel_type", "refresh_rate", "monitor_ports"],
    DeviceCategory.STORAGE: ["storage_type", "capacity", "storage_form_factor", "interface", "rpm"],
    DeviceCategory.NETWORKING_CARD: ["nic_speed", "port_count", "connector_type", "nic_interface", "bracket_type"],
}

COMPUTE_CATEGORIES = (
    DeviceCategory.LAPTOP,
    DeviceCategory.DESKTOP,
    DeviceCategory.WORKSTATION,
    DeviceCategory.SERVER,
)

_SERIAL_RE = re.compile(r"^[A-Za-z0-9\-_]{3,50}$")
_RESOLUTION_RE = re.compile(r"^\d{3,5}[x×]\d{3,5}$", re.IGNORECASE)
_REFRESH_RATE_RE = re.compile(r"^\d+\s*Hz$", re.IGNORECASE)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


# PUBLIC_INTERFACE
def validate_required_fields(data: Mapping[str, Any]) -> ValidationResult:
    """Category, brand and model are mandatory for every device."""
    errors: List[str] = []
    if not data.get("category"):
        errors.append("Category is required")
    if _blank(data.get("brand")):
        errors.append("Brand is required")
    if _blank(data.get("model")):
        errors.append("Model is required")
    return ValidationResult(errors=errors)


# PUBLIC_INTERFACE
def normalize_category(category: Optional[str]) -> Optional[DeviceCategory]:
    """Map free text such as 'Networking Card' to DeviceCategory.NETWORKING_CARD."""
    if not category:
        return None
    normalized = re.sub(r"\s+", "_", str(category).strip().upper())
    try:
        return DeviceCategory(normalized)
    except ValueError:
        return None


def is_valid_category(category: str) -> bool:
    return normalize_category(category) is not None


# PUBLIC_INTERFACE
def get_category_specific_fields(category: DeviceCategory | str) -> List[str]:
    return list(CATEGORY_FIELDS.get(DeviceCategory(category), []))


def is_compute_category(category: DeviceCategory | str) -> bool:
    return DeviceCategory(category) in COMPUTE_CATEGORIES


def validate_serial(serial: Optional[str]) -> bool:
    """Serial numbers are optional; when present they must look like one."""
    if not serial:
        return True
    return bool(_SERIAL_RE.match(serial.strip()))


def validate_storage_rpm(storage_type: Optional[str], rpm: Optional[str]) -> ValidationResult:
    if storage_type == "HDD" and not rpm:
        return ok("RPM is recommended for HDD")
    if storage_type in ("SSD", "NVMe") and rpm:
        return ok(f"RPM is not applicable for {storage_type}")
    return ok()


def validate_resolution(resolution: Optional[str]) -> bool:
    if not resolution:
        return True
    return bool(_RESOLUTION_RE.match(resolution.strip()))


def validate_refresh_rate(refresh_rate: Optional[str]) -> bool:
    if not refresh_rate:
        return True
    return bool(_REFRESH_RATE_RE.match(refresh_rate.strip()))


# PUBLIC_INTERFACE
def validate_device_data(data: Mapping[str, Any]) -> ValidationResult:
    """
    Full check used when a device is registered on an inward batch.

    Combines required fields with the format checks for the optional attributes.
    Storage RPM mismatches are reported as warnings only.
    """
    result = validate_required_fields(data)
    category = normalize_category(data.get("category"))
    if data.get("category") and category is None:
        result.errors.append(f"Invalid category: {data.get('category')}")
    if not validate_serial(data.get("serial")):
        result.errors.append("Serial number must be 3-50 letters, digits, '-' or '_'")
    if category == DeviceCategory.MONITOR:
        if not validate_resolution(data.get("resolution")):
            result.errors.append("Resolution must look like 1920x1080")
        if not validate_refresh_rate(data.get("refresh_rate")):
            result.errors.append("Refresh rate must look like 60Hz")
    if category == DeviceCategory.STORAGE:
        result.warnings.extend(
            validate_storage_rpm(data.get("storage_type"), data.get("rpm")).warnings
        )
    return result


# PUBLIC_INTERFACE
def validate_bulk_device(data: Mapping[str, Any]) -> ValidationResult:
    """Row-level check for spreadsheet uploads."""
    errors: List[str] = []
    if normalize_category(data.get("category")) is None:
        errors.append(f"Invalid category: {data.get('category')}")
    if _blank(data.get("brand")):
        errors.append("Brand is required")
    if _blank(data.get("model")):
        errors.append("Model is required")
    return ValidationResult(errors=errors)


def can_edit_device(status: DeviceStatus | str) -> bool:
    return DeviceStatus(status) == DeviceStatus.RECEIVED


# PUBLIC_INTERFACE
def validate_device_update(status: DeviceStatus | str, updates: Mapping[str, Any]) -> ValidationResult:
    """Devices may only be edited before they enter the pipeline."""
    if not can_edit_device(status):
        return fail("Can only edit devices in RECEIVED status")
    if "brand" in updates and updates["brand"] is not None and not str(updates["brand"]).strip():
        return fail("Brand cannot be empty")
    if "model" in updates and updates["model"] is not None and not str(updates["model"]).strip():
        return fail("Model cannot be empty")
    return ok()


def validate_barcode_input(barcode: Optional[str]) -> ValidationResult:
    if _blank(barcode):
        return fail("Please enter a barcode before starting")
    return ok()
