from __future__ import annotations

import re
from enum import Enum
from typing import List, NamedTuple, Optional

from .results import ValidationResult, fail, ok

_PART_CODE_RE = re.compile(r"^[A-Z0-9\-_]+$", re.IGNORECASE)


class StockStatus(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    OVERSTOCK = "OVERSTOCK"


class BinLocation(NamedTuple):
    rack: str
    shelf: str
    position: str


# PUBLIC_INTERFACE
def validate_part_code(part_code: Optional[str]) -> bool:
    if not part_code or not part_code.strip():
        return False
    return bool(_PART_CODE_RE.match(part_code.strip()))


def is_low_stock(current_stock: int, min_stock: int) -> bool:
    return current_stock <= min_stock


def is_overstock(current_stock: int, max_stock: int) -> bool:
    return current_stock > max_stock


# PUBLIC_INTERFACE
def get_stock_status(current_stock: int, min_stock: int, max_stock: int) -> StockStatus:
    """LOW wins over OVERSTOCK when the configured levels overlap."""
    if is_low_stock(current_stock, min_stock):
        return StockStatus.LOW
    if is_overstock(current_stock, max_stock):
        return StockStatus.OVERSTOCK
    return StockStatus.NORMAL


# PUBLIC_INTERFACE
def validate_stock_levels(min_stock: int, max_stock: int, current_stock: int) -> ValidationResult:
    if min_stock < 0:
        return fail("Minimum stock cannot be negative")
    if max_stock < 0:
        return fail("Maximum stock cannot be negative")
    if current_stock < 0:
        return fail("Current stock cannot be negative")
    if min_stock > max_stock:
        return fail("Minimum stock cannot exceed maximum stock")
    return ok()


def calculate_new_stock(current_stock: int, adjustment: int) -> int:
    return current_stock + adjustment


# PUBLIC_INTERFACE
def is_valid_stock_adjustment(current_stock: int, adjustment: int) -> bool:
    return calculate_new_stock(current_stock, adjustment) >= 0


# PUBLIC_INTERFACE
def can_issue_part(available_stock: int, requested_quantity: int) -> bool:
    return requested_quantity > 0 and available_stock >= requested_quantity


def format_bin_location(rack: str, shelf: str, position: str) -> str:
    return f"{rack.upper()}-{shelf}-{position}"


# PUBLIC_INTERFACE
def parse_bin_location(bin_location: str) -> Optional[BinLocation]:
    """Split RACK-shelf-position; None unless all three parts are present."""
    parts = [p.strip() for p in bin_location.split("-")]
    if len(parts) != 3 or not all(parts):
        return None
    return BinLocation(*parts)


# PUBLIC_INTERFACE
def parse_compatible_models(models: Optional[str]) -> List[str]:
    if not models:
        return []
    return [m.strip() for m in models.split(",") if m.strip()]


# PUBLIC_INTERFACE
def is_compatible(device_model: str, compatible_models: Optional[str]) -> bool:
    """Loose substring match either way; a part without a model list fits everything."""
    models = parse_compatible_models(compatible_models)
    if not models:
        return True
    device = device_model.lower()
    return any(device in m.lower() or m.lower() in device for m in models)
