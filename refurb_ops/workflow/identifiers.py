from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from .enums import DeviceCategory

BARCODE_PREFIXES = {
    DeviceCategory.LAPTOP: "L",
    DeviceCategory.DESKTOP: "D",
    DeviceCategory.WORKSTATION: "W",
    DeviceCategory.SERVER: "S",
    DeviceCategory.MONITOR: "M",
    DeviceCategory.STORAGE: "ST",
    DeviceCategory.NETWORKING_CARD: "N",
}

DEFAULT_TAT_DAYS = 5


# PUBLIC_INTERFACE
def generate_barcode_prefix(category: DeviceCategory | str) -> str:
    return BARCODE_PREFIXES[DeviceCategory(category)]


# PUBLIC_INTERFACE
def generate_barcode(category: DeviceCategory | str, brand: str, number: Optional[int] = None) -> str:
    """
    Build a device barcode such as L-DEL-0042.

    The numeric part is random in 0..9999 unless given; callers retry on collision.
    """
    if number is None:
        number = random.randint(0, 9999)
    brand_part = brand.strip()[:3].upper()
    return f"{generate_barcode_prefix(category)}-{brand_part}-{number:04d}"


def _sequence_id(prefix: str, year: int, count: int) -> str:
    return f"{prefix}-{year}-{count + 1:04d}"


# PUBLIC_INTERFACE
def generate_batch_id(year: int, count: int) -> str:
    """Next inward batch id given how many batches already exist."""
    return _sequence_id("BATCH", year, count)


# PUBLIC_INTERFACE
def generate_job_id(year: int, count: int) -> str:
    return _sequence_id("JOB", year, count)


# PUBLIC_INTERFACE
def generate_outward_id(year: int, count: int) -> str:
    return _sequence_id("OUT", year, count)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# PUBLIC_INTERFACE
def calculate_tat_due_date(start: datetime, days: int = DEFAULT_TAT_DAYS) -> datetime:
    return start + timedelta(days=days)


# PUBLIC_INTERFACE
def is_repair_overdue(tat_due_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Overdue only once the due moment has strictly passed."""
    if tat_due_date is None:
        return False
    now = as_utc(now or utcnow())
    return now > as_utc(tat_due_date)
