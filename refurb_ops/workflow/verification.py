"""
Shipment verification: compare what a purchase order promised with what
actually arrived in an inward batch.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .enums import VerificationStatus


@dataclass
class ExpectedItem:
    category: str
    brand: str
    model: str
    quantity: int = 1

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExpectedItem":
        return cls(
            category=str(data.get("category") or "").upper(),
            brand=str(data.get("brand") or ""),
            model=str(data.get("model") or ""),
            quantity=int(data.get("quantity") or 0),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "brand": self.brand, "model": self.model, "quantity": self.quantity}


@dataclass
class ReceivedDevice:
    barcode: str
    category: str
    brand: str
    model: str
    serial: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "barcode": self.barcode,
            "category": self.category,
            "brand": self.brand,
            "model": self.model,
            "serial": self.serial,
        }


@dataclass
class VerificationOutcome:
    status: VerificationStatus
    match_percentage: int
    matched: List[Dict[str, Any]] = field(default_factory=list)
    missing: List[Dict[str, Any]] = field(default_factory=list)
    extra: List[Dict[str, Any]] = field(default_factory=list)
    discrepancies: List[Dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "match_percentage": self.match_percentage,
            "matched": self.matched,
            "missing": self.missing,
            "extra": self.extra,
            "discrepancies": self.discrepancies,
        }


def _model_matches(expected: str, received: str) -> bool:
    expected, received = expected.strip().lower(), received.strip().lower()
    if not expected or not received:
        return expected == received
    return expected in received or received in expected


def _matches(item: ExpectedItem, device: ReceivedDevice) -> bool:
    return (
        item.category == device.category.upper()
        and item.brand.strip().lower() == device.brand.strip().lower()
        and _model_matches(item.model, device.model)
    )


# PUBLIC_INTERFACE
def verify_shipment(
    expected_items: Sequence[ExpectedItem],
    devices: Sequence[ReceivedDevice],
) -> VerificationOutcome:
    """
    Match received devices against expected purchase order lines.

    A device satisfies a line when the category is equal, the brand is equal
    ignoring case, and either model name contains the other. Each line absorbs
    at most `quantity` devices. The match percentage is matched units over
    expected units; the batch is VERIFIED only when nothing is missing and
    nothing unexpected arrived.
    """
    remaining = [item.quantity for item in expected_items]
    matched: List[Dict[str, Any]] = []
    extra: List[Dict[str, Any]] = []

    for device in devices:
        for idx, item in enumerate(expected_items):
            if remaining[idx] > 0 and _matches(item, device):
                remaining[idx] -= 1
                matched.append({"expected": item.as_dict(), "received": device.as_dict()})
                break
        else:
            extra.append(device.as_dict())

    missing: List[Dict[str, Any]] = []
    discrepancies: List[Dict[str, Any]] = []
    for idx, item in enumerate(expected_items):
        if remaining[idx] <= 0:
            continue
        received = item.quantity - remaining[idx]
        missing.append({**item.as_dict(), "quantity": remaining[idx]})
        discrepancies.append(
            {
                "type": "QUANTITY",
                "description": f"{item.brand} {item.model}: expected {item.quantity}, received {received}",
                "expected": str(item.quantity),
                "received": str(received),
            }
        )
    for device in extra:
        discrepancies.append(
            {
                "type": "MISMATCH",
                "description": f"{device['barcode']} ({device['brand']} {device['model']}) is not on the purchase order",
                "expected": None,
                "received": f"{device['category']} {device['brand']} {device['model']}",
            }
        )

    total_expected = sum(item.quantity for item in expected_items)
    percentage = math.floor(len(matched) / total_expected * 100 + 0.5) if total_expected else 0
    status = VerificationStatus.VERIFIED if not missing and not extra else VerificationStatus.PARTIAL
    return VerificationOutcome(
        status=status,
        match_percentage=percentage,
        matched=matched,
        missing=missing,
        extra=extra,
        discrepancies=discrepancies,
    )


def is_batch_locked(verification_status: Optional[str]) -> bool:
    return verification_status in (VerificationStatus.VERIFIED.value, VerificationStatus.SKIPPED.value)
