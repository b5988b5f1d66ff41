from __future__ import annotations

import io
import logging
import math
import zipfile
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import ConflictError, DomainError, NotFoundError
from refurb_ops.core.settings import get_app_settings
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.inventory import Device, StockMovement
from refurb_ops.db.models.procurement import InwardBatch
from refurb_ops.db.models.security import User
from refurb_ops.repositories.inventory import DeviceRepository, RackRepository
from refurb_ops.repositories.procurement import InwardBatchRepository, PurchaseOrderRepository
from refurb_ops.schemas.inward import (
    BatchFromPurchaseOrder,
    BulkRowError,
    BulkUploadResult,
    DeviceCreate,
    InwardBatchCreate,
    InwardBatchUpdate,
)
from refurb_ops.workflow.devices import (
    get_category_specific_fields,
    normalize_category,
    validate_bulk_device,
    validate_device_data,
)
from refurb_ops.workflow.enums import (
    ActivityAction,
    DeviceStatus,
    InwardType,
    MovementType,
    Ownership,
    RackStage,
    VerificationStatus,
)
from refurb_ops.workflow.identifiers import generate_barcode, generate_batch_id
from refurb_ops.workflow.verification import (
    ExpectedItem,
    ReceivedDevice,
    VerificationOutcome,
    is_batch_locked,
    verify_shipment,
)
from .activity import ActivityService
from .base import BaseService

logger = logging.getLogger(__name__)

RECEIVING_AREA = "Receiving Area"
BARCODE_ATTEMPTS = 20

# Spreadsheet headers that differ from the attribute names.
_HEADER_ALIASES = {
    "serial_number": "serial",
    "serial_no": "serial",
    "screensize": "screen_size",
    "notes": "condition_notes",
}


def ownership_for(inward_type: InwardType | str) -> Ownership:
    if InwardType(inward_type) == InwardType.RENTAL_RETURN:
        return Ownership.RENTAL_RETURN
    return Ownership.REFURB_STOCK


def normalize_header(header: Any) -> str:
    key = "_".join(str(header).strip().lower().split())
    return _HEADER_ALIASES.get(key, key)


def _cell(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


# PUBLIC_INTERFACE
def read_device_workbook(content: bytes) -> List[Tuple[str, int, Dict[str, Optional[str]]]]:
    """
    Read every sheet of an upload except one named "instructions".

    Returns (sheet name, spreadsheet row number, row values) with headers
    normalized to device attribute names. Row 1 is the header row.
    """
    sheets: Dict[str, pd.DataFrame] = pd.read_excel(io.BytesIO(content), sheet_name=None, dtype=str)
    rows: List[Tuple[str, int, Dict[str, Optional[str]]]] = []
    for sheet_name, frame in sheets.items():
        if str(sheet_name).strip().lower() == "instructions":
            continue
        frame = frame.rename(columns=normalize_header)
        for position, record in enumerate(frame.to_dict(orient="records")):
            values = {key: _cell(value) for key, value in record.items()}
            if not any(values.values()):
                continue
            rows.append((str(sheet_name), position + 2, values))
    return rows


class InwardService(BaseService):
    """Receiving: inward batches, device registration and delivery verification."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.batches = InwardBatchRepository(session)
        self.devices = DeviceRepository(session)
        self.racks = RackRepository(session)
        self.purchase_orders = PurchaseOrderRepository(session)
        self.activity = ActivityService(session)

    async def get_batch(self, batch_pk: UUID) -> InwardBatch:
        batch = await self.batches.get_batch(batch_pk)
        if batch is None:
            raise NotFoundError("Batch not found")
        return batch

    def _ensure_unlocked(self, batch: InwardBatch) -> None:
        if is_batch_locked(batch.verification_status):
            raise ConflictError(
                f"Batch {batch.batch_id} is locked after verification ({batch.verification_status})"
            )

    async def _next_batch_id(self) -> str:
        year = utcnow().year
        return generate_batch_id(year, await self.batches.count_for_year(year))

    # PUBLIC_INTERFACE
    async def create_batch(self, payload: InwardBatchCreate, actor: User) -> InwardBatch:
        try:
            inward_type = InwardType(payload.type)
        except ValueError:
            raise DomainError("Invalid inward type")
        batch = InwardBatch(
            batch_id=await self._next_batch_id(),
            type=inward_type.value,
            po_invoice_no=payload.po_invoice_no,
            supplier=payload.supplier,
            customer=payload.customer,
            rental_ref=payload.rental_ref,
            email_subject=payload.email_subject,
            created_by_id=actor.id,
        )
        await self.batches.add(batch)
        await self.batches.commit()
        logger.info("Inward batch %s created", batch.batch_id)
        await self.activity.record(
            ActivityAction.CREATED_INWARD,
            user_id=actor.id,
            details=f"Created inward batch {batch.batch_id}",
            metadata={"batch_id": batch.batch_id},
        )
        return batch

    # PUBLIC_INTERFACE
    async def list_batches(self, *, type: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[InwardBatch]:
        return await self.batches.list_batches(type=type, limit=limit, offset=offset)

    # PUBLIC_INTERFACE
    async def get_batch_with_devices(self, batch_pk: UUID) -> Tuple[InwardBatch, List[Device]]:
        batch = await self.get_batch(batch_pk)
        return batch, await self.devices.list_by_batch(batch.id)

    # PUBLIC_INTERFACE
    async def update_batch(self, batch_pk: UUID, payload: InwardBatchUpdate, actor: User) -> InwardBatch:
        batch = await self.get_batch(batch_pk)
        self._ensure_unlocked(batch)
        changes = payload.model_dump(exclude_unset=True)
        for key, value in changes.items():
            setattr(batch, key, value)
        await self.batches.commit()
        await self.activity.record(
            ActivityAction.UPDATED_INWARD,
            user_id=actor.id,
            details=f"Updated inward batch {batch.batch_id}",
            metadata={"batch_id": batch.batch_id, "fields": sorted(changes)},
        )
        return batch

    async def _unique_barcode(self, category: str, brand: str) -> str:
        for _ in range(BARCODE_ATTEMPTS):
            barcode = generate_barcode(category, brand)
            if not await self.devices.barcode_exists(barcode):
                return barcode
        raise ConflictError("Could not generate a unique barcode, please retry")

    async def _register_device(self, batch: InwardBatch, data: Dict[str, Any], actor: User) -> Device:
        """Create the device, its INWARD movement and rack placement. Does not commit."""
        category = normalize_category(data.get("category"))
        if category is None:
            raise DomainError("Category is required")
        brand = str(data["brand"]).strip()
        attributes = {
            field: data.get(field) for field in get_category_specific_fields(category) if data.get(field)
        }
        rack = await self.racks.find_rack_with_space(RackStage.RECEIVED.value)
        device = Device(
            barcode=await self._unique_barcode(category.value, brand),
            category=category.value,
            brand=brand,
            model=str(data["model"]).strip(),
            serial=data.get("serial"),
            condition_notes=data.get("condition_notes"),
            ownership=ownership_for(batch.type).value,
            status=DeviceStatus.RECEIVED.value,
            location=rack.rack_code if rack else RECEIVING_AREA,
            rack_id=rack.id if rack else None,
            inward_batch_id=batch.id,
            **attributes,
        )
        await self.devices.add(device)
        await self.devices.flush()
        await self.devices.add(
            StockMovement(
                device_id=device.id,
                type=MovementType.INWARD.value,
                to_location=RECEIVING_AREA,
                reference=batch.batch_id,
                user_id=actor.id,
            )
        )
        return device

    # PUBLIC_INTERFACE
    async def add_device(self, batch_pk: UUID, payload: DeviceCreate, actor: User) -> Tuple[Device, List[str]]:
        """Register one device on a batch; returns the device and any advisory warnings."""
        batch = await self.get_batch(batch_pk)
        self._ensure_unlocked(batch)
        data = payload.model_dump()
        result = validate_device_data(data)
        result.raise_if_invalid()

        device = await self._register_device(batch, data, actor)
        await self.devices.commit()
        await self.activity.record(
            ActivityAction.ADDED_DEVICE,
            user_id=actor.id,
            details=f"Added {device.barcode} to {batch.batch_id}",
            metadata={"barcode": device.barcode, "batch_id": batch.batch_id},
        )
        return device, result.warnings

    # PUBLIC_INTERFACE
    async def bulk_upload(self, batch_pk: UUID, content: bytes, actor: User) -> BulkUploadResult:
        """Add every valid spreadsheet row to the batch and report the rejected ones."""
        batch = await self.get_batch(batch_pk)
        self._ensure_unlocked(batch)
        try:
            rows = read_device_workbook(content)
        except (ValueError, OSError, zipfile.BadZipFile) as exc:
            logger.warning("Unreadable bulk upload for %s: %s", batch.batch_id, exc)
            raise DomainError("Failed to read the spreadsheet. Please use the upload template.")

        errors: List[BulkRowError] = []
        barcodes: List[str] = []
        for sheet, row_number, values in rows:
            check = validate_bulk_device(values)
            if not check.valid:
                errors.append(BulkRowError(sheet=sheet, row=row_number, errors=check.errors))
                continue
            device = await self._register_device(batch, values, actor)
            barcodes.append(device.barcode)

        await self.devices.commit()
        logger.info("Bulk upload for %s: %d added, %d rejected", batch.batch_id, len(barcodes), len(errors))
        if barcodes:
            await self.activity.record(
                ActivityAction.ADDED_DEVICE,
                user_id=actor.id,
                details=f"Bulk uploaded {len(barcodes)} devices to {batch.batch_id}",
                metadata={"batch_id": batch.batch_id, "count": len(barcodes)},
            )
        return BulkUploadResult(created=len(barcodes), failed=len(errors), errors=errors, barcodes=barcodes)

    # PUBLIC_INTERFACE
    async def verify_against_purchase_order(self, batch_pk: UUID, actor: User) -> VerificationOutcome:
        batch = await self.get_batch(batch_pk)
        self._ensure_unlocked(batch)
        if batch.purchase_order_id is None:
            raise DomainError("Batch is not linked to a purchase order")
        po = await self.purchase_orders.get_purchase_order(batch.purchase_order_id)
        if po is None:
            raise NotFoundError("Purchase order not found")

        devices = await self.devices.list_by_batch(batch.id)
        outcome = verify_shipment(
            [ExpectedItem.from_mapping(item) for item in po.expected_items or []],
            [ReceivedDevice(d.barcode, d.category, d.brand, d.model, d.serial) for d in devices],
        )
        batch.verification_status = outcome.status.value
        batch.verification_result = outcome.as_dict()
        await self.batches.commit()
        await self.activity.record(
            ActivityAction.VERIFIED_INWARD,
            user_id=actor.id,
            details=f"Verified {batch.batch_id} against {po.po_number}: {outcome.match_percentage}% match",
            metadata={"batch_id": batch.batch_id, "status": outcome.status.value},
        )
        return outcome

    # PUBLIC_INTERFACE
    async def override_verification(self, batch_pk: UUID, reason: str, actor: User) -> InwardBatch:
        batch = await self.get_batch(batch_pk)
        self._ensure_unlocked(batch)
        if not reason or not reason.strip():
            raise DomainError("An override reason is required")
        batch.verification_status = VerificationStatus.SKIPPED.value
        batch.override_reason = reason.strip()
        await self.batches.commit()
        await self.activity.record(
            ActivityAction.VERIFIED_INWARD,
            user_id=actor.id,
            details=f"Verification of {batch.batch_id} overridden: {batch.override_reason}",
            metadata={"batch_id": batch.batch_id, "status": VerificationStatus.SKIPPED.value},
        )
        return batch

    # PUBLIC_INTERFACE
    async def create_batch_from_purchase_order(self, payload: BatchFromPurchaseOrder, actor: User) -> InwardBatch:
        po = await self.purchase_orders.get_purchase_order(payload.purchase_order_id)
        if po is None:
            raise NotFoundError("Purchase order not found")
        missing = [
            label
            for label, value in (
                ("Delivery challan", payload.delivery_challan_url),
                ("Vehicle number", payload.vehicle_number),
                ("Driver name", payload.driver_name),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise DomainError(f"{', '.join(missing)} required", details={"missing": missing})

        available = await self.racks.available_capacity(RackStage.RECEIVED.value)
        if available < po.expected_devices:
            raise DomainError(
                f"Insufficient rack capacity. Available: {available}, Required: {po.expected_devices}"
            )

        batch = InwardBatch(
            batch_id=await self._next_batch_id(),
            type=InwardType.REFURB_PURCHASE.value,
            po_invoice_no=po.po_number,
            supplier=po.supplier_name,
            purchase_order_id=po.id,
            delivery_challan_url=payload.delivery_challan_url,
            vehicle_number=payload.vehicle_number.strip(),
            driver_name=payload.driver_name.strip(),
            created_by_id=actor.id,
        )
        po.is_addressed = True
        await self.batches.add(batch)
        await self.batches.commit()
        await self.activity.record(
            ActivityAction.CREATED_INWARD,
            user_id=actor.id,
            details=f"Created inward batch {batch.batch_id} from {po.po_number}",
            metadata={"batch_id": batch.batch_id, "po_number": po.po_number},
        )
        return batch

    # PUBLIC_INTERFACE
    async def label_devices(self, *, batch_pk: Optional[UUID] = None, device_id: Optional[UUID] = None) -> List[Device]:
        if device_id is not None:
            return [await self.load_device(device_id)]
        batch = await self.get_batch(batch_pk)
        devices = await self.devices.list_by_batch(batch.id)
        if not devices:
            raise DomainError("Batch has no devices to label")
        return devices
