from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import DomainError, NotFoundError
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.inventory import Device, StockMovement
from refurb_ops.db.models.outward import OutwardRecord
from refurb_ops.db.models.security import User
from refurb_ops.repositories.inventory import DeviceRepository
from refurb_ops.repositories.outward import OutwardRecordRepository
from refurb_ops.schemas.outward import OutwardCreate, OutwardUpdate
from refurb_ops.workflow.enums import ActivityAction, OutwardType
from refurb_ops.workflow.identifiers import generate_outward_id
from refurb_ops.workflow.outward import (
    filter_not_dispatchable,
    validate_dual_verification,
    validate_outward_data,
    validate_outward_update,
    validate_shipping_details,
)
from refurb_ops.workflow.transitions import determine_next_status_after_outward, movement_type_for_outward
from .activity import ActivityService
from .base import BaseService

logger = logging.getLogger(__name__)


def _str_or_none(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value else None


class OutwardService(BaseService):
    """Dispatch of graded stock to customers as sales or rentals."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.records = OutwardRecordRepository(session)
        self.devices = DeviceRepository(session)
        self.activity = ActivityService(session)

    async def get_record(self, record_id: UUID) -> OutwardRecord:
        record = await self.records.get_record(record_id)
        if record is None:
            raise NotFoundError("Outward record not found")
        return record

    # PUBLIC_INTERFACE
    async def get_with_devices(self, record_id: UUID) -> Tuple[OutwardRecord, List[Device]]:
        record = await self.get_record(record_id)
        return record, await self.devices.list_by_outward(record.id)

    # PUBLIC_INTERFACE
    async def list_records(self, *, type: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[OutwardRecord]:
        return await self.records.list_records(type=type, limit=limit, offset=offset)

    # PUBLIC_INTERFACE
    async def create(self, payload: OutwardCreate, actor: User) -> Tuple[OutwardRecord, List[Device], List[str]]:
        """
        Dispatch READY_FOR_STOCK devices.

        Returns the record, the dispatched devices and advisory warnings about
        shipping details and packing verification.
        """
        validate_outward_data(payload.type, payload.customer, payload.reference, payload.device_ids).raise_if_invalid()
        outward_type = OutwardType(payload.type)

        device_ids = list(dict.fromkeys(payload.device_ids))
        devices = await self.devices.list_by_ids(device_ids)
        if len(devices) != len(device_ids):
            raise NotFoundError("One or more devices not found")
        blocked = filter_not_dispatchable(devices)
        if blocked:
            barcodes = ", ".join(d.barcode for d in blocked)
            raise DomainError(
                f"Devices not ready for dispatch: {barcodes}",
                details={"barcodes": [d.barcode for d in blocked]},
            )

        warnings = (
            validate_shipping_details(payload.shipping_details).warnings
            + validate_dual_verification(
                _str_or_none(payload.packed_by_id), _str_or_none(payload.checked_by_id)
            ).warnings
        )

        year = utcnow().year
        record = OutwardRecord(
            outward_id=generate_outward_id(year, await self.records.count_for_year(year)),
            type=outward_type.value,
            customer=payload.customer.strip(),
            reference=payload.reference.strip(),
            shipping_details=payload.shipping_details,
            packed_by_id=payload.packed_by_id,
            checked_by_id=payload.checked_by_id,
        )
        await self.records.add(record)
        await self.records.flush()

        next_status = determine_next_status_after_outward(outward_type)
        movement = movement_type_for_outward(outward_type)
        for device in devices:
            from_location = device.location
            device.status = next_status.value
            device.outward_record_id = record.id
            device.rack_id = None
            device.location = record.customer
            await self.devices.add(
                StockMovement(
                    device_id=device.id,
                    type=movement.value,
                    from_location=from_location,
                    to_location=record.customer,
                    reference=record.outward_id,
                    user_id=actor.id,
                )
            )
        await self.session.commit()

        logger.info("Outward %s dispatched %d devices to %s", record.outward_id, len(devices), record.customer)
        await self.activity.record(
            ActivityAction.CREATED_OUTWARD,
            user_id=actor.id,
            details=f"Created outward {record.outward_id} for {record.customer} ({len(devices)} devices)",
            metadata={"outward_id": record.outward_id, "barcodes": [d.barcode for d in devices]},
        )
        return record, devices, warnings

    # PUBLIC_INTERFACE
    async def update(self, record_id: UUID, payload: OutwardUpdate, actor: User) -> OutwardRecord:
        record = await self.get_record(record_id)
        changes = payload.model_dump(exclude_unset=True)
        validate_outward_update(changes.get("customer")).raise_if_invalid()
        if "reference" in changes and changes["reference"] is not None and not changes["reference"].strip():
            raise DomainError("Reference cannot be empty")
        for key, value in changes.items():
            if key in ("customer", "reference") and value is None:
                continue
            setattr(record, key, value.strip() if isinstance(value, str) else value)
        await self.session.commit()
        await self.activity.record(
            ActivityAction.UPDATED_OUTWARD,
            user_id=actor.id,
            details=f"Updated outward {record.outward_id}",
            metadata={"outward_id": record.outward_id, "fields": sorted(changes)},
        )
        return record
