"""Tests for inward batches, device registration, PO receiving and racks."""

import io
from uuid import UUID

import pytest
from conftest import API
from openpyxl import Workbook

from refurb_ops.core.errors import DomainError
from refurb_ops.services.inward import InwardService
from refurb_ops.workflow.enums import Role


def _workbook(sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


async def _batch(client, headers, **fields):
    payload = {"type": "REFURB_PURCHASE", **fields}
    resp = await client.post(f"{API}/inward/batches", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _purchase_order(client, headers, quantity=2):
    resp = await client.post(
        f"{API}/purchase-orders",
        json={
            "po_number": "PO-100",
            "supplier_name": "Acme Traders",
            "expected_items": [{"category": "Laptop", "brand": "Dell", "model": "Latitude 5490", "quantity": quantity}],
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestBatches:
    async def test_batch_ids_are_sequential(self, client, warehouse):
        first = await _batch(client, warehouse)
        second = await _batch(client, warehouse)
        assert first["batch_id"].startswith("BATCH-")
        assert first["batch_id"].endswith("-0001")
        assert second["batch_id"].endswith("-0002")
        assert first["verification_status"] == "UNVERIFIED"

    async def test_invalid_type(self, client, warehouse):
        resp = await client.post(f"{API}/inward/batches", json={"type": "GIFT"}, headers=warehouse)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid inward type"

    async def test_other_roles_forbidden(self, client, login_as):
        _, headers = await login_as(Role.QC_ENGINEER)
        resp = await client.post(f"{API}/inward/batches", json={"type": "REFURB_PURCHASE"}, headers=headers)
        assert resp.status_code == 403


class TestDevices:
    async def test_device_without_racks_waits_in_receiving(self, register_device):
        device = await register_device()
        assert device["status"] == "RECEIVED"
        assert device["location"] == "Receiving Area"
        assert device["ownership"] == "REFURB_STOCK"
        assert device["barcode"].startswith("L-DEL-")

    async def test_device_is_parked_in_received_rack(self, racks, register_device):
        device = await register_device()
        assert device["location"] == "RCV-01"
        assert device["rack_id"] is not None

    async def test_category_attributes_kept(self, register_device):
        device = await register_device(cpu="i5-8350U", ram="16GB", resolution="1920x1080")
        assert device["cpu"] == "i5-8350U"
        assert device["resolution"] is None

    async def test_registration_needs_a_category(self, client, warehouse, session, make_user):
        batch = await _batch(client, warehouse)
        actor = await make_user(Role.MIS_WAREHOUSE_EXECUTIVE)
        service = InwardService(session)
        loaded = await service.get_batch(UUID(batch["id"]))
        with pytest.raises(DomainError, match="Category is required"):
            await service._register_device(loaded, {"category": "Toaster", "brand": "Dell", "model": "5490"}, actor)

    async def test_validation_errors(self, client, warehouse):
        batch = await _batch(client, warehouse)
        resp = await client.post(
            f"{API}/inward/batches/{batch['id']}/devices",
            json={"category": "MONITOR", "brand": "LG", "model": "27UK", "resolution": "huge"},
            headers=warehouse,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Resolution must look like 1920x1080"

    async def test_rental_return_ownership(self, client, warehouse):
        batch = await _batch(client, warehouse, type="RENTAL_RETURN", customer="Globex")
        resp = await client.post(
            f"{API}/inward/batches/{batch['id']}/devices",
            json={"category": "STORAGE", "brand": "WD", "model": "Blue", "storage_type": "HDD"},
            headers=warehouse,
        )
        body = resp.json()
        assert body["device"]["ownership"] == "RENTAL_RETURN"
        assert body["warnings"] == ["RPM is recommended for HDD"]

    async def test_labels_pdf(self, client, warehouse, register_device):
        device = await register_device()
        resp = await client.get(f"{API}/inward/devices/{device['id']}/labels", headers=warehouse)
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")

        resp = await client.get(f"{API}/inward/batches/{device['inward_batch_id']}/labels", headers=warehouse)
        assert resp.content.startswith(b"%PDF")

    async def test_empty_batch_has_no_labels(self, client, warehouse):
        batch = await _batch(client, warehouse)
        resp = await client.get(f"{API}/inward/batches/{batch['id']}/labels", headers=warehouse)
        assert resp.status_code == 400


class TestBulkUpload:
    async def test_valid_and_invalid_rows(self, client, warehouse):
        batch = await _batch(client, warehouse)
        content = _workbook(
            {
                "Instructions": [["Fill one sheet per category"]],
                "Laptops": [
                    ["Category", "Brand", "Model", "Serial Number", "CPU"],
                    ["Laptop", "HP", "EliteBook 840", "SN12345", "i7"],
                    ["Toaster", "HP", "X", None, None],
                    ["Laptop", None, "ThinkPad", None, None],
                ],
            }
        )
        resp = await client.post(
            f"{API}/inward/batches/{batch['id']}/bulk-upload",
            files={"file": ("devices.xlsx", content, "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")},
            headers=warehouse,
        )
        assert resp.status_code == 200, resp.text
        result = resp.json()
        assert result["created"] == 1
        assert result["failed"] == 2
        assert [e["row"] for e in result["errors"]] == [3, 4]
        assert result["errors"][0]["errors"] == ["Invalid category: Toaster"]
        assert result["barcodes"][0].startswith("L-HP-")

        detail = await client.get(f"{API}/inward/batches/{batch['id']}", headers=warehouse)
        devices = detail.json()["devices"]
        assert devices[0]["serial"] == "SN12345"
        assert devices[0]["cpu"] == "i7"

    async def test_unreadable_file(self, client, warehouse):
        batch = await _batch(client, warehouse)
        resp = await client.post(
            f"{API}/inward/batches/{batch['id']}/bulk-upload",
            files={"file": ("devices.xlsx", b"not a workbook", "application/octet-stream")},
            headers=warehouse,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"].startswith("Failed to read the spreadsheet")


class TestPurchaseOrderReceiving:
    async def test_receiving_requires_delivery_details(self, client, warehouse, racks):
        po = await _purchase_order(client, warehouse)
        resp = await client.post(
            f"{API}/inward/batches/from-purchase-order",
            json={"purchase_order_id": po["id"], "vehicle_number": "KA01AB1234"},
            headers=warehouse,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["details"] == {"missing": ["Delivery challan", "Driver name"]}

    async def test_receiving_requires_rack_space(self, client, warehouse):
        po = await _purchase_order(client, warehouse)
        resp = await client.post(
            f"{API}/inward/batches/from-purchase-order",
            json={
                "purchase_order_id": po["id"],
                "delivery_challan_url": "delivery-challans/c.pdf",
                "vehicle_number": "KA01AB1234",
                "driver_name": "Ravi",
            },
            headers=warehouse,
        )
        assert resp.json()["error"]["message"] == "Insufficient rack capacity. Available: 0, Required: 2"

    async def test_full_delivery_verifies_and_locks(self, client, warehouse, racks):
        po = await _purchase_order(client, warehouse, quantity=2)
        assert po["expected_devices"] == 2
        resp = await client.post(
            f"{API}/inward/batches/from-purchase-order",
            json={
                "purchase_order_id": po["id"],
                "delivery_challan_url": "delivery-challans/c.pdf",
                "vehicle_number": "KA01AB1234",
                "driver_name": "Ravi",
            },
            headers=warehouse,
        )
        assert resp.status_code == 201, resp.text
        batch = resp.json()
        assert batch["po_invoice_no"] == "PO-100"

        for _ in range(2):
            await client.post(
                f"{API}/inward/batches/{batch['id']}/devices",
                json={"category": "LAPTOP", "brand": "dell", "model": "Latitude 5490"},
                headers=warehouse,
            )

        resp = await client.post(f"{API}/inward/batches/{batch['id']}/verify", headers=warehouse)
        assert resp.json()["status"] == "VERIFIED"
        assert resp.json()["match_percentage"] == 100

        resp = await client.post(
            f"{API}/inward/batches/{batch['id']}/devices",
            json={"category": "LAPTOP", "brand": "Dell", "model": "Latitude 5490"},
            headers=warehouse,
        )
        assert resp.status_code == 409

        # A received order can no longer be deleted.
        resp = await client.delete(f"{API}/purchase-orders/{po['id']}", headers=warehouse)
        assert resp.status_code == 400

        detail = await client.get(f"{API}/purchase-orders/{po['id']}", headers=warehouse)
        assert detail.json()["is_addressed"] is True
        assert detail.json()["batch_ids"] == [batch["id"]]

    async def test_override_needs_reason(self, client, warehouse):
        batch = await _batch(client, warehouse)
        resp = await client.post(f"{API}/inward/batches/{batch['id']}/override", json={"reason": " "}, headers=warehouse)
        assert resp.status_code == 400

        resp = await client.post(
            f"{API}/inward/batches/{batch['id']}/override", json={"reason": "Supplier short-shipped"}, headers=warehouse
        )
        assert resp.json()["verification_status"] == "SKIPPED"

        resp = await client.patch(f"{API}/inward/batches/{batch['id']}", json={"supplier": "Other"}, headers=warehouse)
        assert resp.status_code == 409

    async def test_verify_needs_purchase_order(self, client, warehouse):
        batch = await _batch(client, warehouse)
        resp = await client.post(f"{API}/inward/batches/{batch['id']}/verify", headers=warehouse)
        assert resp.json()["error"]["message"] == "Batch is not linked to a purchase order"


class TestPurchaseOrders:
    async def test_duplicate_number(self, client, warehouse):
        await _purchase_order(client, warehouse)
        resp = await client.post(
            f"{API}/purchase-orders", json={"po_number": "PO-100", "supplier_name": "Acme"}, headers=warehouse
        )
        assert resp.status_code == 409

    async def test_invalid_category(self, client, warehouse):
        resp = await client.post(
            f"{API}/purchase-orders",
            json={
                "po_number": "PO-7",
                "supplier_name": "Acme",
                "expected_items": [{"category": "Phone", "brand": "X", "model": "Y", "quantity": 1}],
            },
            headers=warehouse,
        )
        assert resp.json()["error"]["message"] == "Invalid category: Phone"

    async def test_delete_open_order(self, client, warehouse):
        po = await _purchase_order(client, warehouse)
        resp = await client.delete(f"{API}/purchase-orders/{po['id']}", headers=warehouse)
        assert resp.status_code == 204
        resp = await client.get(f"{API}/purchase-orders/{po['id']}", headers=warehouse)
        assert resp.status_code == 404


class TestRacks:
    async def test_initialize_is_idempotent(self, client, login_as):
        _, headers = await login_as(Role.WAREHOUSE_MANAGER)
        resp = await client.post(f"{API}/racks/initialize", headers=headers)
        assert resp.json()["details"] == {"created": 10}
        resp = await client.post(f"{API}/racks/initialize", headers=headers)
        assert resp.json()["details"] == {"created": 0}

        stats = await client.get(f"{API}/racks/stats", headers=headers)
        received = next(s for s in stats.json() if s["stage"] == "RECEIVED")
        assert received == {"stage": "RECEIVED", "total": 2, "used": 0, "capacity": 40}

    async def test_occupied_rack_rules(self, client, login_as, racks, register_device):
        _, headers = await login_as(Role.ADMIN)
        await register_device()
        listed = await client.get(f"{API}/racks", headers=headers)
        rack = next(r for r in listed.json() if r["rack_code"] == "RCV-01")
        assert rack["current_count"] == 1

        resp = await client.delete(f"{API}/racks/{rack['id']}", headers=headers)
        assert resp.json()["error"]["message"] == "Cannot delete rack with 1 devices. Move devices first."

        resp = await client.patch(f"{API}/racks/{rack['id']}", json={"capacity": 5}, headers=headers)
        assert resp.json()["capacity"] == 5

    async def test_create_rack(self, client, login_as):
        _, headers = await login_as(Role.ADMIN)
        resp = await client.post(f"{API}/racks", json={"rack_code": "x-9", "stage": "AWAITING_QC"}, headers=headers)
        assert resp.status_code == 201
        assert resp.json()["rack_code"] == "X-9"

        resp = await client.post(f"{API}/racks", json={"rack_code": "X-9", "stage": "AWAITING_QC"}, headers=headers)
        assert resp.status_code == 409
        resp = await client.post(f"{API}/racks", json={"rack_code": "Y-1", "stage": "ATTIC"}, headers=headers)
        assert resp.json()["error"]["message"] == "Invalid rack stage: ATTIC"
