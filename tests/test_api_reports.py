"""Tests for the dashboard, report downloads and scheduled checks."""

import io
from datetime import timedelta

import pandas as pd
from conftest import API

from refurb_ops.services.cron import CronService
from refurb_ops.workflow.enums import Role
from refurb_ops.workflow.identifiers import utcnow


async def _start_repair(client, login_as, register_device, inspect_device):
    device = await register_device()
    job = (await inspect_device(device, reported_issues="No display"))["repair_job"]
    _, headers = await login_as(Role.REPAIR_ENGINEER)
    resp = await client.post(f"{API}/repair/jobs/{job['id']}/start", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestDashboard:
    async def test_stats_count_pipeline(self, client, login_as, register_device, inspect_device):
        await register_device()
        await _start_repair(client, login_as, register_device, inspect_device)

        _, headers = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        stats = (await client.get(f"{API}/dashboard/stats", headers=headers)).json()
        assert stats["total_devices"] == 2
        assert stats["status_counts"] == {"RECEIVED": 1, "UNDER_REPAIR": 1}
        assert stats["pipeline"]["inward"] == 1
        assert stats["pipeline"]["repair"] == 1
        assert stats["overdue_repairs"] == 0
        assert stats["recent_activity"]

    async def test_activity_feed_names_the_actor(self, client, login_as, register_device):
        await register_device()
        _, headers = await login_as(Role.QC_ENGINEER)
        feed = (await client.get(f"{API}/activity", params={"limit": 5}, headers=headers)).json()
        assert feed[0]["user_role"] == "MIS_WAREHOUSE_EXECUTIVE"
        assert feed[0]["user_name"]

    async def test_requires_login(self, client):
        resp = await client.get(f"{API}/dashboard/stats")
        assert resp.status_code == 401


class TestReports:
    async def test_inventory_csv(self, client, warehouse, register_device):
        device = await register_device()
        resp = await client.get(f"{API}/reports/inventory", headers=warehouse)
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="inventory-' in resp.headers["content-disposition"]

        df = pd.read_csv(io.StringIO(resp.text))
        assert df["barcode"].tolist() == [device["barcode"]]
        assert df["repair_required"].tolist() == ["No"]

    async def test_inventory_xlsx_and_pdf(self, client, warehouse, register_device):
        await register_device()
        resp = await client.get(f"{API}/reports/inventory", params={"format": "xlsx"}, headers=warehouse)
        df = pd.read_excel(io.BytesIO(resp.content), sheet_name="Report")
        assert len(df) == 1

        resp = await client.get(f"{API}/reports/inventory", params={"format": "pdf"}, headers=warehouse)
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")

    async def test_repair_jobs_report(self, client, login_as, register_device, inspect_device):
        job = await _start_repair(client, login_as, register_device, inspect_device)
        _, headers = await login_as(Role.REPAIR_ENGINEER)
        resp = await client.get(f"{API}/reports/repair-jobs", params={"status": "UNDER_REPAIR"}, headers=headers)
        df = pd.read_csv(io.StringIO(resp.text))
        assert df["job_id"].tolist() == [job["job_id"]]

        resp = await client.get(f"{API}/reports/repair-jobs", params={"status": "COMPLETED"}, headers=headers)
        assert pd.read_csv(io.StringIO(resp.text)).empty

    async def test_rental_returns(self, client, warehouse, register_device):
        await register_device()
        batch = await client.post(
            f"{API}/inward/batches", json={"type": "RENTAL_RETURN", "customer": "Globex"}, headers=warehouse
        )
        resp = await client.post(
            f"{API}/inward/batches/{batch.json()['id']}/devices",
            json={"category": "LAPTOP", "brand": "HP", "model": "EliteBook 840"},
            headers=warehouse,
        )
        rental = resp.json()["device"]

        resp = await client.get(f"{API}/reports/rental-returns", headers=warehouse)
        assert [d["barcode"] for d in resp.json()] == [rental["barcode"]]

        resp = await client.get(f"{API}/reports/rental-returns/export", headers=warehouse)
        assert pd.read_csv(io.StringIO(resp.text))["barcode"].tolist() == [rental["barcode"]]

    async def test_qc_report_role(self, client, login_as):
        _, headers = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        resp = await client.get(f"{API}/reports/qc", headers=headers)
        assert resp.status_code == 403


class TestCron:
    async def test_secret_is_optional(self, client):
        resp = await client.get(f"{API}/cron/tat-notifications")
        body = resp.json()
        assert body["success"] is True
        assert body["breached"] == []

    async def test_secret_enforced_when_set(self, client, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        resp = await client.post(f"{API}/cron/tat-notifications")
        assert resp.status_code == 401

        resp = await client.post(f"{API}/cron/tat-notifications", headers={"Authorization": "Bearer s3cret"})
        assert resp.status_code == 200
        resp = await client.post(f"{API}/cron/po-aging", headers={"x-cron-secret": "s3cret"})
        assert resp.status_code == 200

    async def test_po_aging_needs_manager_email(self, client):
        resp = await client.get(f"{API}/cron/po-aging")
        assert resp.json() == {"success": False, "message": "WAREHOUSE_MANAGER_EMAIL not configured"}

    async def test_tat_windows(self, client, session, login_as, register_device, inspect_device):
        job = await _start_repair(client, login_as, register_device, inspect_device)
        service = CronService(session)

        result = await service.tat_notifications(now=utcnow())
        assert result["approaching"] == [] and result["breached"] == []

        result = await service.tat_notifications(now=utcnow() + timedelta(days=4, hours=12))
        assert result["approaching"] == [job["job_id"]]

        result = await service.tat_notifications(now=utcnow() + timedelta(days=6))
        assert result["breached"] == [job["job_id"]]

    async def test_po_aging_lists_old_orders(self, client, session, warehouse, monkeypatch):
        monkeypatch.setenv("WAREHOUSE_MANAGER_EMAIL", "manager@example.com")
        resp = await client.post(
            f"{API}/purchase-orders",
            json={
                "po_number": "PO-77",
                "supplier_name": "Acme Traders",
                "expected_items": [{"category": "Laptop", "brand": "Dell", "model": "5490", "quantity": 1}],
            },
            headers=warehouse,
        )
        assert resp.status_code == 201, resp.text

        service = CronService(session)
        assert (await service.po_aging())["aging"] == []

        result = await service.po_aging(now=utcnow() + timedelta(days=11))
        assert result["aging"] == ["PO-77"]
        assert result["alerted"] == ["PO-77"]
