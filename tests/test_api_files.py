"""Tests for document uploads on both storage providers and database seeding."""

import pytest
from conftest import API
from sqlalchemy import func, select

from refurb_ops.db import seed
from refurb_ops.db.models.inventory import Rack, SparePart
from refurb_ops.db.models.security import User
from refurb_ops.db.models.storage import StoredDocument
from refurb_ops.workflow.enums import Role


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_PROVIDER", "local")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
    return tmp_path


class TestUploads:
    async def test_upload_and_download(self, client, warehouse, upload_dir):
        resp = await client.post(
            f"{API}/files/upload",
            data={"folder": "delivery-challans"},
            files={"file": ("../challan 01.png", b"\x89PNG fake", "image/png")},
            headers=warehouse,
        )
        assert resp.status_code == 200, resp.text
        stored = resp.json()
        assert stored["key"].startswith("delivery-challans/")
        assert stored["file_name"] == "challan_01.png"
        assert stored["url"] == f"{API}/files/{stored['key']}"
        assert (upload_dir / stored["key"]).read_bytes() == b"\x89PNG fake"

        resp = await client.get(stored["url"], headers=warehouse)
        assert resp.content == b"\x89PNG fake"
        assert resp.headers["content-type"] == "image/png"

    async def test_purchase_orders_are_pdf_only(self, client, warehouse, upload_dir):
        resp = await client.post(
            f"{API}/files/upload",
            data={"folder": "purchase-orders"},
            files={"file": ("po.png", b"img", "image/png")},
            headers=warehouse,
        )
        assert resp.json()["error"]["message"] == "Invalid file type. Allowed types: application/pdf"

    async def test_unknown_folder(self, client, warehouse, upload_dir):
        resp = await client.post(
            f"{API}/files/upload",
            data={"folder": "secrets"},
            files={"file": ("po.pdf", b"%PDF", "application/pdf")},
            headers=warehouse,
        )
        assert resp.status_code == 400

    async def test_size_limit(self, client, warehouse, upload_dir, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_BYTES", "4")
        resp = await client.post(
            f"{API}/files/upload",
            data={"folder": "purchase-orders"},
            files={"file": ("po.pdf", b"%PDF-1.4", "application/pdf")},
            headers=warehouse,
        )
        assert resp.json()["error"]["message"].startswith("File too large")

    async def test_upload_needs_inward_role(self, client, login_as, upload_dir):
        _, headers = await login_as(Role.QC_ENGINEER)
        resp = await client.post(
            f"{API}/files/upload",
            data={"folder": "purchase-orders"},
            files={"file": ("po.pdf", b"%PDF", "application/pdf")},
            headers=headers,
        )
        assert resp.status_code == 403

    async def test_missing_file(self, client, warehouse, upload_dir):
        resp = await client.get(f"{API}/files/purchase-orders/nothing.pdf", headers=warehouse)
        assert resp.status_code == 404


class TestDatabaseUploads:
    async def test_database_is_the_default_provider(self, client, warehouse, session, tmp_path, monkeypatch):
        monkeypatch.delenv("STORAGE_PROVIDER", raising=False)
        monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
        resp = await client.post(
            f"{API}/files/upload",
            data={"folder": "purchase-orders"},
            files={"file": ("po 7.pdf", b"%PDF-1.7", "application/pdf")},
            headers=warehouse,
        )
        assert resp.status_code == 200, resp.text
        stored = resp.json()
        assert stored["file_name"] == "po_7.pdf"
        assert stored["size"] == 8
        assert list(tmp_path.iterdir()) == []

        document = await session.scalar(select(StoredDocument).where(StoredDocument.key == stored["key"]))
        assert document.folder == "purchase-orders"
        assert document.data == b"%PDF-1.7"

        resp = await client.get(stored["url"], headers=warehouse)
        assert resp.status_code == 200
        assert resp.content == b"%PDF-1.7"
        assert resp.headers["content-type"] == "application/pdf"
        assert "po_7.pdf" in resp.headers["content-disposition"]

    async def test_validation_applies_to_database_uploads(self, client, warehouse, monkeypatch):
        monkeypatch.setenv("STORAGE_PROVIDER", "database")
        resp = await client.post(
            f"{API}/files/upload",
            data={"folder": "purchase-orders"},
            files={"file": ("po.png", b"img", "image/png")},
            headers=warehouse,
        )
        assert resp.status_code == 400

    async def test_missing_and_invalid_keys(self, client, warehouse, monkeypatch):
        monkeypatch.setenv("STORAGE_PROVIDER", "database")
        resp = await client.get(f"{API}/files/purchase-orders/nothing.pdf", headers=warehouse)
        assert resp.status_code == 404
        resp = await client.get(f"{API}/files/secrets/plan.pdf", headers=warehouse)
        assert resp.status_code == 400

class TestSeed:
    async def test_seed_is_idempotent(self, client, session, session_maker, monkeypatch):
        monkeypatch.setattr(seed, "get_session_maker", lambda: session_maker)
        await seed.seed_all()
        await seed.seed_all()

        users = await session.scalar(select(func.count()).select_from(User))
        racks = await session.scalar(select(func.count()).select_from(Rack))
        parts = await session.scalar(select(func.count()).select_from(SparePart))
        assert users == len(Role)
        assert racks == 10
        assert parts == len(seed.SAMPLE_SPARE_PARTS)

        resp = await client.post(
            f"{API}/auth/login", data={"username": "qc_engineer@refurb.local", "password": "password123"}
        )
        assert resp.status_code == 200
