"""Tests for the spares queue and the spare part catalogue."""

from conftest import API

from refurb_ops.workflow.enums import Role


async def _create_part(client, headers, **overrides):
    payload = {
        "part_code": "bat-5490",
        "description": "Battery 68Wh",
        "category": "Battery",
        "compatible_models": "Latitude 5490, Latitude 5480",
        "min_stock": 2,
        "max_stock": 20,
        "current_stock": 5,
    }
    payload.update(overrides)
    resp = await client.post(f"{API}/spares/parts", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCatalogue:
    async def test_create_uppercases_code(self, client, login_as):
        _, headers = await login_as(Role.WAREHOUSE_MANAGER)
        part = await _create_part(client, headers)
        assert part["part_code"] == "BAT-5490"
        assert part["stock_status"] == "NORMAL"

        resp = await client.post(
            f"{API}/spares/parts", json={"part_code": "BAT-5490", "description": "Again"}, headers=headers
        )
        assert resp.status_code == 409

    async def test_invalid_code_and_levels(self, client, login_as):
        _, headers = await login_as(Role.WAREHOUSE_MANAGER)
        resp = await client.post(
            f"{API}/spares/parts", json={"part_code": "BAT 5490", "description": "Battery"}, headers=headers
        )
        assert resp.json()["error"]["message"] == "Invalid part code. Use letters, digits, '-' and '_' only"

        resp = await client.post(
            f"{API}/spares/parts",
            json={"part_code": "KBD-01", "description": "Keyboard", "min_stock": 10, "max_stock": 5},
            headers=headers,
        )
        assert resp.json()["error"]["message"] == "Minimum stock cannot exceed maximum stock"

    async def test_executive_cannot_edit_catalogue(self, client, warehouse):
        resp = await client.post(
            f"{API}/spares/parts", json={"part_code": "KBD-01", "description": "Keyboard"}, headers=warehouse
        )
        assert resp.status_code == 403

    async def test_update_delete_and_low_stock_filter(self, client, login_as):
        _, headers = await login_as(Role.WAREHOUSE_MANAGER)
        part = await _create_part(client, headers)
        await _create_part(client, headers, part_code="KBD-01", description="Keyboard", current_stock=1)

        low = await client.get(f"{API}/spares/parts", params={"low_stock": True}, headers=headers)
        assert [p["part_code"] for p in low.json()] == ["KBD-01"]

        resp = await client.patch(f"{API}/spares/parts/{part['id']}", json={"min_stock": 6}, headers=headers)
        assert resp.json()["stock_status"] == "LOW"

        resp = await client.delete(f"{API}/spares/parts/{part['id']}", headers=headers)
        assert resp.status_code == 204
        listed = await client.get(f"{API}/spares/parts", headers=headers)
        assert [p["part_code"] for p in listed.json()] == ["KBD-01"]

    async def test_null_fields_are_ignored_on_update(self, client, login_as):
        _, headers = await login_as(Role.WAREHOUSE_MANAGER)
        part = await _create_part(client, headers)

        resp = await client.patch(
            f"{API}/spares/parts/{part['id']}", json={"min_stock": None, "description": None}, headers=headers
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["min_stock"] == 2
        assert resp.json()["description"] == "Battery 68Wh"

    async def test_bin_location_is_validated_and_normalised(self, client, login_as):
        _, headers = await login_as(Role.WAREHOUSE_MANAGER)
        payload = {"part_code": "FAN-01", "description": "Fan", "bin_location": "nowhere"}
        resp = await client.post(f"{API}/spares/parts", json=payload, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid bin location. Use RACK-shelf-position, e.g. A-2-05"

        part = await _create_part(client, headers, bin_location="b-3-07")
        assert part["bin_location"] == "B-3-07"

        resp = await client.patch(f"{API}/spares/parts/{part['id']}", json={"bin_location": "C-1"}, headers=headers)
        assert resp.status_code == 400
        resp = await client.patch(f"{API}/spares/parts/{part['id']}", json={"bin_location": "c-1-02"}, headers=headers)
        assert resp.json()["bin_location"] == "C-1-02"
        resp = await client.patch(f"{API}/spares/parts/{part['id']}", json={"bin_location": ""}, headers=headers)
        assert resp.json()["bin_location"] is None

    async def test_adjust_stock(self, client, login_as):
        _, headers = await login_as(Role.WAREHOUSE_MANAGER)
        part = await _create_part(client, headers)
        url = f"{API}/spares/parts/{part['id']}/adjust"

        resp = await client.post(url, json={"adjustment": 20, "reason": "Restock"}, headers=headers)
        assert resp.json()["current_stock"] == 25
        assert resp.json()["stock_status"] == "OVERSTOCK"

        resp = await client.post(url, json={"adjustment": -30, "reason": "Write-off"}, headers=headers)
        assert resp.json()["error"]["message"] == "Stock cannot go below zero. Current stock: 25"

        resp = await client.post(url, json={"adjustment": -1, "reason": ""}, headers=headers)
        assert resp.status_code == 422

    async def test_compatible_parts(self, client, login_as):
        _, headers = await login_as(Role.WAREHOUSE_MANAGER)
        await _create_part(client, headers)
        await _create_part(client, headers, part_code="HP-FAN", description="Fan", compatible_models="EliteBook 840")
        await _create_part(client, headers, part_code="SCREWS", description="Screw kit", compatible_models=None)

        resp = await client.get(f"{API}/spares/parts/compatible", params={"model": "Latitude 5490"}, headers=headers)
        assert sorted(p["part_code"] for p in resp.json()) == ["BAT-5490", "SCREWS"]


class TestSparesQueue:
    async def test_issue_parts_returns_job_to_repair(self, client, login_as, register_device, inspect_device):
        _, manager = await login_as(Role.WAREHOUSE_MANAGER)
        part = await _create_part(client, manager)

        device = await register_device()
        await inspect_device(device, reported_issues="No power", spares_required="Battery")

        queue = (await client.get(f"{API}/spares/queue", headers=manager)).json()
        assert [j["device"]["barcode"] for j in queue] == [device["barcode"]]
        job = queue[0]

        resp = await client.post(
            f"{API}/spares/jobs/{job['id']}/issue",
            json={"parts": [{"part_id": part["id"], "quantity": 9}]},
            headers=manager,
        )
        assert resp.json()["error"]["message"] == "Insufficient stock for BAT-5490. Available: 5"

        resp = await client.post(
            f"{API}/spares/jobs/{job['id']}/issue",
            json={"parts": [{"part_id": part["id"], "quantity": 2}]},
            headers=manager,
        )
        issued = resp.json()
        assert issued["status"] == "READY_FOR_REPAIR"
        assert issued["spares_issued"] == "BAT-5490 x2"
        assert issued["device"]["status"] == "READY_FOR_REPAIR"

        parts = (await client.get(f"{API}/spares/parts", headers=manager)).json()
        assert parts[0]["current_stock"] == 3
        assert (await client.get(f"{API}/spares/queue", headers=manager)).json() == []

    async def test_issue_needs_waiting_job(self, client, login_as, register_device, inspect_device):
        _, manager = await login_as(Role.WAREHOUSE_MANAGER)
        job = (await inspect_device(await register_device(), reported_issues="No boot"))["repair_job"]
        resp = await client.post(
            f"{API}/spares/jobs/{job['id']}/issue", json={"spares_issued": "Nothing"}, headers=manager
        )
        assert resp.json()["error"]["message"] == "Job is not waiting for spares. Current status: READY_FOR_REPAIR"

    async def test_queue_is_for_inventory_roles(self, client, login_as):
        _, headers = await login_as(Role.REPAIR_ENGINEER)
        resp = await client.get(f"{API}/spares/queue", headers=headers)
        assert resp.status_code == 403
