"""Tests for the L2 bench, specialist queues and the paint shop."""

import pytest
from conftest import API

from refurb_ops.workflow.enums import Role


@pytest.fixture
def claimed_device(client, login_as, register_device, inspect_device):
    """Factory: inspect a device into repair and have a new L2 engineer claim it."""

    async def _claimed(**flags):
        device = await register_device()
        await inspect_device(device, reported_issues="Needs bench work", **flags)
        engineer, headers = await login_as(Role.L2_ENGINEER)
        resp = await client.post(f"{API}/l2/devices/{device['id']}/claim", headers=headers)
        assert resp.status_code == 200, resp.text
        return device, engineer, headers

    return _claimed


class TestClaim:
    async def test_ready_list_and_claim(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        job = (await inspect_device(device, reported_issues="No boot"))["repair_job"]
        engineer, headers = await login_as(Role.L2_ENGINEER)

        ready = await client.get(f"{API}/l2/ready", headers=headers)
        assert [j["id"] for j in ready.json()] == [job["id"]]

        resp = await client.post(f"{API}/l2/devices/{device['id']}/claim", headers=headers)
        claimed = resp.json()
        assert claimed["l2_engineer_id"] == str(engineer.id)
        assert claimed["status"] == "UNDER_REPAIR"
        assert claimed["device"]["status"] == "UNDER_REPAIR"

        ready = await client.get(f"{API}/l2/ready", headers=headers)
        assert ready.json() == []

        _, other = await login_as(Role.L2_ENGINEER)
        resp = await client.post(f"{API}/l2/devices/{device['id']}/claim", headers=other)
        assert resp.json()["error"]["message"] == "Device already assigned to another L2 Engineer"

    async def test_device_without_job(self, client, login_as, register_device):
        device = await register_device()
        _, headers = await login_as(Role.L2_ENGINEER)
        resp = await client.post(f"{API}/l2/devices/{device['id']}/claim", headers=headers)
        assert resp.json()["error"]["message"] == "No repair job found for this device"

    async def test_only_owner_can_work(self, client, login_as, claimed_device):
        device, _, _ = await claimed_device()
        _, other = await login_as(Role.L2_ENGINEER)
        resp = await client.post(f"{API}/l2/devices/{device['id']}/send-to-display", json={}, headers=other)
        assert resp.status_code == 403

    async def test_admin_may_act_for_owner(self, client, login_as, claimed_device):
        device, _, _ = await claimed_device()
        _, admin = await login_as(Role.ADMIN)
        resp = await client.post(f"{API}/l2/devices/{device['id']}/send-to-qc", headers=admin)
        assert resp.json()["status"] == "AWAITING_QC"


class TestParallelWork:
    async def test_full_bench(self, client, login_as, claimed_device):
        device, _, l2 = await claimed_device(display_repair_required=True)
        url = f"{API}/l2/devices/{device['id']}"

        resp = await client.post(f"{url}/send-to-display", json={"reported_issues": "Flicker"}, headers=l2)
        display_job = resp.json()
        assert display_job["status"] == "PENDING"

        resp = await client.post(f"{url}/send-to-display", json={}, headers=l2)
        assert resp.status_code == 409

        # Display technician works the job from the queue.
        tech, tech_headers = await login_as(Role.DISPLAY_TECHNICIAN)
        queue = (await client.get(f"{API}/display/queue", headers=tech_headers)).json()
        assert [j["id"] for j in queue["pending"]] == [display_job["id"]]
        resp = await client.post(f"{API}/display/jobs/{display_job['id']}/start", headers=tech_headers)
        assert resp.json()["assigned_to_id"] == str(tech.id)
        queue = (await client.get(f"{API}/display/queue", headers=tech_headers)).json()
        assert [j["id"] for j in queue["mine"]] == [display_job["id"]]

        resp = await client.post(f"{url}/send-to-qc", headers=l2)
        assert resp.json()["error"]["message"] == "Display repair not completed"

        resp = await client.post(f"{url}/collect/display", headers=l2)
        assert resp.json()["error"]["message"] == "Display repair is not completed yet"

        resp = await client.post(
            f"{API}/display/jobs/{display_job['id']}/complete", json={"notes": "Replaced panel"}, headers=tech_headers
        )
        assert resp.json()["status"] == "COMPLETED"

        # Finishing the job does not clear the device flag until the L2 collects it.
        summary = (await client.get(url, headers=l2)).json()
        assert summary["blockers"] == ["Display repair not completed"]

        resp = await client.post(f"{url}/collect/display", headers=l2)
        assert resp.json()["display_repair_completed"] is True

        # Battery boost done by the L2 engineer directly.
        resp = await client.post(f"{url}/send-to-battery", json={"initial_capacity": "40%"}, headers=l2)
        assert resp.json()["target_capacity"] == "80%"
        resp = await client.post(f"{url}/complete-battery", json={"final_capacity": "85%"}, headers=l2)
        completion = resp.json()
        assert completion["target_met"] is True
        assert completion["job"]["completed_by_l2"] is True

        # Paint runs alongside the repair.
        resp = await client.post(f"{url}/send-to-paint", json={"panels": ["Bezel"]}, headers=l2)
        panel = resp.json()[0]
        summary = (await client.get(url, headers=l2)).json()
        assert summary["device"]["status"] == "UNDER_REPAIR"
        assert summary["blockers"] == ["Paint work not completed"]
        assert summary["ready_for_qc"] is False

        _, paint = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        queue = (await client.get(f"{API}/paint/queue", headers=paint)).json()
        assert [e["device"]["id"] for e in queue] == [device["id"]]
        for status in ("IN_PAINT", "READY_FOR_COLLECTION"):
            resp = await client.patch(f"{API}/paint/panels/{panel['id']}", json={"status": status}, headers=paint)
            assert resp.json()["status"] == status

        resp = await client.post(f"{url}/collect/paint", headers=l2)
        collected = resp.json()
        assert collected["paint_completed"] is True
        assert collected["status"] == "UNDER_REPAIR"

        resp = await client.post(f"{url}/send-to-qc", headers=l2)
        assert resp.json()["status"] == "AWAITING_QC"
        assert resp.json()["device"]["status"] == "AWAITING_QC"

        mine = (await client.get(f"{API}/l2/my-devices", headers=l2)).json()
        assert mine[0]["repair_job"]["status"] == "AWAITING_QC"

    async def test_battery_technician_below_target(self, client, login_as, claimed_device):
        device, _, l2 = await claimed_device()
        resp = await client.post(
            f"{API}/l2/devices/{device['id']}/send-to-battery",
            json={"initial_capacity": "30%", "target_capacity": "75%"},
            headers=l2,
        )
        job = resp.json()

        _, tech = await login_as(Role.BATTERY_TECHNICIAN)
        await client.post(f"{API}/battery/jobs/{job['id']}/start", headers=tech)
        resp = await client.post(f"{API}/battery/jobs/{job['id']}/complete", json={"final_capacity": "70%"}, headers=tech)
        body = resp.json()
        assert body["target_met"] is False
        assert body["job"]["final_capacity"] == "70%"

    async def test_invalid_battery_capacity(self, client, claimed_device):
        device, _, l2 = await claimed_device()
        resp = await client.post(
            f"{API}/l2/devices/{device['id']}/send-to-battery", json={"initial_capacity": "lots"}, headers=l2
        )
        assert resp.json()["error"]["message"] == "Invalid battery capacity: lots"

    async def test_l3_escalation(self, client, login_as, claimed_device):
        device, _, l2 = await claimed_device()
        url = f"{API}/l2/devices/{device['id']}"
        resp = await client.post(f"{url}/send-to-l3", json={"issue_type": "CURSED"}, headers=l2)
        assert resp.json()["error"]["message"] == "Invalid L3 issue type: CURSED"

        resp = await client.post(
            f"{url}/send-to-l3", json={"issue_type": "BIOS_LOCK", "description": "Supervisor password"}, headers=l2
        )
        job = resp.json()
        assert job["issue_type"] == "BIOS_LOCK"

        _, l3 = await login_as(Role.L3_ENGINEER)
        resp = await client.post(f"{API}/l3/jobs/{job['id']}/complete", json={"resolution": "Reflashed"}, headers=l3)
        assert resp.json()["error"]["message"] == "Job is not in progress"

        await client.post(f"{API}/l3/jobs/{job['id']}/start", headers=l3)
        resp = await client.post(f"{API}/l3/jobs/{job['id']}/complete", json={"resolution": "Reflashed"}, headers=l3)
        assert resp.json()["resolution"] == "Reflashed"

        resp = await client.post(f"{url}/collect/l3", headers=l2)
        assert resp.json()["l3_repair_completed"] is True

    async def test_unknown_collect_kind(self, client, claimed_device):
        device, _, l2 = await claimed_device()
        resp = await client.post(f"{API}/l2/devices/{device['id']}/collect/wifi", headers=l2)
        assert resp.status_code == 404

    async def test_request_spares(self, client, claimed_device):
        device, _, l2 = await claimed_device()
        resp = await client.post(
            f"{API}/l2/devices/{device['id']}/request-spares", json={"spares_required": "Hinge set"}, headers=l2
        )
        body = resp.json()
        assert body["status"] == "WAITING_FOR_SPARES"
        assert body["device"]["status"] == "WAITING_FOR_SPARES"
        assert body["spares_required"] == "Hinge set"


class TestPaintShop:
    async def test_paint_only_device(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        await inspect_device(device, paint_panels=["Top Cover", "Palmrest"])
        _, paint = await login_as(Role.PAINT_SHOP_TECHNICIAN)

        entry = (await client.get(f"{API}/paint/queue", headers=paint)).json()[0]
        assert entry["progress"]["AWAITING_PAINT"] == 2
        panel_ids = [p["id"] for p in entry["panels"]]

        resp = await client.post(
            f"{API}/paint/panels/bulk-update", json={"panel_ids": panel_ids, "status": "READY_FOR_COLLECTION"}, headers=paint
        )
        assert resp.json()["error"]["message"].startswith("Cannot move")

        resp = await client.post(f"{API}/paint/devices/{device['id']}/collect", headers=paint)
        assert resp.json()["error"]["message"] == "All panels must be ready for collection"

        for status in ("IN_PAINT", "READY_FOR_COLLECTION"):
            resp = await client.post(
                f"{API}/paint/panels/bulk-update", json={"panel_ids": panel_ids, "status": status}, headers=paint
            )
            assert {p["status"] for p in resp.json()} == {status}

        resp = await client.post(f"{API}/paint/devices/{device['id']}/collect", headers=paint)
        collected = resp.json()
        assert collected["status"] == "AWAITING_QC"
        assert collected["paint_completed"] is True
        assert (await client.get(f"{API}/paint/queue", headers=paint)).json() == []

    async def test_device_sent_from_repair_is_queued(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        await inspect_device(device, reported_issues="Broken hinge")
        _, repair = await login_as(Role.REPAIR_ENGINEER)
        job = (await client.get(f"{API}/repair/my-jobs", headers=repair)).json()[0]
        await client.post(f"{API}/repair/jobs/{job['id']}/start", headers=repair)
        await client.post(f"{API}/repair/jobs/{job['id']}/send-to-paint", json={"panels": ["Hinge Cover"]}, headers=repair)

        _, paint = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        queue = (await client.get(f"{API}/paint/queue", headers=paint)).json()
        assert [e["device"]["barcode"] for e in queue] == [device["barcode"]]

    async def test_invalid_status(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        await inspect_device(device, paint_panels=["Bezel"])
        _, paint = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        panel = (await client.get(f"{API}/paint/queue", headers=paint)).json()[0]["panels"][0]
        resp = await client.patch(f"{API}/paint/panels/{panel['id']}", json={"status": "SPARKLY"}, headers=paint)
        assert resp.json()["error"]["message"] == "Invalid panel status: SPARKLY"

    async def test_graded_device_cannot_be_collected_again(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        await inspect_device(device, paint_panels=["Bezel"])
        _, paint = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        panel_ids = [p["id"] for p in (await client.get(f"{API}/paint/queue", headers=paint)).json()[0]["panels"]]
        for status in ("IN_PAINT", "READY_FOR_COLLECTION"):
            await client.post(f"{API}/paint/panels/bulk-update", json={"panel_ids": panel_ids, "status": status}, headers=paint)
        resp = await client.post(f"{API}/paint/devices/{device['id']}/collect", headers=paint)
        assert resp.json()["status"] == "AWAITING_QC"

        resp = await client.post(f"{API}/paint/devices/{device['id']}/collect", headers=paint)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Device is not in the paint shop. Current status: AWAITING_QC"

        _, qc = await login_as(Role.QC_ENGINEER)
        resp = await client.post(
            f"{API}/qc/devices/{device['id']}/submit", json={"status": "PASSED", "final_grade": "A"}, headers=qc
        )
        assert resp.status_code == 200, resp.text

        resp = await client.post(f"{API}/paint/devices/{device['id']}/collect", headers=paint)
        assert resp.status_code == 400
        detail = (await client.get(f"{API}/devices/barcode/{device['barcode']}", headers=paint)).json()
        assert detail["status"] == "READY_FOR_STOCK"
        assert detail["grade"] == "A"

    async def test_panels_locked_while_waiting_for_spares(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        result = await inspect_device(
            device, reported_issues="No power", spares_required="Battery", paint_panels=["Bezel"]
        )
        assert result["device"]["status"] == "WAITING_FOR_SPARES"
        _, paint = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        assert (await client.get(f"{API}/paint/queue", headers=paint)).json() == []

        panel = (await client.get(f"{API}/devices/barcode/{device['barcode']}", headers=paint)).json()["paint_panels"][0]
        resp = await client.patch(f"{API}/paint/panels/{panel['id']}", json={"status": "IN_PAINT"}, headers=paint)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Device is not in the paint shop. Current status: WAITING_FOR_SPARES"

        resp = await client.post(
            f"{API}/paint/panels/bulk-update", json={"panel_ids": [panel["id"]], "status": "IN_PAINT"}, headers=paint
        )
        assert resp.status_code == 400

        resp = await client.post(f"{API}/paint/devices/{device['id']}/collect", headers=paint)
        assert resp.status_code == 400
        detail = (await client.get(f"{API}/devices/barcode/{device['barcode']}", headers=paint)).json()
        assert detail["status"] == "WAITING_FOR_SPARES"
        assert detail["paint_panels"][0]["status"] == "AWAITING_PAINT"


class TestSelfCompletion:
    async def test_l2_completes_display_itself(self, client, claimed_device):
        device, _, l2 = await claimed_device()
        url = f"{API}/l2/devices/{device['id']}"
        resp = await client.post(f"{url}/complete-display", json={}, headers=l2)
        assert resp.status_code == 404

        await client.post(f"{url}/send-to-display", json={}, headers=l2)
        resp = await client.post(f"{url}/complete-display", json={"notes": "Reseated cable"}, headers=l2)
        job = resp.json()
        assert job["completed_by_l2"] is True
        assert job["device"]["display_repair_completed"] is True
