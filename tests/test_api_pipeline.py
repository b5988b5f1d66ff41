"""End-to-end tests: inspection, classic repair, QC and dispatch."""

from conftest import API

from refurb_ops.workflow.enums import Role


def _checklist(failed=(), count=20):
    return [
        {"item_index": i, "status": "FAIL" if i in failed else "PASS", "notes": "worn" if i in failed else None}
        for i in range(1, count + 1)
    ]


async def _repair(client, headers, job_id):
    resp = await client.post(f"{API}/repair/jobs/{job_id}/start", headers=headers)
    assert resp.status_code == 200, resp.text
    resp = await client.post(
        f"{API}/repair/jobs/{job_id}/complete",
        json={"notes": "Replaced keyboard", "root_cause": "Liquid damage"},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestInspection:
    async def test_start_moves_to_pending_inspection(self, client, login_as, register_device):
        device = await register_device()
        _, headers = await login_as(Role.INSPECTION_ENGINEER)
        resp = await client.post(f"{API}/inspection/start/{device['barcode']}", headers=headers)
        body = resp.json()
        assert body["device"]["status"] == "PENDING_INSPECTION"
        assert len(body["checklist"]) == 20
        assert body["checklist"][0]["index"] == 1

    async def test_unknown_barcode(self, client, login_as):
        _, headers = await login_as(Role.INSPECTION_ENGINEER)
        resp = await client.post(f"{API}/inspection/start/L-XXX-0000", headers=headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["type"] == "not_found"

    async def test_wrong_role(self, client, login_as, register_device):
        device = await register_device()
        _, headers = await login_as(Role.QC_ENGINEER)
        resp = await client.post(f"{API}/inspection/start/{device['barcode']}", headers=headers)
        assert resp.status_code == 403

    async def test_clean_device_goes_straight_to_qc(self, register_device, inspect_device):
        result = await inspect_device(await register_device(), checklist=_checklist())
        assert result["device"]["status"] == "AWAITING_QC"
        assert result["repair_job"] is None

    async def test_failed_item_opens_repair_job(self, register_device, inspect_device):
        result = await inspect_device(await register_device(), checklist=_checklist(failed={4}), overall_notes="dusty")
        job = result["repair_job"]
        assert result["device"]["status"] == "READY_FOR_REPAIR"
        assert result["device"]["repair_required"] is True
        assert job["job_id"].startswith("JOB-")
        assert job["status"] == "READY_FOR_REPAIR"
        assert '"itemIndex": 4' in job["reported_issues"]

    async def test_spares_wait(self, register_device, inspect_device):
        result = await inspect_device(await register_device(), reported_issues="No power", spares_required="Battery")
        assert result["device"]["status"] == "WAITING_FOR_SPARES"
        assert result["repair_job"]["spares_required"] == "Battery"

    async def test_paint_only(self, register_device, inspect_device):
        result = await inspect_device(await register_device(), paint_panels=["Top Cover", "Palmrest"])
        assert result["device"]["status"] == "IN_PAINT_SHOP"
        assert result["device"]["paint_required"] is True
        assert result["repair_job"] is None

    async def test_specialist_flag_forces_repair(self, register_device, inspect_device):
        result = await inspect_device(await register_device(), checklist=_checklist(), battery_boost_required=True)
        assert result["device"]["status"] == "READY_FOR_REPAIR"
        assert result["device"]["battery_boost_required"] is True
        assert result["repair_job"] is not None

    async def test_invalid_panel_and_item(self, client, login_as, register_device):
        device = await register_device()
        _, headers = await login_as(Role.INSPECTION_ENGINEER)
        await client.post(f"{API}/inspection/start/{device['barcode']}", headers=headers)

        resp = await client.post(
            f"{API}/inspection/{device['id']}/submit", json={"paint_panels": ["Roof"]}, headers=headers
        )
        assert resp.json()["error"]["message"] == "Invalid panel type: Roof"

        resp = await client.post(
            f"{API}/inspection/{device['id']}/submit",
            json={"checklist": [{"item_index": 99, "status": "PASS"}]},
            headers=headers,
        )
        assert resp.json()["error"]["message"] == "Invalid checklist item: 99"

    async def test_inspected_device_cannot_be_inspected_again(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        await inspect_device(device, checklist=_checklist())
        _, headers = await login_as(Role.INSPECTION_ENGINEER)
        resp = await client.post(f"{API}/inspection/start/{device['barcode']}", headers=headers)
        assert resp.json()["error"]["message"] == "Device is not ready for inspection. Current status: AWAITING_QC"


class TestRepairToDispatch:
    async def test_full_pipeline(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        job = (await inspect_device(device, checklist=_checklist(failed={4})))["repair_job"]

        engineer, repair_headers = await login_as(Role.REPAIR_ENGINEER)
        queue = await client.get(f"{API}/repair/my-jobs", headers=repair_headers)
        assert [j["id"] for j in queue.json()] == [job["id"]]

        resp = await client.post(f"{API}/repair/jobs/{job['id']}/start", headers=repair_headers)
        started = resp.json()
        assert started["status"] == "UNDER_REPAIR"
        assert started["repair_eng_id"] == str(engineer.id)
        assert started["tat_due_date"] is not None
        assert started["device"]["status"] == "UNDER_REPAIR"

        resp = await client.post(
            f"{API}/repair/jobs/{job['id']}/complete",
            json={"notes": "Replaced keyboard", "root_cause": "Liquid damage"},
            headers=repair_headers,
        )
        completed = resp.json()
        assert completed["device"]["status"] == "AWAITING_QC"
        assert completed["device"]["repair_completed"] is True
        assert completed["root_cause"] == "Liquid damage"

        _, qc_headers = await login_as(Role.QC_ENGINEER)
        resp = await client.post(f"{API}/qc/start/{device['barcode']}", headers=qc_headers)
        qc = resp.json()
        assert qc["counts"] == {"pass": 19, "fail": 1, "not_applicable": 0, "pending": 0}

        resp = await client.post(
            f"{API}/qc/devices/{device['id']}/submit",
            json={"status": "PASSED", "final_grade": "A", "remarks": "Clean"},
            headers=qc_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["final_grade"] == "A"

        detail = (await client.get(f"{API}/devices/barcode/{device['barcode']}", headers=qc_headers)).json()
        assert detail["status"] == "READY_FOR_STOCK"
        assert detail["grade"] == "A"
        assert detail["latest_repair_job"]["status"] == "COMPLETED"
        assert len(detail["qc_records"]) == 1

        manager, manager_headers = await login_as(Role.WAREHOUSE_MANAGER)
        resp = await client.post(
            f"{API}/outward",
            json={
                "type": "SALES",
                "customer": "Acme Corp",
                "reference": "INV-2001",
                "device_ids": [device["id"]],
                "shipping_details": "BlueDart AWB 1234567890",
                "packed_by_id": str(manager.id),
                "checked_by_id": str(engineer.id),
            },
            headers=manager_headers,
        )
        assert resp.status_code == 201, resp.text
        outward = resp.json()
        assert outward["outward_id"].startswith("OUT-")
        assert outward["warnings"] == []
        assert outward["devices"][0]["status"] == "STOCK_OUT_SOLD"
        assert outward["devices"][0]["location"] == "Acme Corp"

        history = (await client.get(f"{API}/devices/{device['id']}/history", headers=qc_headers)).json()
        movements = [e["title"] for e in history if e["kind"] == "movement"]
        assert movements == ["Stock movement: INWARD", "Stock movement: SALES_OUTWARD"]

    async def test_job_held_by_another_engineer(self, client, login_as, register_device, inspect_device):
        job = (await inspect_device(await register_device(), reported_issues="Dead"))["repair_job"]
        _, first = await login_as(Role.REPAIR_ENGINEER)
        _, second = await login_as(Role.REPAIR_ENGINEER)
        await client.post(f"{API}/repair/jobs/{job['id']}/start", headers=first)

        resp = await client.post(
            f"{API}/repair/jobs/{job['id']}/complete", json={"notes": "done"}, headers=second
        )
        assert resp.status_code == 403

    async def test_send_to_paint_from_repair(self, client, login_as, register_device, inspect_device):
        job = (await inspect_device(await register_device(), reported_issues="Cracked lid"))["repair_job"]
        _, headers = await login_as(Role.REPAIR_ENGINEER)
        await client.post(f"{API}/repair/jobs/{job['id']}/start", headers=headers)

        resp = await client.post(
            f"{API}/repair/jobs/{job['id']}/send-to-paint", json={"panels": ["LCD Back"]}, headers=headers
        )
        body = resp.json()
        assert body["status"] == "IN_PAINT_SHOP"
        assert body["device"]["status"] == "IN_PAINT_SHOP"
        assert body["device"]["paint_required"] is True

    async def test_dispatch_only_ready_devices(self, client, warehouse, register_device):
        device = await register_device()
        resp = await client.post(
            f"{API}/outward",
            json={"type": "RENTAL", "customer": "Globex", "reference": "R-1", "device_ids": [device["id"]]},
            headers=warehouse,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["details"] == {"barcodes": [device["barcode"]]}

    async def test_dispatch_header_validation(self, client, warehouse):
        resp = await client.post(f"{API}/outward", json={"type": "SALES"}, headers=warehouse)
        assert resp.status_code == 400
        assert resp.json()["error"]["details"]["errors"] == [
            "Customer name is required",
            "Reference (Invoice/Rental Ref) is required",
            "At least one device must be selected",
        ]


class TestQC:
    async def test_not_ready_for_qc(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        await inspect_device(device, reported_issues="Dead")
        _, headers = await login_as(Role.QC_ENGINEER)
        resp = await client.post(f"{API}/qc/start/{device['barcode']}", headers=headers)
        assert resp.json()["error"]["message"] == "Device is not ready for QC. Current status: READY_FOR_REPAIR"

    async def test_grade_rules(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        await inspect_device(device, checklist=_checklist())
        _, headers = await login_as(Role.QC_ENGINEER)

        resp = await client.post(
            f"{API}/qc/devices/{device['id']}/submit", json={"status": "PASSED", "final_grade": "C"}, headers=headers
        )
        assert resp.json()["error"]["message"] == "Grade must be A or B"

        resp = await client.post(f"{API}/qc/devices/{device['id']}/submit", json={"status": "FAILED_REWORK"}, headers=headers)
        assert resp.json()["error"]["message"] == "Remarks are required for failed devices"

    async def test_pending_item_blocks_pass(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        await inspect_device(device, checklist=_checklist())
        _, headers = await login_as(Role.QC_ENGINEER)
        qc = (await client.post(f"{API}/qc/start/{device['barcode']}", headers=headers)).json()

        item = qc["checklist"][0]
        resp = await client.patch(f"{API}/qc/checklist/{item['id']}", json={"status": "PENDING"}, headers=headers)
        assert resp.json()["status"] == "PENDING"

        resp = await client.post(
            f"{API}/qc/devices/{device['id']}/submit", json={"status": "PASSED", "final_grade": "B"}, headers=headers
        )
        assert resp.json()["error"]["message"] == "All checklist items must be checked before passing QC"

    async def test_rework_sends_device_back(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        job = (await inspect_device(device, reported_issues="No display"))["repair_job"]
        _, repair_headers = await login_as(Role.REPAIR_ENGINEER)
        await _repair(client, repair_headers, job["id"])

        _, qc_headers = await login_as(Role.QC_ENGINEER)
        resp = await client.post(
            f"{API}/qc/devices/{device['id']}/submit",
            json={"status": "FAILED_REWORK", "remarks": "Backlight flickers", "final_grade": "A"},
            headers=qc_headers,
        )
        record = resp.json()
        assert record["status"] == "FAILED_REWORK"
        assert record["final_grade"] is None

        detail = (await client.get(f"{API}/devices/barcode/{device['barcode']}", headers=qc_headers)).json()
        assert detail["status"] == "READY_FOR_REPAIR"
        assert detail["repair_completed"] is False
        assert detail["latest_repair_job"]["status"] == "READY_FOR_REPAIR"
        assert "QC FAILED - REWORK REQUIRED" in detail["latest_repair_job"]["notes"]

        # The same engineer picks the job straight back up.
        resp = await client.post(f"{API}/repair/jobs/{job['id']}/start", headers=repair_headers)
        assert resp.json()["status"] == "UNDER_REPAIR"

        records = await client.get(f"{API}/qc/records", params={"status": "FAILED_REWORK"}, headers=qc_headers)
        assert len(records.json()) == 1

    async def test_rework_without_repair_job_opens_one(self, client, login_as, register_device, inspect_device):
        device = await register_device()
        assert (await inspect_device(device, checklist=_checklist()))["repair_job"] is None

        _, qc_headers = await login_as(Role.QC_ENGINEER)
        resp = await client.post(
            f"{API}/qc/devices/{device['id']}/submit",
            json={"status": "FAILED_REWORK", "remarks": "Speaker crackles"},
            headers=qc_headers,
        )
        assert resp.status_code == 200, resp.text

        detail = (await client.get(f"{API}/devices/barcode/{device['barcode']}", headers=qc_headers)).json()
        assert detail["status"] == "READY_FOR_REPAIR"
        assert detail["repair_required"] is True
        job = detail["latest_repair_job"]
        assert job["job_id"].startswith("JOB-")
        assert job["status"] == "READY_FOR_REPAIR"
        assert job["notes"].startswith("QC FAILED - REWORK REQUIRED\nQC Remarks: Speaker crackles")

        _, l2 = await login_as(Role.L2_ENGINEER)
        ready = (await client.get(f"{API}/l2/ready", headers=l2)).json()
        assert [j["job_id"] for j in ready] == [job["job_id"]]
        resp = await client.post(f"{API}/l2/devices/{device['id']}/claim", headers=l2)
        assert resp.status_code == 200, resp.text


class TestDevices:
    async def test_search_and_paging(self, client, warehouse, register_device):
        await register_device()
        await register_device(brand="HP", model="EliteBook 840")
        resp = await client.get(f"{API}/devices", params={"q": "elitebook"}, headers=warehouse)
        page = resp.json()
        assert page["total"] == 1
        assert page["devices"][0]["brand"] == "HP"

        resp = await client.get(f"{API}/devices", params={"limit": 1, "page": 2}, headers=warehouse)
        page = resp.json()
        assert page["total"] == 2
        assert page["total_pages"] == 2
        assert len(page["devices"]) == 1

    async def test_edit_only_while_received(self, client, warehouse, register_device, inspect_device):
        device = await register_device()
        resp = await client.patch(f"{API}/devices/{device['id']}", json={"serial": "SN-777"}, headers=warehouse)
        assert resp.json()["serial"] == "SN-777"

        await inspect_device(device, checklist=_checklist())
        resp = await client.patch(f"{API}/devices/{device['id']}", json={"serial": "SN-778"}, headers=warehouse)
        assert resp.json()["error"]["message"] == "Can only edit devices in RECEIVED status"

    async def test_move_into_rack(self, client, warehouse, racks, register_device):
        device = await register_device()
        rack_list = (await client.get(f"{API}/racks", params={"stage": "AWAITING_QC"}, headers=warehouse)).json()
        target = rack_list[0]

        resp = await client.post(
            f"{API}/devices/{device['id']}/move",
            json={"to_location": target["rack_code"], "rack_id": target["id"], "reference": "shelf swap"},
            headers=warehouse,
        )
        moved = resp.json()
        assert moved["location"] == "AQC-01"
        assert moved["rack_id"] == target["id"]

        history = (await client.get(f"{API}/devices/{device['id']}/history", headers=warehouse)).json()
        assert any(e["title"] == "Stock movement: MOVE" for e in history)

    async def test_lookup_is_open_to_any_user(self, client, login_as, register_device):
        device = await register_device()
        _, headers = await login_as(Role.PAINT_SHOP_TECHNICIAN)
        resp = await client.get(f"{API}/devices/{device['id']}", headers=headers)
        assert resp.json()["barcode"] == device["barcode"]
        resp = await client.get(f"{API}/devices", headers=headers)
        assert resp.status_code == 403
