"""Tests for QC, outward, spares, user and device validation rules."""

import json
from types import SimpleNamespace

import pytest

from refurb_ops.core.errors import DomainError
from refurb_ops.workflow.checklists import get_checklist_for_category
from refurb_ops.workflow.devices import (
    get_category_specific_fields,
    normalize_category,
    validate_bulk_device,
    validate_device_data,
    validate_device_update,
)
from refurb_ops.workflow.issues import parse_reported_issues
from refurb_ops.workflow.outward import (
    can_device_be_dispatched,
    filter_not_dispatchable,
    validate_dual_verification,
    validate_outward_data,
    validate_shipping_details,
)
from refurb_ops.workflow.quality import (
    append_qc_notes,
    calculate_checklist_pass_rate,
    can_perform_qc,
    format_qc_failure_notes,
    validate_qc_data,
)
from refurb_ops.workflow.results import ValidationResult
from refurb_ops.workflow.spares import (
    StockStatus,
    can_issue_part,
    format_bin_location,
    get_stock_status,
    is_compatible,
    is_valid_stock_adjustment,
    parse_bin_location,
    validate_part_code,
    validate_stock_levels,
)
from refurb_ops.workflow.users import (
    can_access_module,
    get_module_access,
    validate_new_user,
    validate_self_action,
)


class TestValidationResult:
    def test_raise_if_invalid_carries_all_errors(self):
        result = ValidationResult(errors=["first", "second"])
        with pytest.raises(DomainError) as exc:
            result.raise_if_invalid()
        assert exc.value.message == "first"
        assert exc.value.details == {"errors": ["first", "second"]}

    def test_valid_result_does_not_raise(self):
        ValidationResult(warnings=["just a warning"]).raise_if_invalid()


class TestQC:
    def test_only_awaiting_qc(self):
        result = can_perform_qc("UNDER_REPAIR", False, False, False, False)
        assert result.error == "Device is not ready for QC. Current status: UNDER_REPAIR"

    def test_pending_repair_blocks(self):
        assert not can_perform_qc("AWAITING_QC", True, False, False, False).valid

    def test_pending_paint_blocks(self):
        assert not can_perform_qc("AWAITING_QC", True, True, True, False).valid

    def test_ready(self):
        assert can_perform_qc("AWAITING_QC", True, True, True, True).valid

    def test_pass_needs_grade(self):
        result = validate_qc_data("qc-1", "PASSED", None, None)
        assert result.errors == ["Grade is required for passed devices"]

    def test_grade_must_be_a_or_b(self):
        assert validate_qc_data("qc-1", "PASSED", "C", None).errors == ["Grade must be A or B"]

    def test_fail_needs_remarks(self):
        assert validate_qc_data("qc-1", "FAILED_REWORK", None, "  ").errors == ["Remarks are required for failed devices"]

    def test_engineer_required(self):
        assert "QC Engineer ID is required" in validate_qc_data("", "PASSED", "A", None).errors

    def test_pass_rate_rounds_half_up(self):
        items = [{"passed": True}, {"passed": False}, {"passed": True}]
        assert calculate_checklist_pass_rate(items) == 67
        assert calculate_checklist_pass_rate([{"passed": True}, {"passed": False}]) == 50
        assert calculate_checklist_pass_rate([]) == 0

    def test_failure_notes(self):
        notes = format_qc_failure_notes("Scratched lid", None)
        assert notes == "QC FAILED - REWORK REQUIRED\nQC Remarks: Scratched lid\nChecklist: N/A"
        assert append_qc_notes("Replaced fan", notes) == f"Replaced fan\n\n{notes}"
        assert append_qc_notes(None, notes) == notes


class TestOutward:
    def test_header_errors_accumulate(self):
        result = validate_outward_data("GIFT", "", None, [])
        assert result.errors == [
            "Invalid outward type",
            "Customer name is required",
            "Reference (Invoice/Rental Ref) is required",
            "At least one device must be selected",
        ]

    def test_valid_header(self):
        assert validate_outward_data("SALES", "Acme", "INV-9", ["d1"]).valid

    def test_only_ready_for_stock_dispatches(self):
        assert can_device_be_dispatched("READY_FOR_STOCK")
        assert not can_device_be_dispatched("QC_PASSED")
        devices = [SimpleNamespace(status="READY_FOR_STOCK"), SimpleNamespace(status="UNDER_REPAIR")]
        assert filter_not_dispatchable(devices) == [devices[1]]

    def test_shipping_details_warnings(self):
        assert validate_shipping_details(None).warnings
        assert validate_shipping_details("BlueDart AWB 123456789").warnings == []
        assert validate_shipping_details("hand delivered").warnings == [
            "No carrier name detected",
            "No tracking number detected",
        ]

    def test_dual_verification(self):
        assert validate_dual_verification("u1", "u1").warning == "Same person packed and checked - consider dual verification"
        assert validate_dual_verification(None, None).warning == "Both Packed By and Checked By are empty"
        assert validate_dual_verification("u1", "u2").warnings == []


class TestSpares:
    def test_part_codes(self):
        assert validate_part_code("KB-LAT_5490")
        assert not validate_part_code("KB LAT")
        assert not validate_part_code("  ")

    def test_low_wins_over_overstock(self):
        assert get_stock_status(5, 10, 3) == StockStatus.LOW
        assert get_stock_status(11, 5, 10) == StockStatus.OVERSTOCK
        assert get_stock_status(7, 5, 10) == StockStatus.NORMAL

    def test_stock_levels(self):
        assert validate_stock_levels(10, 5, 0).error == "Minimum stock cannot exceed maximum stock"
        assert validate_stock_levels(-1, 5, 0).error == "Minimum stock cannot be negative"
        assert validate_stock_levels(0, 5, 3).valid

    def test_adjust_and_issue(self):
        assert is_valid_stock_adjustment(3, -3)
        assert not is_valid_stock_adjustment(3, -4)
        assert can_issue_part(2, 2)
        assert not can_issue_part(2, 3)
        assert not can_issue_part(2, 0)

    def test_compatibility_is_loose(self):
        assert is_compatible("Latitude 5490", "Latitude 5490, Latitude 5480")
        assert is_compatible("latitude", "Latitude 5490")
        assert not is_compatible("ThinkPad T480", "Latitude 5490")
        assert is_compatible("anything", None)

    def test_bin_location(self):
        assert parse_bin_location("A-2-05") == ("A", "2", "05")
        assert parse_bin_location("A2") is None
        assert parse_bin_location("A--05") is None
        assert parse_bin_location("b - 3 - 07") == ("b", "3", "07")

    def test_format_bin_location_uppercases_rack(self):
        assert format_bin_location("b", "3", "07") == "B-3-07"


class TestUsers:
    def test_new_user_errors(self):
        result = validate_new_user("not-an-email", "A", "123", "JANITOR")
        assert result.errors == [
            "A valid email address is required",
            "Name must be at least 2 characters",
            "Password must be at least 6 characters",
            "Invalid role",
        ]

    def test_new_user_ok(self):
        assert validate_new_user("qc@example.com", "Quinn", "secret1", "QC_ENGINEER").valid

    def test_self_lockout(self):
        assert validate_self_action("u1", "u1", deactivating=True).error == "You cannot deactivate your own account"
        assert validate_self_action("u1", "u1", changing_role=True).error == "You cannot change your own role"
        assert validate_self_action("u1", "u1", deleting=True).error == "You cannot delete your own account"
        assert validate_self_action("u1", "u2", deleting=True).valid

    def test_module_access(self):
        assert can_access_module("SUPERADMIN", "anything")
        assert can_access_module("QC_ENGINEER", "qc")
        assert not can_access_module("QC_ENGINEER", "inward")
        assert get_module_access("PAINT_SHOP_TECHNICIAN") == ["dashboard", "paint"]


class TestDevices:
    def test_normalize_category(self):
        assert normalize_category("Networking Card").value == "NETWORKING_CARD"
        assert normalize_category("laptop").value == "LAPTOP"
        assert normalize_category("phone") is None

    def test_category_fields(self):
        assert get_category_specific_fields("MONITOR") == [
            "monitor_size", "resolution", "panel_type", "refresh_rate", "monitor_ports",
        ]

    def test_required_fields(self):
        result = validate_device_data({"category": "LAPTOP", "brand": " ", "model": None})
        assert result.errors == ["Brand is required", "Model is required"]

    def test_monitor_formats(self):
        data = {"category": "MONITOR", "brand": "LG", "model": "27UK", "resolution": "big", "refresh_rate": "fast"}
        assert validate_device_data(data).errors == [
            "Resolution must look like 1920x1080",
            "Refresh rate must look like 60Hz",
        ]
        data.update(resolution="2560x1440", refresh_rate="144Hz")
        assert validate_device_data(data).valid

    def test_hdd_rpm_is_a_warning(self):
        result = validate_device_data({"category": "STORAGE", "brand": "WD", "model": "Blue", "storage_type": "HDD"})
        assert result.valid
        assert result.warnings == ["RPM is recommended for HDD"]

    def test_bad_serial(self):
        result = validate_device_data({"category": "LAPTOP", "brand": "HP", "model": "840", "serial": "a b"})
        assert not result.valid

    def test_bulk_row(self):
        assert validate_bulk_device({"category": "Desktop", "brand": "HP", "model": "800 G4"}).valid
        assert validate_bulk_device({"category": "Toaster", "brand": "HP", "model": "X"}).errors == [
            "Invalid category: Toaster"
        ]

    def test_only_received_devices_are_editable(self):
        assert validate_device_update("RECEIVED", {"brand": "Dell"}).valid
        assert validate_device_update("UNDER_REPAIR", {"brand": "Dell"}).error == "Can only edit devices in RECEIVED status"
        assert validate_device_update("RECEIVED", {"model": ""}).error == "Model cannot be empty"


class TestChecklistsAndIssues:
    def test_laptop_checklist(self):
        items = get_checklist_for_category("LAPTOP")
        assert len(items) == 20
        assert [i.index for i in items] == list(range(1, 21))

    def test_desktop_and_workstation_share_a_list(self):
        assert get_checklist_for_category("DESKTOP") == get_checklist_for_category("WORKSTATION")

    def test_checklist_issues(self):
        text = json.dumps({"failedItems": [{"itemIndex": 4, "itemText": "Keyboard", "notes": "F key"}], "notes": "dusty"})
        parsed = parse_reported_issues(text)
        assert parsed.type == "checklist"
        assert parsed.failed_items[0].index == 4
        assert parsed.failed_items[0].notes == "F key"
        assert parsed.notes == "dusty"

    def test_string_checklist_items(self):
        parsed = parse_reported_issues(json.dumps({"failedItems": ["[7] Case condition: cracked"]}))
        assert parsed.failed_items[0].index == 7
        assert parsed.failed_items[0].text == "Case condition"
        assert parsed.failed_items[0].notes == "cracked"

    def test_legacy_issues(self):
        parsed = parse_reported_issues(json.dumps({"functional": "No boot", "cosmetic": None}))
        assert parsed.type == "legacy"
        assert [i.text for i in parsed.failed_items] == ["Functional: No boot"]

    def test_free_text(self):
        parsed = parse_reported_issues("screen flickers")
        assert parsed.type == "unknown"
        assert parsed.raw == "screen flickers"

    def test_empty(self):
        assert parse_reported_issues(None).type == "unknown"
