"""Tests for the device lifecycle transitions."""

import pytest

from refurb_ops.workflow.enums import DeviceStatus, MovementType, RepairJobStatus
from refurb_ops.workflow.transitions import (
    determine_next_status_after_checklist_inspection,
    determine_next_status_after_inspection,
    determine_next_status_after_outward,
    determine_next_status_after_paint_collection,
    determine_next_status_after_qc,
    determine_next_status_after_repair,
    movement_type_for_outward,
    state_after_qc_failure,
)


class TestAfterInspection:
    def test_spares_request_waits_for_spares(self):
        status = determine_next_status_after_inspection("No power", "Battery", False, [])
        assert status == DeviceStatus.WAITING_FOR_SPARES

    def test_issues_without_spares_go_to_repair(self):
        status = determine_next_status_after_inspection("Keyboard dead", None, False, [])
        assert status == DeviceStatus.READY_FOR_REPAIR

    def test_spares_alone_count_as_repair(self):
        status = determine_next_status_after_inspection("", "Fan", False, [])
        assert status == DeviceStatus.WAITING_FOR_SPARES

    def test_repair_wins_over_paint(self):
        status = determine_next_status_after_inspection("Hinge loose", None, True, ["Top Cover"])
        assert status == DeviceStatus.READY_FOR_REPAIR

    def test_paint_only(self):
        status = determine_next_status_after_inspection(None, None, True, ["Top Cover"])
        assert status == DeviceStatus.IN_PAINT_SHOP

    def test_paint_flag_without_panels_goes_to_qc(self):
        status = determine_next_status_after_inspection(None, None, True, [])
        assert status == DeviceStatus.AWAITING_QC

    def test_whitespace_issues_are_ignored(self):
        assert determine_next_status_after_inspection("   ", None, False, []) == DeviceStatus.AWAITING_QC


class TestAfterChecklistInspection:
    def test_any_fail_routes_to_repair(self):
        status = determine_next_status_after_checklist_inspection(["PASS", "FAIL", "NOT_APPLICABLE"], None)
        assert status == DeviceStatus.READY_FOR_REPAIR

    def test_all_pass_with_panels_goes_to_paint(self):
        status = determine_next_status_after_checklist_inspection(["PASS", "PASS"], None, ["Bezel"])
        assert status == DeviceStatus.IN_PAINT_SHOP

    def test_all_pass_goes_to_qc(self):
        assert determine_next_status_after_checklist_inspection(["PASS"], None) == DeviceStatus.AWAITING_QC

    def test_invalid_status_raises(self):
        with pytest.raises(ValueError):
            determine_next_status_after_checklist_inspection(["MAYBE"], None)


class TestAfterRepairAndPaint:
    @pytest.mark.parametrize(
        "paint_required, paint_completed, expected",
        [
            (True, False, DeviceStatus.IN_PAINT_SHOP),
            (True, True, DeviceStatus.AWAITING_QC),
            (False, False, DeviceStatus.AWAITING_QC),
        ],
    )
    def test_after_repair(self, paint_required, paint_completed, expected):
        assert determine_next_status_after_repair(paint_required, paint_completed) == expected

    @pytest.mark.parametrize(
        "repair_required, repair_completed, expected",
        [
            (True, False, DeviceStatus.UNDER_REPAIR),
            (True, True, DeviceStatus.AWAITING_QC),
            (False, False, DeviceStatus.AWAITING_QC),
        ],
    )
    def test_after_paint_collection(self, repair_required, repair_completed, expected):
        assert determine_next_status_after_paint_collection(repair_required, repair_completed) == expected


class TestAfterQCAndOutward:
    def test_passed_is_ready_for_stock(self):
        assert determine_next_status_after_qc("PASSED") == DeviceStatus.READY_FOR_STOCK

    def test_failed_goes_back_to_repair(self):
        assert determine_next_status_after_qc("FAILED_REWORK") == DeviceStatus.READY_FOR_REPAIR

    def test_rework_state_resets_repair(self):
        state = state_after_qc_failure(paint_required=False)
        assert state.device_status == DeviceStatus.READY_FOR_REPAIR
        assert state.repair_completed is False
        assert state.paint_completed is True
        assert state.repair_job_status == RepairJobStatus.READY_FOR_REPAIR

    def test_rework_state_redoes_required_paint(self):
        assert state_after_qc_failure(paint_required=True).paint_completed is False

    def test_outward_statuses(self):
        assert determine_next_status_after_outward("SALES") == DeviceStatus.STOCK_OUT_SOLD
        assert determine_next_status_after_outward("RENTAL") == DeviceStatus.STOCK_OUT_RENTAL

    def test_outward_movement_types(self):
        assert movement_type_for_outward("SALES") == MovementType.SALES_OUTWARD
        assert movement_type_for_outward("RENTAL") == MovementType.RENTAL_OUTWARD
