"""Tests for matching received devices against purchase order lines."""

from refurb_ops.workflow.enums import VerificationStatus
from refurb_ops.workflow.verification import (
    ExpectedItem,
    ReceivedDevice,
    is_batch_locked,
    verify_shipment,
)


def _device(barcode, brand="Dell", model="Latitude 5490", category="LAPTOP"):
    return ReceivedDevice(barcode=barcode, category=category, brand=brand, model=model)


class TestVerifyShipment:
    def test_everything_arrived(self):
        expected = [ExpectedItem("LAPTOP", "Dell", "Latitude 5490", 2)]
        outcome = verify_shipment(expected, [_device("L-DEL-0001"), _device("L-DEL-0002")])
        assert outcome.status == VerificationStatus.VERIFIED
        assert outcome.match_percentage == 100
        assert outcome.missing == []
        assert outcome.discrepancies == []

    def test_short_delivery_is_partial(self):
        expected = [ExpectedItem("LAPTOP", "Dell", "Latitude 5490", 3)]
        outcome = verify_shipment(expected, [_device("L-DEL-0001")])
        assert outcome.status == VerificationStatus.PARTIAL
        assert outcome.match_percentage == 33
        assert outcome.missing[0]["quantity"] == 2
        assert outcome.discrepancies[0]["type"] == "QUANTITY"
        assert outcome.discrepancies[0]["description"] == "Dell Latitude 5490: expected 3, received 1"

    def test_brand_ignores_case_and_model_is_contained(self):
        expected = [ExpectedItem("LAPTOP", "DELL", "5490", 1)]
        outcome = verify_shipment(expected, [_device("L-DEL-0001", brand="dell")])
        assert outcome.status == VerificationStatus.VERIFIED

    def test_unexpected_device_is_extra(self):
        expected = [ExpectedItem("LAPTOP", "Dell", "Latitude 5490", 1)]
        devices = [_device("L-DEL-0001"), _device("M-LG-0002", brand="LG", model="27UK", category="MONITOR")]
        outcome = verify_shipment(expected, devices)
        assert outcome.status == VerificationStatus.PARTIAL
        assert outcome.match_percentage == 100
        assert [d["barcode"] for d in outcome.extra] == ["M-LG-0002"]
        assert outcome.discrepancies[0]["type"] == "MISMATCH"

    def test_line_absorbs_at_most_its_quantity(self):
        expected = [ExpectedItem("LAPTOP", "Dell", "Latitude 5490", 1)]
        outcome = verify_shipment(expected, [_device("L-DEL-0001"), _device("L-DEL-0002")])
        assert len(outcome.matched) == 1
        assert len(outcome.extra) == 1

    def test_nothing_expected(self):
        outcome = verify_shipment([], [])
        assert outcome.match_percentage == 0
        assert outcome.status == VerificationStatus.VERIFIED

    def test_expected_item_from_mapping(self):
        item = ExpectedItem.from_mapping({"category": "laptop", "brand": "HP", "model": "840", "quantity": "4"})
        assert item == ExpectedItem("LAPTOP", "HP", "840", 4)


class TestBatchLock:
    def test_locked_states(self):
        assert is_batch_locked("VERIFIED")
        assert is_batch_locked("SKIPPED")
        assert not is_batch_locked("PARTIAL")
        assert not is_batch_locked(None)
