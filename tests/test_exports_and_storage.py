"""Tests for report export, label rendering and upload storage helpers."""

from datetime import date, datetime

import pytest

from refurb_ops.core.errors import DomainError, NotFoundError
from refurb_ops.db.models.inventory import Device
from refurb_ops.services.exports import build_dataframe, export_dataframe, export_filename, format_cell
from refurb_ops.services.labels import label_slots, render_labels_pdf
from refurb_ops.services.storage import resolve_stored_file, sanitize_filename, store_upload


class TestExports:
    def test_format_cell(self):
        assert format_cell(None) == ""
        assert format_cell(True) == "Yes"
        assert format_cell(False) == "No"
        assert format_cell(datetime(2026, 1, 2, 3, 4)) == "2026-01-02T03:04:00"
        assert format_cell(7) == 7

    def test_dataframe_keeps_column_order(self):
        df = build_dataframe([{"b": 1, "a": None}], ["a", "b", "c"])
        assert list(df.columns) == ["a", "b", "c"]
        assert df.iloc[0].tolist() == ["", 1, ""]

    def test_filename(self):
        assert export_filename("qc-records", "csv", today=date(2026, 3, 1)) == "qc-records-2026-03-01.csv"

    def test_unknown_format_falls_back_to_csv(self):
        export = export_dataframe(build_dataframe([{"x": 1}], ["x"]), "inventory", "docx")
        assert export.media_type == "text/csv"
        assert export.content == b"x\n1\n"


class TestLabels:
    def test_two_copies_four_per_page(self):
        pages = label_slots(["a", "b", "c"])
        assert pages == [["a", "a", "b", "b"], ["c", "c"]]

    def test_render_pdf(self):
        device = Device(barcode="L-DEL-0001", category="LAPTOP", brand="Dell", model="Latitude 5490", cpu="i5", ram="8GB")
        assert render_labels_pdf([device]).startswith(b"%PDF")


class TestStorage:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("invoice.pdf", "invoice.pdf"),
            ("../../etc/passwd", "passwd"),
            ("my scan (1).jpg", "my_scan_1_.jpg"),
            ("...", "file"),
        ],
    )
    def test_sanitize_filename(self, name, expected):
        assert sanitize_filename(name) == expected

    def test_store_and_resolve(self, tmp_path, monkeypatch):
        monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
        stored = store_upload("purchase-orders", "po.pdf", b"%PDF-1.4", "application/pdf")
        path, content_type = resolve_stored_file(stored.key)
        assert path.read_bytes() == b"%PDF-1.4"
        assert content_type == "application/pdf"

    def test_resolve_rejects_escape(self, tmp_path, monkeypatch):
        monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
        with pytest.raises(DomainError):
            resolve_stored_file("purchase-orders/../../outside.pdf")
        with pytest.raises(DomainError):
            resolve_stored_file("other/file.pdf")
        with pytest.raises(NotFoundError):
            resolve_stored_file("purchase-orders/missing.pdf")
