"""
Printable barcode labels.

Each label is 100 x 45 mm with a CODE128 barcode, the barcode text, the make
and model, the category and (for compute devices) a short spec line. Every
device gets two identical labels; an A4 page holds four.
"""

from __future__ import annotations

import io
from typing import Iterable, List, Sequence

from reportlab.graphics.barcode import code128
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from refurb_ops.db.models.inventory import Device

LABEL_WIDTH = 100 * mm
LABEL_HEIGHT = 45 * mm
COPIES_PER_DEVICE = 2
LABELS_PER_PAGE = 4
# Top edge of each label slot, measured from the top of the page.
_SLOT_TOPS_MM = (15, 85, 155, 225)


def _spec_line(device: Device) -> str:
    return " / ".join(part for part in (device.cpu, device.ram, device.ssd) if part)


def _draw_label(pdf: canvas.Canvas, device: Device, top: float) -> None:
    page_width, page_height = A4
    left = (page_width - LABEL_WIDTH) / 2
    bottom = page_height - top - LABEL_HEIGHT
    centre = page_width / 2

    pdf.setStrokeGray(0.8)
    pdf.rect(left, bottom, LABEL_WIDTH, LABEL_HEIGHT)

    barcode = code128.Code128(device.barcode, barHeight=16 * mm, barWidth=0.45 * mm, humanReadable=False)
    barcode.drawOn(pdf, centre - barcode.width / 2, bottom + LABEL_HEIGHT - 21 * mm)

    pdf.setFont("Courier-Bold", 10)
    pdf.drawCentredString(centre, bottom + 19 * mm, device.barcode)
    pdf.setFont("Helvetica-Bold", 9)
    pdf.drawCentredString(centre, bottom + 13 * mm, f"{device.brand} {device.model}")
    pdf.setFont("Helvetica", 8)
    pdf.drawCentredString(centre, bottom + 8 * mm, device.category)
    specs = _spec_line(device)
    if specs:
        pdf.setFont("Helvetica", 7)
        pdf.drawCentredString(centre, bottom + 3.5 * mm, specs)


def label_slots(devices: Sequence[Device]) -> List[List[Device]]:
    """Group label copies into pages of LABELS_PER_PAGE."""
    copies: List[Device] = [d for d in devices for _ in range(COPIES_PER_DEVICE)]
    return [copies[i:i + LABELS_PER_PAGE] for i in range(0, len(copies), LABELS_PER_PAGE)]


# PUBLIC_INTERFACE
def render_labels_pdf(devices: Iterable[Device]) -> bytes:
    """Render a PDF of labels for the given devices (two copies each)."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle("Device labels")
    pages = label_slots(list(devices))
    for index, page in enumerate(pages):
        if index:
            pdf.showPage()
        for slot, device in enumerate(page):
            _draw_label(pdf, device, _SLOT_TOPS_MM[slot] * mm)
    pdf.save()
    return buffer.getvalue()
