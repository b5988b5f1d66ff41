"""
Outgoing email over the Resend HTTP API plus the notification templates.

Without RESEND_API_KEY nothing is sent: the message is logged and reported as
skipped so local and test runs work offline.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, NamedTuple, Optional

import httpx

from refurb_ops.core.settings import get_app_settings

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    success: bool
    skipped: bool = False
    id: Optional[str] = None
    error: Optional[str] = None


class EmailTemplate(NamedTuple):
    subject: str
    html: str


# PUBLIC_INTERFACE
async def send_email(to: str, subject: str, body_html: str) -> EmailResult:
    """Send one email. Transport failures are logged and returned, never raised."""
    settings = get_app_settings()
    if not settings.RESEND_API_KEY:
        logger.info("Skipping email to %s (RESEND_API_KEY not configured): %s", to, subject)
        return EmailResult(success=True, skipped=True)

    payload = {
        "from": f"{settings.EMAIL_APP_NAME} <{settings.FROM_EMAIL}>",
        "to": [to],
        "subject": subject,
        "html": body_html,
    }
    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(15.0, connect=5.0)) as client:
            response = await client.post(
                settings.RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
            )
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as exc:
        logger.exception("Failed to send email to %s", to)
        return EmailResult(success=False, error=str(exc))

    logger.info("Email sent to %s: %s", to, data.get("id"))
    return EmailResult(success=True, id=data.get("id"))


def _e(value: object) -> str:
    return html.escape(str(value))


def _layout(title: str, accent: str, recipient_name: str, intro: str, rows: Iterable[str], outro: str) -> str:
    app_name = _e(get_app_settings().EMAIL_APP_NAME)
    body = "".join(f'<p style="margin: 5px 0;">{row}</p>' for row in rows)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<div style="background: {accent}; padding: 20px; text-align: center;">'
        f'<h1 style="color: white; margin: 0;">{app_name}</h1></div>'
        '<div style="padding: 30px; background: #f9fafb;">'
        f'<h2 style="margin-top: 0;">{_e(title)}</h2>'
        f"<p>Hi {_e(recipient_name)},</p><p>{_e(intro)}</p>"
        f'<div style="background: white; border-left: 4px solid {accent}; padding: 20px; margin: 20px 0;">{body}</div>'
        f"<p>{_e(outro)}</p></div>"
        '<div style="background: #1f2937; padding: 15px; text-align: center;">'
        f'<p style="color: #9ca3af; margin: 0; font-size: 12px;">{app_name} - Automated Notification</p>'
        "</div></div>"
    )


def _fmt_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC")


# PUBLIC_INTERFACE
def tat_approaching_email(
    recipient_name: str, device_barcode: str, device_model: str, due_date: datetime, hours_remaining: int
) -> EmailTemplate:
    return EmailTemplate(
        subject=f"TAT Alert: Device {device_barcode} due in {hours_remaining} hours",
        html=_layout(
            "TAT Deadline Approaching",
            "#F59E0B",
            recipient_name,
            "The following device is approaching its TAT deadline:",
            [
                f"<strong>Device:</strong> {_e(device_barcode)}",
                f"<strong>Model:</strong> {_e(device_model)}",
                f"<strong>Due Date:</strong> {_fmt_date(due_date)}",
                f"<strong>Time Remaining:</strong> {hours_remaining} hours",
            ],
            "Please prioritize this device to meet the SLA.",
        ),
    )


# PUBLIC_INTERFACE
def tat_breached_email(
    recipient_name: str, device_barcode: str, device_model: str, due_date: datetime, days_overdue: int
) -> EmailTemplate:
    return EmailTemplate(
        subject=f"URGENT: TAT Breached - Device {device_barcode} is {days_overdue} days overdue",
        html=_layout(
            "TAT BREACHED",
            "#EF4444",
            recipient_name,
            "The following device has exceeded its TAT deadline:",
            [
                f"<strong>Device:</strong> {_e(device_barcode)}",
                f"<strong>Model:</strong> {_e(device_model)}",
                f"<strong>Due Date:</strong> {_fmt_date(due_date)}",
                f"<strong>Days Overdue:</strong> {days_overdue}",
            ],
            "Immediate action required!",
        ),
    )


# PUBLIC_INTERFACE
def spares_requested_email(
    recipient_name: str, device_barcode: str, device_model: str, spares_required: str, requested_by: str
) -> EmailTemplate:
    return EmailTemplate(
        subject=f"Spares Request: {device_barcode} needs parts",
        html=_layout(
            "Spares Request",
            "#3B82F6",
            recipient_name,
            "A new spares request has been submitted:",
            [
                f"<strong>Device:</strong> {_e(device_barcode)}",
                f"<strong>Model:</strong> {_e(device_model)}",
                f"<strong>Required Spares:</strong> {_e(spares_required)}",
                f"<strong>Requested By:</strong> {_e(requested_by)}",
            ],
            "Please review and issue the required spares.",
        ),
    )


# PUBLIC_INTERFACE
def qc_failed_email(
    recipient_name: str, device_barcode: str, device_model: str, remarks: str, qc_engineer: str
) -> EmailTemplate:
    return EmailTemplate(
        subject=f"QC Failed: {device_barcode} requires rework",
        html=_layout(
            "QC Failed - Rework Required",
            "#D97706",
            recipient_name,
            "A device has failed QC and requires rework:",
            [
                f"<strong>Device:</strong> {_e(device_barcode)}",
                f"<strong>Model:</strong> {_e(device_model)}",
                f"<strong>QC Engineer:</strong> {_e(qc_engineer)}",
                f"<strong>Remarks:</strong> {_e(remarks)}",
            ],
            "Please address the issues and resubmit for QC.",
        ),
    )


# PUBLIC_INTERFACE
def paint_ready_email(
    recipient_name: str, device_barcode: str, device_model: str, panels: Iterable[str]
) -> EmailTemplate:
    return EmailTemplate(
        subject=f"Paint Ready: {device_barcode} panels ready for collection",
        html=_layout(
            "Paint Panels Ready",
            "#10B981",
            recipient_name,
            "Paint panels are ready for collection:",
            [
                f"<strong>Device:</strong> {_e(device_barcode)}",
                f"<strong>Model:</strong> {_e(device_model)}",
                f"<strong>Ready Panels:</strong> {_e(', '.join(panels))}",
            ],
            "Please collect the panels from the paint shop.",
        ),
    )


# PUBLIC_INTERFACE
def po_aging_email(
    po_number: str,
    supplier_code: Optional[str],
    expected_devices: int,
    created_at: datetime,
    days_old: int,
) -> EmailTemplate:
    return EmailTemplate(
        subject=f"PO Aging Alert: {po_number} not received for {days_old} days",
        html=_layout(
            "Purchase Order Not Yet Received",
            "#F59E0B",
            "Warehouse Manager",
            "The following purchase order has not been addressed:",
            [
                f"<strong>PO Number:</strong> {_e(po_number)}",
                f"<strong>Supplier Code:</strong> {_e(supplier_code or '-')}",
                f"<strong>Expected Devices:</strong> {expected_devices}",
                f"<strong>Created:</strong> {_fmt_date(created_at)}",
                f"<strong>Age:</strong> {days_old} days",
            ],
            "Please follow up with the supplier.",
        ),
    )
