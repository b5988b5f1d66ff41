from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional

from .enums import DeviceStatus, Grade, QCStatus
from .results import ValidationResult, fail, ok


# PUBLIC_INTERFACE
def can_perform_qc(
    status: DeviceStatus | str,
    repair_required: bool,
    repair_completed: bool,
    paint_required: bool,
    paint_completed: bool,
) -> ValidationResult:
    """A device enters QC only from AWAITING_QC with its repair and paint work done."""
    status = DeviceStatus(status)
    if status != DeviceStatus.AWAITING_QC:
        return fail(f"Device is not ready for QC. Current status: {status.value}")
    if repair_required and not repair_completed:
        return fail("Device requires repair which is not yet completed")
    if paint_required and not paint_completed:
        return fail("Device requires painting which is not yet completed")
    return ok()


def is_valid_grade(grade: Optional[str]) -> bool:
    return grade in (Grade.A.value, Grade.B.value)


# PUBLIC_INTERFACE
def validate_qc_data(
    qc_eng_id: Optional[str],
    status: QCStatus | str,
    final_grade: Optional[str],
    remarks: Optional[str],
) -> ValidationResult:
    errors: List[str] = []
    if not qc_eng_id or not str(qc_eng_id).strip():
        errors.append("QC Engineer ID is required")

    status = QCStatus(status)
    if status == QCStatus.PASSED and not final_grade:
        errors.append("Grade is required for passed devices")
    if status == QCStatus.PASSED and final_grade and not is_valid_grade(final_grade):
        errors.append("Grade must be A or B")
    if status == QCStatus.FAILED_REWORK and (not remarks or not remarks.strip()):
        errors.append("Remarks are required for failed devices")
    return ValidationResult(errors=errors)


# PUBLIC_INTERFACE
def calculate_checklist_pass_rate(items: Iterable[Mapping[str, Any]]) -> int:
    """Percentage of items with a truthy 'passed' flag, rounded half up; 0 for an empty list."""
    items = list(items)
    if not items:
        return 0
    passed = sum(1 for item in items if item.get("passed"))
    return math.floor(passed / len(items) * 100 + 0.5)


def get_failed_checklist_items(items: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    return [item for item in items if not item.get("passed")]


# PUBLIC_INTERFACE
def format_qc_failure_notes(remarks: Optional[str], checklist_results: Optional[str]) -> str:
    return (
        "QC FAILED - REWORK REQUIRED\n"
        f"QC Remarks: {remarks or 'None'}\n"
        f"Checklist: {checklist_results or 'N/A'}"
    )


# PUBLIC_INTERFACE
def append_qc_notes(existing_notes: Optional[str], qc_notes: str) -> str:
    if not existing_notes or not existing_notes.strip():
        return qc_notes
    return f"{existing_notes}\n\n{qc_notes}"
