"""
Rules for the specialist work an L2 engineer fans out (display, battery, L3)
and for claiming and releasing a device from the L2 bench.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

from .enums import ChecklistStatus, DeviceStatus, ParallelWorkStatus
from .results import ValidationResult, fail, ok

_CAPACITY_RE = re.compile(r"^(\d+)%?$")

CLAIMABLE_STATUSES = (DeviceStatus.READY_FOR_REPAIR, DeviceStatus.WAITING_FOR_SPARES)

J = TypeVar("J")


# PUBLIC_INTERFACE
def can_start_parallel_work(status: ParallelWorkStatus | str) -> ValidationResult:
    if ParallelWorkStatus(status) != ParallelWorkStatus.PENDING:
        return fail("Job is not in pending status")
    return ok()


# PUBLIC_INTERFACE
def can_complete_parallel_work(
    status: ParallelWorkStatus | str,
    assigned_to_id: Optional[object],
    technician_id: object,
) -> ValidationResult:
    if ParallelWorkStatus(status) != ParallelWorkStatus.IN_PROGRESS:
        return fail("Job is not in progress")
    if assigned_to_id and str(assigned_to_id) != str(technician_id):
        return fail("Job is assigned to another technician")
    return ok()


@dataclass
class TechnicianJobs(Generic[J]):
    mine: List[J] = field(default_factory=list)
    pending: List[J] = field(default_factory=list)
    others: List[J] = field(default_factory=list)


# PUBLIC_INTERFACE
def filter_jobs_by_technician(jobs: Iterable[J], technician_id: object) -> TechnicianJobs[J]:
    """Split a queue into my in-progress jobs, unclaimed jobs and colleagues' jobs."""
    grouped: TechnicianJobs[J] = TechnicianJobs()
    for job in jobs:
        status = ParallelWorkStatus(getattr(job, "status"))
        assignee = getattr(job, "assigned_to_id")
        mine = assignee is not None and str(assignee) == str(technician_id)
        if status == ParallelWorkStatus.PENDING:
            grouped.pending.append(job)
        elif status == ParallelWorkStatus.IN_PROGRESS:
            (grouped.mine if mine else grouped.others).append(job)
    return grouped


def parse_capacity(capacity: Optional[str]) -> Optional[int]:
    if capacity is None:
        return None
    match = _CAPACITY_RE.match(capacity.strip())
    if not match:
        return None
    return int(match.group(1))


# PUBLIC_INTERFACE
def is_valid_battery_capacity(capacity: Optional[str]) -> bool:
    """Accepts '85%' or '85'; the number must be a percentage."""
    value = parse_capacity(capacity)
    return value is not None and 0 <= value <= 100


# PUBLIC_INTERFACE
def does_battery_meet_target(final_capacity: Optional[str], target_capacity: Optional[str]) -> bool:
    final = parse_capacity(final_capacity)
    target = parse_capacity(target_capacity)
    if final is None or target is None:
        return False
    return final >= target


# PUBLIC_INTERFACE
def is_device_claimable(
    status: DeviceStatus | str,
    has_repair_job: bool,
    repair_job_has_l2_engineer: bool,
) -> ValidationResult:
    if not has_repair_job:
        return fail("No repair job found for this device")
    if repair_job_has_l2_engineer:
        return fail("Device already assigned to another L2 Engineer")
    if DeviceStatus(status) not in CLAIMABLE_STATUSES:
        return fail("Device is not ready to be claimed for repair")
    return ok()


# PUBLIC_INTERFACE
def can_send_to_qc(
    display_repair_required: bool = False,
    display_repair_completed: bool = False,
    battery_boost_required: bool = False,
    battery_boost_completed: bool = False,
    l3_repair_required: bool = False,
    l3_repair_completed: bool = False,
    paint_required: bool = False,
    paint_completed: bool = False,
) -> ValidationResult:
    """Every piece of required parallel work must be finished before QC."""
    errors: List[str] = []
    if display_repair_required and not display_repair_completed:
        errors.append("Display repair not completed")
    if battery_boost_required and not battery_boost_completed:
        errors.append("Battery boost not completed")
    if l3_repair_required and not l3_repair_completed:
        errors.append("L3 repair not completed")
    if paint_required and not paint_completed:
        errors.append("Paint work not completed")
    return ValidationResult(errors=errors)


# PUBLIC_INTERFACE
def count_checklist_statuses(statuses: Sequence[ChecklistStatus | str]) -> Dict[str, int]:
    counted = [ChecklistStatus(s) for s in statuses]
    return {
        "pass": counted.count(ChecklistStatus.PASS),
        "fail": counted.count(ChecklistStatus.FAIL),
        "not_applicable": counted.count(ChecklistStatus.NOT_APPLICABLE),
        "pending": counted.count(ChecklistStatus.PENDING),
    }
