"""
User account rules and the role catalogue.

Role gates used by the HTTP layer are defined here so the dashboard's module
map and the route dependencies agree on who may do what.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from .enums import Role
from .results import ValidationResult, fail, ok

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ROLE_DISPLAY_NAMES: Dict[Role, str] = {
    Role.SUPERADMIN: "Super Admin",
    Role.ADMIN: "Admin",
    Role.MIS_WAREHOUSE_EXECUTIVE: "MIS/Warehouse Executive",
    Role.WAREHOUSE_MANAGER: "Warehouse Manager",
    Role.INSPECTION_ENGINEER: "Inspection Engineer",
    Role.REPAIR_ENGINEER: "Repair Engineer",
    Role.L2_ENGINEER: "L2 Engineer",
    Role.L3_ENGINEER: "L3 Engineer",
    Role.DISPLAY_TECHNICIAN: "Display Technician",
    Role.BATTERY_TECHNICIAN: "Battery Technician",
    Role.PAINT_SHOP_TECHNICIAN: "Paint Shop Technician",
    Role.QC_ENGINEER: "QC Engineer",
}

MODULE_ACCESS: Dict[Role, List[str]] = {
    Role.SUPERADMIN: ["*"],
    Role.ADMIN: [
        "dashboard", "inward", "inspection", "repair", "paint", "qc",
        "outward", "inventory", "spares", "reports",
    ],
    Role.MIS_WAREHOUSE_EXECUTIVE: ["dashboard", "inward", "inventory"],
    Role.WAREHOUSE_MANAGER: ["dashboard", "inventory", "outward", "spares", "reports"],
    Role.INSPECTION_ENGINEER: ["dashboard", "inspection"],
    Role.REPAIR_ENGINEER: ["dashboard", "repair"],
    Role.L2_ENGINEER: ["dashboard", "l2"],
    Role.L3_ENGINEER: ["dashboard", "l3"],
    Role.DISPLAY_TECHNICIAN: ["dashboard", "display"],
    Role.BATTERY_TECHNICIAN: ["dashboard", "battery"],
    Role.PAINT_SHOP_TECHNICIAN: ["dashboard", "paint"],
    Role.QC_ENGINEER: ["dashboard", "qc"],
}

# Route gates. SUPERADMIN is accepted by require_roles on top of these.
QC_ROLES: Tuple[Role, ...] = (Role.QC_ENGINEER, Role.ADMIN)
INSPECTION_ROLES: Tuple[Role, ...] = (Role.INSPECTION_ENGINEER, Role.ADMIN)
REPAIR_ROLES: Tuple[Role, ...] = (Role.REPAIR_ENGINEER, Role.ADMIN)
L2_ROLES: Tuple[Role, ...] = (Role.L2_ENGINEER, Role.REPAIR_ENGINEER, Role.ADMIN)
L3_ROLES: Tuple[Role, ...] = (Role.L3_ENGINEER, Role.ADMIN)
BATTERY_ROLES: Tuple[Role, ...] = (Role.BATTERY_TECHNICIAN, Role.L2_ENGINEER, Role.ADMIN)
DISPLAY_ROLES: Tuple[Role, ...] = (Role.DISPLAY_TECHNICIAN, Role.L2_ENGINEER, Role.ADMIN)
PAINT_ROLES: Tuple[Role, ...] = (Role.PAINT_SHOP_TECHNICIAN, Role.ADMIN)
INWARD_ROLES: Tuple[Role, ...] = (Role.MIS_WAREHOUSE_EXECUTIVE, Role.WAREHOUSE_MANAGER, Role.ADMIN)
OUTWARD_ROLES: Tuple[Role, ...] = INWARD_ROLES
INVENTORY_ROLES: Tuple[Role, ...] = (Role.WAREHOUSE_MANAGER, Role.MIS_WAREHOUSE_EXECUTIVE, Role.ADMIN)
SPARE_PART_ADMIN_ROLES: Tuple[Role, ...] = (Role.WAREHOUSE_MANAGER, Role.ADMIN)
RACK_ROLES: Tuple[Role, ...] = (Role.ADMIN, Role.WAREHOUSE_MANAGER)
USER_ADMIN_ROLES: Tuple[Role, ...] = (Role.SUPERADMIN,)


def is_valid_role(role: Optional[str]) -> bool:
    return role in {r.value for r in Role}


# PUBLIC_INTERFACE
def get_role_display_name(role: Role | str) -> str:
    return ROLE_DISPLAY_NAMES[Role(role)]


# PUBLIC_INTERFACE
def get_module_access(role: Role | str) -> List[str]:
    return list(MODULE_ACCESS[Role(role)])


# PUBLIC_INTERFACE
def can_access_module(role: Role | str, module: str) -> bool:
    access = MODULE_ACCESS[Role(role)]
    return "*" in access or module in access


def can_manage_users(role: Role | str) -> bool:
    return Role(role) == Role.SUPERADMIN


def can_access_all_features(role: Role | str) -> bool:
    return Role(role) == Role.SUPERADMIN


def sanitize_email(email: str) -> str:
    return email.lower().strip()


# PUBLIC_INTERFACE
def validate_email(email: Optional[str]) -> bool:
    if not email or not email.strip():
        return False
    return bool(_EMAIL_RE.match(sanitize_email(email)))


# PUBLIC_INTERFACE
def validate_password(password: Optional[str]) -> ValidationResult:
    if not password:
        return fail("Password is required")
    if len(password) < 6:
        return fail("Password must be at least 6 characters")
    return ok()


def validate_name(name: Optional[str]) -> bool:
    return bool(name) and len(name.strip()) >= 2


# PUBLIC_INTERFACE
def validate_new_user(
    email: Optional[str],
    name: Optional[str],
    password: Optional[str],
    role: Optional[str],
) -> ValidationResult:
    errors: List[str] = []
    if not validate_email(email):
        errors.append("A valid email address is required")
    if not validate_name(name):
        errors.append("Name must be at least 2 characters")
    errors.extend(validate_password(password).errors)
    if not is_valid_role(role):
        errors.append("Invalid role")
    return ValidationResult(errors=errors)


def _is_self(current_user_id: object, target_user_id: object) -> bool:
    return str(current_user_id) == str(target_user_id)


# PUBLIC_INTERFACE
def validate_self_action(
    current_user_id: object,
    target_user_id: object,
    deactivating: bool = False,
    changing_role: bool = False,
    deleting: bool = False,
) -> ValidationResult:
    """Administrators may not lock themselves out."""
    if not _is_self(current_user_id, target_user_id):
        return ok()
    if deactivating:
        return fail("You cannot deactivate your own account")
    if changing_role:
        return fail("You cannot change your own role")
    if deleting:
        return fail("You cannot delete your own account")
    return ok()
