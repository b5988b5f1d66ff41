from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from refurb_ops.core.deps import get_current_active_user
from refurb_ops.schemas.auth import RoleInfo
from refurb_ops.workflow.enums import Role
from refurb_ops.workflow.users import get_module_access, get_role_display_name

router = APIRouter(prefix="/roles", tags=["Roles"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[RoleInfo],
    summary="List roles",
    description="The fixed role catalogue with display names and module access.",
    dependencies=[Depends(get_current_active_user)],
)
async def list_roles() -> List[RoleInfo]:
    return [
        RoleInfo(code=role.value, display_name=get_role_display_name(role), modules=get_module_access(role))
        for role in Role
    ]
