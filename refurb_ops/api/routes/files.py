from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from fastapi.responses import FileResponse, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import get_current_active_user, require_roles
from refurb_ops.db.session import get_async_session
from refurb_ops.services.storage import DocumentStorage
from refurb_ops.workflow.users import INWARD_ROLES

router = APIRouter(prefix="/files", tags=["Files"])


class UploadRead(BaseModel):
    key: str
    url: str
    file_name: str
    size: int
    content_type: str


# PUBLIC_INTERFACE
@router.post(
    "/upload",
    response_model=UploadRead,
    summary="Upload document",
    description="Store a purchase order PDF or a delivery challan (image or PDF). Returns the key to save on the record.",
    dependencies=[Depends(require_roles(*INWARD_ROLES))],
)
async def upload_file(
    file: UploadFile = File(...),
    folder: str = Form(..., description='"purchase-orders" or "delivery-challans"'),
    session: AsyncSession = Depends(get_async_session),
) -> UploadRead:
    data = await file.read()
    stored = await DocumentStorage(session).save(folder, file.filename or "file", data, file.content_type or "")
    return UploadRead(**asdict(stored))


# PUBLIC_INTERFACE
@router.get(
    "/{key:path}",
    summary="Download document",
    response_class=Response,
    dependencies=[Depends(get_current_active_user)],
)
async def download_file(
    key: str = Path(..., description="Stored file key"),
    session: AsyncSession = Depends(get_async_session),
) -> Response:
    content = await DocumentStorage(session).fetch(key)
    if content.path is not None:
        return FileResponse(content.path, media_type=content.content_type, filename=content.file_name)
    return Response(
        content=content.data,
        media_type=content.content_type,
        headers={"Content-Disposition": f'inline; filename="{content.file_name}"'},
    )
