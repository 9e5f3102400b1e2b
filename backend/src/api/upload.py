"""
Upload API endpoints.

- POST /upload - Multipart upload; each part's field name picks the
  storage folder (avatar, document, attachment, anything else → general)
- GET /upload/{filename} - Download a stored file
- DELETE /upload/{filename} - Remove a stored file (planners/administrators)
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from backend.src.config.settings import get_settings
from backend.src.middleware.auth import AuthContext, require_auth, require_staff
from backend.src.schemas.common import MessageResponse
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.services.upload_service import MAX_FILES_PER_REQUEST, UploadService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/upload", tags=["Uploads"])


class UploadedFileResponse(BaseModel):
    field_name: str
    original_name: str
    filename: str
    folder: str
    size: int
    mime_type: str
    processed: bool
    url: str


class UploadResponse(BaseModel):
    files: List[UploadedFileResponse]


def get_upload_service() -> UploadService:
    return UploadService.from_settings(get_settings())


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload files",
)
async def upload_files(
    request: Request,
    ctx: AuthContext = Depends(require_auth),
    upload_service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    """
    Store every file part of a multipart request.

    Raises:
        400: No files, more than 10 files, disallowed type, or oversize file
    """
    form = await request.form(max_files=MAX_FILES_PER_REQUEST + 1)
    try:
        parts = []
        for field_name, value in form.multi_items():
            if isinstance(value, UploadFile):
                parts.append((field_name, value.filename or "", value.content_type, await value.read()))
        stored = upload_service.store_many(parts)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    finally:
        await form.close()

    logger.info(f"User {ctx.user_guid} uploaded {len(stored)} file(s)")
    return UploadResponse(files=[
        UploadedFileResponse(
            field_name=s.field_name,
            original_name=s.original_name,
            filename=s.filename,
            folder=s.folder,
            size=s.size,
            mime_type=s.mime_type,
            processed=s.processed,
            url=s.url,
        )
        for s in stored
    ])


@router.get("/{filename}", summary="Download file")
async def get_file(
    filename: str,
    ctx: AuthContext = Depends(require_auth),
    upload_service: UploadService = Depends(get_upload_service),
) -> FileResponse:
    try:
        path = upload_service.resolve(filename)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"File {filename} not found")
    return FileResponse(path)


@router.delete("/{filename}", response_model=MessageResponse, summary="Delete file")
async def delete_file(
    filename: str,
    ctx: AuthContext = Depends(require_staff),
    upload_service: UploadService = Depends(get_upload_service),
) -> MessageResponse:
    try:
        upload_service.delete(filename)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"File {filename} not found")

    logger.info(f"File {filename} deleted by {ctx.user_guid}")
    return MessageResponse(message="File deleted successfully")
