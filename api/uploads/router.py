"""
FastAPI router for upload endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse

from .manager import UploadManager

router = APIRouter()


def get_upload_manager(request: Request) -> UploadManager:
    return request.app.state.uploads


@router.post("/api/upload")
def upload_file(
    file: UploadFile | None = File(default=None),
    manager: UploadManager = Depends(get_upload_manager),
) -> dict:
    """
    Store a single multipart file field named `file`.

    RequestSizeLimitMiddleware caps the raw body before it is spooled;
    the manager enforces the exact file cap while copying.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    result = manager.accept(
        file.file,
        filename=file.filename,
        declared_size=file.size,
        content_type=file.content_type,
    )
    return {
        "success": True,
        "url": result.url,
        "filename": result.filename,
        "originalName": result.original_name,
        "size": result.size,
    }


@router.get("/uploads/{filename}")
def get_upload(
    filename: str,
    manager: UploadManager = Depends(get_upload_manager),
) -> FileResponse:
    return FileResponse(manager.retrieve(filename))
