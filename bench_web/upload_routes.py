"""Privileged file upload into object storage."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from bench.auth.models import Profile
from bench.services.object_storage import LocalObjectStorage, decode_base64

from .auth_middleware import require_super_admin

router = APIRouter(tags=["storage"])


class UploadRequest(BaseModel):
    bucket: Optional[str] = None
    fileName: Optional[str] = None
    fileData: Optional[str] = None
    contentType: Optional[str] = None


@router.post("/upload")
def upload_file(
    body: UploadRequest,
    request: Request,
    current_user: Profile = Depends(require_super_admin),
):
    """
    Upload a base64 payload.

    Response: {"success": true, "publicUrl": "...", "path": "bucket/name"}
    """
    storage: LocalObjectStorage = request.app.state.object_storage
    data = decode_base64(body.fileData)
    public_url, path = storage.put(body.bucket, body.fileName, data, body.contentType)
    return {"success": True, "publicUrl": public_url, "path": path}
