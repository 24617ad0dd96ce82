from fastapi import APIRouter, Depends, Query, Request
from starlette import status

from models import User
from schemas.upload import PresignedUrlRequest
from storage.base import BaseStorage
from dependencies import get_storage_manager
from utils.auth import require_user
from utils.response import success
from services import upload as upload_service

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.post("/presigned-url")
def create_presigned_url(
    data: PresignedUrlRequest,
    current_user: User = Depends(require_user),
    storage: BaseStorage = Depends(get_storage_manager)
):
    result = upload_service.create_presigned_upload(storage, data)
    return success(result, "Presigned URL generated successfully")


@router.put("/local/{key:path}", status_code=status.HTTP_201_CREATED)
async def put_local_upload(
    key: str,
    request: Request,
    token: str = Query(...),
    storage: BaseStorage = Depends(get_storage_manager)
):
    body = await upload_service.read_upload_body(request)
    url = upload_service.store_local_upload(storage, key, token, body, request.headers.get("content-type", ""))
    return success({"key": key, "publicUrl": url}, "File uploaded successfully", status.HTTP_201_CREATED)
