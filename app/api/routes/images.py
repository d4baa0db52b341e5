"""Image upload and authenticated image proxy endpoints."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from app.api.dependencies import get_settings, get_storage_service, get_token_verifier
from app.config import Settings
from app.middleware.auth import verify_api_key
from app.middleware.rate_limit import rate_limit_dependency
from app.services.storage_service import StorageService, build_upload_path
from app.services.token_verifier import TokenVerifier
from app.utils.exceptions import NotFoundError, ValidationError
from app.utils.validators import decode_base64_image, validate_path_segment, validate_storage_path

logger = logging.getLogger(__name__)
router = APIRouter(
    tags=["images"],
    dependencies=[Depends(verify_api_key), Depends(rate_limit_dependency)],
)

IMAGE_CACHE_CONTROL = "public, max-age=3600"


class UploadImageRequest(BaseModel):
    """Request body for /upload-image."""

    imageData: Optional[str] = None  # base64, optionally as a data: URL
    fileName: Optional[str] = None
    contentType: Optional[str] = None
    userId: Optional[str] = None
    recipeId: Optional[str] = None


class UploadImageResponse(BaseModel):
    success: bool
    downloadURL: str
    uploadPath: str


class ImageProxyRequest(BaseModel):
    """Request body for /image-proxy."""

    storagePath: Optional[str] = None
    authToken: Optional[str] = None


@router.post("/upload-image", response_model=UploadImageResponse)
async def upload_image(
    request: Request,
    body: UploadImageRequest,
    storage: StorageService = Depends(get_storage_service),
    app_settings: Settings = Depends(get_settings),
) -> UploadImageResponse:
    """
    Upload a base64 image for a recipe and return its download URL.
    """
    if not (body.imageData and body.fileName and body.contentType and body.userId):
        raise ValidationError("Missing required fields: imageData, fileName, contentType, userId")

    user_id = validate_path_segment(body.userId, "userId")
    file_name = validate_path_segment(body.fileName, "fileName")
    recipe_id = validate_path_segment(body.recipeId, "recipeId") if body.recipeId else None

    image_bytes = decode_base64_image(body.imageData, app_settings.max_upload_bytes)
    upload_path = build_upload_path(user_id, file_name, recipe_id)

    logger.info(
        "Route /upload-image called",
        extra={
            "route": "/upload-image",
            "params": {
                "upload_path": upload_path,
                "content_type": body.contentType,
                "size": len(image_bytes),
            },
        },
    )

    await asyncio.to_thread(storage.upload, upload_path, image_bytes, body.contentType, user_id)
    download_url = await asyncio.to_thread(storage.public_url, upload_path)

    return UploadImageResponse(success=True, downloadURL=download_url, uploadPath=upload_path)


@router.post("/image-proxy")
async def image_proxy(
    request: Request,
    body: ImageProxyRequest,
    storage: StorageService = Depends(get_storage_service),
    token_verifier: TokenVerifier = Depends(get_token_verifier),
    app_settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """
    Stream a stored image to a signed-in user.

    - **storagePath**: object path inside the bucket
    - **authToken**: Firebase ID token of the requesting user
    """
    if not body.storagePath or not body.authToken:
        raise ValidationError("Missing storagePath or authToken")
    storage_path = validate_storage_path(body.storagePath)

    user_id = await asyncio.to_thread(token_verifier.verify, body.authToken)

    logger.info(
        "Route /image-proxy called",
        extra={
            "route": "/image-proxy",
            "params": {"storage_path": storage_path, "auth_token": f"{body.authToken[:8]}..."},
            "user_id": user_id,
        },
    )

    if not await asyncio.to_thread(storage.exists, storage_path):
        raise NotFoundError("Image not found")

    metadata = await asyncio.to_thread(storage.get_metadata, storage_path)

    headers = {"Cache-Control": IMAGE_CACHE_CONTROL}
    if metadata.size is not None:
        headers["Content-Length"] = str(metadata.size)

    return StreamingResponse(
        storage.open_stream(storage_path, app_settings.image_stream_chunk_size),
        media_type=metadata.content_type,
        headers=headers,
    )
