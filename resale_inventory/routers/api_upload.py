from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from ..deps.auth import require_api_key
from ..schemas.upload import UploadImageResponse
from ..services.uploads import ALLOWED_IMAGE_TYPES, UploadTooLarge, store_image

router = APIRouter(prefix="/api/upload", tags=["upload"], dependencies=[Depends(require_api_key)])


@router.post("/image", response_model=UploadImageResponse)
async def api_upload_image(image: UploadFile = File(...)):
    filename = (image.filename or "").strip()
    if not filename:
        await image.close()
        raise HTTPException(status_code=400, detail="An image upload is required")
    content_type = (image.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        await image.close()
        raise HTTPException(
            status_code=415,
            detail="Only image uploads (PNG, JPG, GIF, WEBP, HEIC) are supported",
        )
    try:
        stored = store_image(filename, content_type, image.file)
    except UploadTooLarge as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await image.close()
    return UploadImageResponse(
        success=True,
        message="Image uploaded successfully",
        url=stored.url,
        filename=stored.filename,
    )
