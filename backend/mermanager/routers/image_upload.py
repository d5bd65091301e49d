import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from mermanager.errors import StoreError
from mermanager.routers.auth_router import get_current_user
from mermanager.utils.s3 import upload_file_to_s3, delete_file_from_s3

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["Image Upload"])

ALLOWED_TYPES = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


@router.post("/")
async def upload_image(file: UploadFile = File(...), user=Depends(get_current_user)):
    file_ext = ALLOWED_TYPES.get(file.content_type)
    if not file_ext:
        raise HTTPException(status_code=400, detail="Only JPEG, PNG or WebP images are accepted")
    file_name = f"{uuid4().hex}.{file_ext}"

    file_content = await file.read()
    try:
        url = upload_file_to_s3(file_content, f"{user}/{file_name}", file.content_type)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    logger.info("Uploaded image %s for %s", file_name, user)
    return {
        "filename": file_name,
        "url": url,
        "message": "Image uploaded successfully"
    }


@router.delete("/{filename}")
async def delete_image(filename: str, user=Depends(get_current_user)):
    try:
        delete_file_from_s3(f"{user}/{filename}")
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"message": "Image deleted successfully"}
