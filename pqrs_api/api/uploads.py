import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from pqrs_api.core.config import settings
from pqrs_api.core.errors import ValidationFailed
from pqrs_api.dependencies import get_logo_storage
from pqrs_api.utils.id_generator import generate_upload_name

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])

ALLOWED_LOGO_TYPES = {"image/png", "image/jpg", "image/jpeg", "image/webp", "image/gif"}
LOGO_FOLDER = "logos"


@router.post("/logo")
async def upload_logo(
    file: Optional[UploadFile] = File(None),
    storage=Depends(get_logo_storage),
):
    """
    Company / branch logo -> public bucket.
    Returns the public URL to store in logo_url.
    """
    if file is None:
        raise ValidationFailed("Archivo requerido")

    if file.content_type not in ALLOWED_LOGO_TYPES:
        raise ValidationFailed(
            "Tipo de archivo no válido. Solo se permiten imágenes PNG, JPG, JPEG, WEBP y GIF."
        )

    content = await file.read()
    if len(content) > settings.logo_max_bytes:
        raise ValidationFailed("El archivo es demasiado grande. Máximo 5MB.")

    ext = os.path.splitext(file.filename or "")[1].lstrip(".").lower() or "png"
    path = f"{LOGO_FOLDER}/{generate_upload_name(ext)}"

    url = await run_in_threadpool(storage.upload, path, content, file.content_type)
    logger.info("logo uploaded", extra={"props": {"path": path, "bytes": len(content)}})
    return {"ok": True, "url": url}
