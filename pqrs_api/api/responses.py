# pqrs_api/api/responses.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from pqrs_api.core.errors import DeliveryError, ValidationFailed, error_body
from pqrs_api.dependencies import get_response_service
from pqrs_api.services.mail_service import DEFAULT_SUBJECT, Attachment, OutgoingResponse
from pqrs_api.services.response_service import ResponseService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["responses"])

RESPONSE_FIELDS = (
    "to_email", "pqrs_id", "content", "responder_email", "subject", "cc_emails", "bcc_emails",
)


# =================================================
# Helpers
# =================================================
def _text(value) -> Optional[str]:
    return value if isinstance(value, str) else None


async def _read_outgoing(request: Request) -> OutgoingResponse:
    """Body is either JSON or multipart/form-data with one optional attachment."""
    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type:
        form = await request.form()
        attachment = None
        upload = form.get("attachment")
        if isinstance(upload, UploadFile) and upload.filename:
            attachment = Attachment(
                filename=upload.filename,
                content=await upload.read(),
                content_type=upload.content_type or "application/octet-stream",
            )
        fields = {k: _text(form.get(k)) for k in RESPONSE_FIELDS}
    else:
        try:
            body = await request.json()
        except ValueError:
            raise ValidationFailed("Cuerpo JSON inválido")
        if not isinstance(body, dict):
            raise ValidationFailed("Cuerpo JSON inválido")
        attachment = None
        fields = {k: _text(body.get(k)) for k in RESPONSE_FIELDS}

    return OutgoingResponse(
        to_email=fields["to_email"] or "",
        pqrs_id=fields["pqrs_id"] or "",
        content=fields["content"] or "",
        responder_email=fields["responder_email"] or "",
        subject=fields["subject"] or DEFAULT_SUBJECT,
        cc_emails=fields["cc_emails"],
        bcc_emails=fields["bcc_emails"],
        attachment=attachment,
    )


# =================================================
# 1. GET responses of one PQRS / answered map
# =================================================
@router.get("")
def list_responses(
    pqrs_id: Optional[str] = Query(None, alias="pqrsId"),
    ids: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=1000, alias="pageSize"),
    service: ResponseService = Depends(get_response_service),
):
    if not pqrs_id and ids:
        id_list = [i.strip() for i in ids.split(",") if i.strip()]
        return {"ok": True, "data": service.answered_map(id_list, page, page_size)}

    return service.list_for_pqrs(pqrs_id, page, page_size)


# =================================================
# 2. POST send an email answer
# =================================================
@router.post("")
async def send_response(
    request: Request,
    service: ResponseService = Depends(get_response_service),
):
    outgoing = await _read_outgoing(request)

    try:
        # smtp is blocking
        result = await run_in_threadpool(service.send, outgoing)
    except DeliveryError as e:
        cause = e.__cause__
        return JSONResponse(
            status_code=500,
            content={
                **error_body(e.message),
                "data": {
                    "status": "failed",
                    "error_message": str(cause) if cause else e.message,
                },
            },
        )

    return {"ok": True, "data": result}


# =================================================
# 3. Filtered query with cache
# =================================================
@router.get("/queries")
def query_responses(
    pqrs_id: Optional[str] = None,
    page: str = "1",
    limit: str = "10",
    search: str = "",
    status: str = "",
    date_from: str = "",
    date_to: str = "",
    service: ResponseService = Depends(get_response_service),
):
    return service.query(
        pqrs_id,
        page=page.strip(),
        limit=limit.strip(),
        search=search.strip(),
        status=status.strip(),
        date_from=date_from.strip(),
        date_to=date_to.strip(),
    )


@router.delete("/queries")
def clear_query_cache(
    action: Optional[str] = None,
    service: ResponseService = Depends(get_response_service),
):
    if action != "clear_cache":
        raise ValidationFailed("Acción no válida")

    service.clear_cache()
    logger.info("response query cache cleared")
    return {"ok": True, "message": "Cache limpiado exitosamente"}
