import logging
import math
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from pqrs_api.core.config import Settings
from pqrs_api.core.errors import DeliveryError, ValidationFailed
from pqrs_api.repositories.base import ResponseRepository
from pqrs_api.services.mail_service import MailSender, OutgoingResponse, build_response_email
from pqrs_api.utils.query_cache import QueryCache, cache_key

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ANSWERED_LABEL = "Respondido"
MAX_QUERY_LIMIT = 50
PREVIEW_CHARS = 100


class ResponseService:
    """
    Email answers to PQRS records.

    Every send attempt is recorded in pqrs_responses, `sent` or `failed`.
    """

    def __init__(
        self,
        repo: ResponseRepository,
        mailer: MailSender,
        settings: Settings,
        cache: Optional[QueryCache] = None,
    ):
        self.repo = repo
        self.mailer = mailer
        self.settings = settings
        self.cache = cache

    # =================================================
    # Listing
    # =================================================
    def list_for_pqrs(self, pqrs_id: Optional[str], page: int, page_size: int) -> dict:
        rows, total = self.repo.list_responses(page, page_size, pqrs_id=pqrs_id)
        return {
            "ok": True,
            "data": rows,
            "pagination": {
                "page": page,
                "pageSize": page_size,
                "total": total,
                "totalPages": math.ceil(total / page_size) if page_size > 0 else 0,
            },
        }

    def answered_map(self, pqrs_ids: Sequence[str], page: int, page_size: int) -> Dict[str, str]:
        """pqrs_id -> "Respondido" for the dashboard status column."""
        rows, _ = self.repo.list_responses(page, page_size, pqrs_ids=pqrs_ids)
        return {r["pqrs_id"]: ANSWERED_LABEL for r in rows if r.get("pqrs_id")}

    # =================================================
    # Sending
    # =================================================
    def send(self, response: OutgoingResponse) -> dict:
        if not (response.to_email and response.pqrs_id and response.content and response.responder_email):
            raise ValidationFailed(
                "Faltan campos obligatorios: to_email, pqrs_id, content, responder_email"
            )
        if not EMAIL_RE.match(response.to_email):
            raise ValidationFailed("Formato de email inválido")

        message = build_response_email(response, self.settings)
        attachment_count = 1 if response.attachment is not None else 0

        try:
            message_id = self.mailer.send(message)
        except Exception as e:
            logger.exception(
                "email delivery failed",
                extra={"props": {"pqrs_id": response.pqrs_id}},
            )
            self.repo.insert_response({
                "pqrs_id": response.pqrs_id,
                "response_text": response.content,
                "response_type": "email",
                "status": "failed",
                "sent_by": response.responder_email,
                "email_subject": response.subject or None,
                "error_message": str(e),
                "attachment_count": attachment_count,
            })
            self._invalidate()
            raise DeliveryError("Error al enviar el correo") from e

        record = {
            "pqrs_id": response.pqrs_id,
            "response_text": response.content,
            "response_type": "email",
            "status": "sent",
            "sent_at": datetime.now(timezone.utc).isoformat(),
            "sent_by": response.responder_email,
            "email_subject": response.subject or None,
            "attachment_count": attachment_count,
        }

        try:
            stored = self.repo.insert_response(record)
        except Exception:
            # mail already left; report success with a warning
            logger.exception(
                "response sent but not recorded",
                extra={"props": {"pqrs_id": response.pqrs_id, "message_id": message_id}},
            )
            return {
                "status": "sent",
                "message": "Correo enviado exitosamente (advertencia: no se pudo guardar en BD)",
                "messageId": message_id,
            }

        self._invalidate()
        return {
            "status": "sent",
            "message": "Correo enviado y registrado exitosamente",
            "messageId": message_id,
            "id": stored.get("id"),
        }

    # =================================================
    # Filtered query (cached)
    # =================================================
    def query(
        self,
        pqrs_id: Optional[str],
        page: str = "1",
        limit: str = "10",
        search: str = "",
        status: str = "",
        date_from: str = "",
        date_to: str = "",
    ) -> dict:
        if not pqrs_id:
            raise ValidationFailed("ID del PQRS es requerido")

        params = {
            "pqrs_id": pqrs_id,
            "page": page,
            "limit": limit,
            "search": search,
            "status": status,
            "date_from": date_from,
            "date_to": date_to,
        }
        key = cache_key(params)

        if self.cache is not None:
            self.cache.purge_expired()
            cached = self.cache.get(key)
            if cached is not None:
                logger.info("response query cache hit", extra={"props": {"pqrs_id": pqrs_id}})
                return cached

        page_n = max(1, _to_int(page, 1))
        limit_n = min(MAX_QUERY_LIMIT, max(1, _to_int(limit, 10)))
        offset = (page_n - 1) * limit_n

        rows, total = self.repo.query_responses(
            pqrs_id,
            offset,
            limit_n,
            search=search,
            status=status,
            date_from=date_from,
            date_to=date_to,
        )
        total_pages = math.ceil(total / limit_n)

        result = {
            "responses": [_present(r) for r in rows],
            "pagination": {
                "page": page_n,
                "limit": limit_n,
                "total": total,
                "totalPages": total_pages,
                "hasNext": page_n < total_pages,
                "hasPrev": page_n > 1,
            },
            "summary": _summarize(self.repo.statuses(pqrs_id)),
            "filters": {
                "search": search,
                "status": status,
                "date_from": date_from,
                "date_to": date_to,
            },
        }

        if self.cache is not None:
            self.cache.put(key, result, ttl=self.settings.response_cache_ttl_seconds)
        return result

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    def _invalidate(self) -> None:
        # a new response changes every cached page of its record
        self.clear_cache()


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _summarize(statuses: List[str]) -> dict:
    summary = {"total": 0, "sent": 0, "failed": 0, "pending": 0}
    for s in statuses:
        summary["total"] += 1
        if s in ("sent", "failed", "pending"):
            summary[s] += 1
    return summary


def _present(row: dict) -> dict:
    text = row.get("response_text") or ""
    attachments = row.get("attachment_count") or 0
    return {
        "id": row.get("id"),
        "pqrs_id": row.get("pqrs_id"),
        "responder_email": row.get("sent_by"),
        "responder_name": row.get("sent_by"),
        "subject": row.get("email_subject") or None,
        "content": text,
        "status": row.get("status") or None,
        "sent_at": row.get("sent_at"),
        "created_at": row.get("created_at"),
        "error_message": row.get("error_message"),
        "retry_count": row.get("retry_count"),
        "has_attachments": attachments > 0,
        "attachment_count": attachments,
        "content_preview": text[:PREVIEW_CHARS] + "..." if text else "",
        "content_length": len(text),
    }
