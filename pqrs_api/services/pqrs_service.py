import logging
from typing import List, Optional, Tuple

from pqrs_api.core.errors import ValidationFailed
from pqrs_api.repositories.base import PqrsRepository
from pqrs_api.schemas.pqrs import PqrsCreate
from pqrs_api.utils.tracking_code import PQRS_TYPES, derive_code, with_code

logger = logging.getLogger(__name__)

# (field, message) in the order the form reports them
REQUIRED_TEXT_FIELDS = (
    ("message", "El texto es obligatorio"),
    ("first_name", "Primer nombre es obligatorio"),
    ("last_name", "Primer apellido es obligatorio"),
    ("email", "Correo electrónico es obligatorio"),
)


def _is_text(value) -> bool:
    return isinstance(value, str) and value != ""


class PqrsService:

    def __init__(self, repo: PqrsRepository):
        self.repo = repo

    def list_pqrs(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        branch_id: Optional[str] = None,
        company_id: Optional[str] = None,
        pqrs_type: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        rows, count = self.repo.list_pqrs(
            page,
            page_size,
            search=search,
            branch_id=branch_id,
            company_id=company_id,
            pqrs_type=pqrs_type,
        )
        return [with_code(r) for r in rows], count

    def create(self, data: PqrsCreate) -> dict:
        """
        Insert a PQRS and hand back the row with its tracking code.
        The code is derived from the generated id, not stored.
        """
        validate_intake(data)

        record = data.model_dump()
        stored = self.repo.create_pqrs(record)
        code = derive_code(str(stored.get("type") or ""), str(stored.get("id") or ""))
        result = {**stored, "code": code}

        logger.info(
            "pqrs created",
            extra={"props": {
                "pqrs_id": stored.get("id"),
                "type": stored.get("type"),
                "branch_id": stored.get("branch_id"),
                "code": result["code"],
            }},
        )
        return result


def validate_intake(data: PqrsCreate) -> None:
    if not _is_text(data.branch_id):
        raise ValidationFailed("Sucursal requerida")
    if not _is_text(data.company_id):
        raise ValidationFailed("Empresa requerida")
    if data.type not in PQRS_TYPES:
        raise ValidationFailed("Tipo inválido")
    for field, message in REQUIRED_TEXT_FIELDS:
        if not _is_text(getattr(data, field)):
            raise ValidationFailed(message)
