import logging
from datetime import datetime, timezone
from typing import Optional

from pqrs_api.core.errors import InvalidCodeError, NotFoundError, UnknownPrefixError
from pqrs_api.repositories.base import PqrsRepository, pick_name
from pqrs_api.utils.tracking_code import MIN_CODE_LENGTH, derive_code, type_for_prefix

logger = logging.getLogger(__name__)


class TrackingService:
    """
    Reverse lookup of tracking codes.

    The code is not stored, so the lookup reads the newest `scan_limit`
    records of the category and recomputes each code. Records outside that
    window cannot be found; on a collision the newest record wins.
    """

    def __init__(self, pqrs_repo: PqrsRepository, scan_limit: int = 1000):
        self.pqrs_repo = pqrs_repo
        self.scan_limit = scan_limit

    def resolve(self, code: str) -> Optional[dict]:
        """
        Raises InvalidCodeError / UnknownPrefixError before touching the
        store; returns None when nothing in the window matches.
        """
        if not code or len(code) < MIN_CODE_LENGTH:
            raise InvalidCodeError()

        pqrs_type = type_for_prefix(code[:2])
        if pqrs_type is None:
            raise UnknownPrefixError()

        rows = self.pqrs_repo.list_by_type(pqrs_type, self.scan_limit)
        found = next(
            (r for r in rows if derive_code(str(r.get("type") or ""), str(r.get("id") or "")) == code),
            None,
        )

        logger.info(
            "tracking code lookup",
            extra={"props": {"code": code, "scanned": len(rows), "found": found is not None}},
        )
        return found

    def lookup(self, code: str) -> dict:
        """Public view of the record behind a code (uppercased first)."""
        code = (code or "").upper()
        found = self.resolve(code)
        if found is None:
            raise NotFoundError("Código no encontrado")

        return {
            "id": str(found["id"]),
            "created_at": str(found.get("created_at") or datetime.now(timezone.utc).isoformat()),
            "type": str(found.get("type") or ""),
            "first_name": str(found.get("first_name") or ""),
            "last_name": str(found.get("last_name") or ""),
            "email": str(found.get("email") or ""),
            "phone": found.get("phone"),
            "message": str(found.get("message") or ""),
            "company_id": str(found.get("company_id") or ""),
            "branch_id": str(found.get("branch_id") or ""),
            "company_name": pick_name(found.get("company")),
            "branch_name": pick_name(found.get("branch")),
            "code": code,
        }
