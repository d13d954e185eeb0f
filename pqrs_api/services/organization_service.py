import logging
from datetime import datetime, timezone
from typing import Optional

from pqrs_api.core.errors import NotFoundError, ValidationFailed
from pqrs_api.repositories.base import BranchRepository, CompanyRepository, PqrsRepository
from pqrs_api.schemas.organization import BranchCreate, BranchUpdate, CompanyCreate, CompanyUpdate
from pqrs_api.utils.id_generator import generate_slug

logger = logging.getLogger(__name__)


def _changes(update) -> dict:
    """Only the fields the client sent, plus updated_at."""
    changes = update.model_dump(exclude_unset=True)
    changes["updated_at"] = datetime.now(timezone.utc).isoformat()
    return changes


class OrganizationService:
    """
    Companies and their branches.

    Deletes never drop PQRS records: their company / branch reference
    is set to null first.
    """

    def __init__(
        self,
        company_repo: CompanyRepository,
        branch_repo: BranchRepository,
        pqrs_repo: PqrsRepository,
    ):
        self.company_repo = company_repo
        self.branch_repo = branch_repo
        self.pqrs_repo = pqrs_repo

    # -------------------------
    # Companies
    # -------------------------
    def create_company(self, data: CompanyCreate) -> dict:
        if not data.name:
            raise ValidationFailed("El nombre es obligatorio")
        return self.company_repo.create_company(data.model_dump())

    def update_company(self, company_id: str, data: CompanyUpdate) -> dict:
        changes = _changes(data)
        if "is_active" in changes:
            changes["is_active"] = bool(changes["is_active"])
        updated = self.company_repo.update_company(company_id, changes)
        if updated is None:
            raise NotFoundError("Empresa no encontrada")
        return updated

    def delete_company(self, company_id: str) -> None:
        branch_ids = self.branch_repo.ids_for_company(company_id)

        self.pqrs_repo.detach_branches(branch_ids)
        self.pqrs_repo.detach_company(company_id)
        self.branch_repo.delete_branches(branch_ids)
        self.company_repo.delete_company(company_id)

        logger.info(
            "company deleted",
            extra={"props": {"company_id": company_id, "branches": len(branch_ids)}},
        )

    # -------------------------
    # Branches
    # -------------------------
    def create_branch(self, data: BranchCreate) -> dict:
        if not data.name:
            raise ValidationFailed("El nombre es obligatorio")
        if not data.company_id:
            raise ValidationFailed("Debe seleccionar la empresa")

        record = data.model_dump()
        record["slug"] = (data.slug or "").strip() or generate_slug(data.name)
        return self.branch_repo.create_branch(record)

    def update_branch(self, branch_id: str, data: BranchUpdate) -> dict:
        changes = _changes(data)
        if "is_active" in changes:
            changes["is_active"] = bool(changes["is_active"])
        updated = self.branch_repo.update_branch(branch_id, changes)
        if updated is None:
            raise NotFoundError("Sucursal no encontrada")
        return updated

    def delete_branch(self, branch_id: str) -> None:
        self.pqrs_repo.detach_branches([branch_id])
        self.branch_repo.delete_branches([branch_id])
        logger.info("branch deleted", extra={"props": {"branch_id": branch_id}})

    def branch_by_slug(self, slug: Optional[str]) -> dict:
        if not slug:
            raise ValidationFailed("Slug requerido")
        branch = self.branch_repo.get_by_slug(slug)
        if branch is None:
            raise NotFoundError("Sucursal no encontrada")
        return branch
