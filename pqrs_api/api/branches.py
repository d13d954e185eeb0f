from typing import Optional

from fastapi import APIRouter, Depends, Query

from pqrs_api.dependencies import get_branch_repo, get_organization_service
from pqrs_api.schemas.organization import BranchCreate, BranchUpdate
from pqrs_api.services.organization_service import OrganizationService

router = APIRouter(tags=["sucursales"])


@router.get("")
def list_branches(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    search: Optional[str] = None,
    company_id: Optional[str] = Query(None, alias="companyId"),
    active: Optional[str] = None,
    repo=Depends(get_branch_repo),
):
    is_active = None if active is None else active == "true"
    rows, count = repo.list_branches(
        page,
        page_size,
        search=search or None,
        company_id=company_id,
        is_active=is_active,
    )
    return {"ok": True, "data": rows, "count": count}


@router.post("")
def create_branch(
    data: BranchCreate,
    service: OrganizationService = Depends(get_organization_service),
):
    return {"ok": True, "data": service.create_branch(data)}


# public intake form entry point
@router.get("/by-slug/{slug}")
def get_branch_by_slug(
    slug: str,
    service: OrganizationService = Depends(get_organization_service),
):
    return {"ok": True, "data": service.branch_by_slug(slug)}


@router.put("/{branch_id}")
def update_branch(
    branch_id: str,
    data: BranchUpdate,
    service: OrganizationService = Depends(get_organization_service),
):
    return {"ok": True, "data": service.update_branch(branch_id, data)}


@router.delete("/{branch_id}")
def delete_branch(
    branch_id: str,
    service: OrganizationService = Depends(get_organization_service),
):
    service.delete_branch(branch_id)
    return {"ok": True}
