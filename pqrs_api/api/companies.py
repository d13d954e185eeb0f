from typing import Optional

from fastapi import APIRouter, Depends, Query

from pqrs_api.dependencies import get_company_repo, get_organization_service
from pqrs_api.schemas.organization import CompanyCreate, CompanyUpdate
from pqrs_api.services.organization_service import OrganizationService

router = APIRouter(tags=["empresas"])


@router.get("")
def list_companies(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    search: Optional[str] = None,
    active: Optional[str] = None,
    repo=Depends(get_company_repo),
):
    # ?active=true|false, absent = all
    is_active = None if active is None else active == "true"
    rows, count = repo.list_companies(page, page_size, search=search or None, is_active=is_active)
    return {"ok": True, "data": rows, "count": count}


@router.post("")
def create_company(
    data: CompanyCreate,
    service: OrganizationService = Depends(get_organization_service),
):
    return {"ok": True, "data": service.create_company(data)}


@router.put("/{company_id}")
def update_company(
    company_id: str,
    data: CompanyUpdate,
    service: OrganizationService = Depends(get_organization_service),
):
    return {"ok": True, "data": service.update_company(company_id, data)}


@router.delete("/{company_id}")
def delete_company(
    company_id: str,
    service: OrganizationService = Depends(get_organization_service),
):
    service.delete_company(company_id)
    return {"ok": True}
