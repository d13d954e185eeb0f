# pqrs_api/api/pqrs.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from pqrs_api.dependencies import get_pqrs_service, get_tracking_service
from pqrs_api.schemas.pqrs import PqrsByCodeResponse, PqrsCreate, PqrsListResponse
from pqrs_api.services.pqrs_service import PqrsService
from pqrs_api.services.tracking_service import TrackingService

router = APIRouter(tags=["pqrs"])


# =================================================
# 1. GET List (dashboard)
# =================================================
@router.get("", response_model=PqrsListResponse)
def list_pqrs(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    search: Optional[str] = None,
    branch_id: Optional[str] = Query(None, alias="branchId"),
    company_id: Optional[str] = Query(None, alias="companyId"),
    pqrs_type: Optional[str] = Query(None, alias="type"),
    service: PqrsService = Depends(get_pqrs_service),
):
    rows, count = service.list_pqrs(
        page,
        page_size,
        search=search or None,
        branch_id=branch_id,
        company_id=company_id,
        pqrs_type=pqrs_type,
    )
    return {"ok": True, "data": rows, "count": count}


# =================================================
# 2. POST Create (public intake form)
# =================================================
@router.post("")
def create_pqrs(
    data: PqrsCreate,
    service: PqrsService = Depends(get_pqrs_service),
):
    return {"ok": True, "data": service.create(data)}


# =================================================
# 3. GET by tracking code (public, no auth)
# =================================================
@router.get("/by-code/{code}", response_model=PqrsByCodeResponse)
def get_pqrs_by_code(
    code: str,
    service: TrackingService = Depends(get_tracking_service),
):
    return {"ok": True, "data": service.lookup(code)}
