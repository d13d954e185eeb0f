from fastapi import APIRouter, Depends

from pqrs_api.dependencies import get_stats_service
from pqrs_api.services.stats_service import StatsService

router = APIRouter(tags=["stats"])


@router.get("")
def get_stats(service: StatsService = Depends(get_stats_service)):
    return {"ok": True, "data": service.dashboard()}
