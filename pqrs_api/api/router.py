from fastapi import APIRouter

from pqrs_api.api.health import router as health_router
from pqrs_api.api.pqrs import router as pqrs_router
from pqrs_api.api.responses import router as responses_router
from pqrs_api.api.companies import router as companies_router
from pqrs_api.api.branches import router as branches_router
from pqrs_api.api.stats import router as stats_router
from pqrs_api.api.uploads import router as uploads_router

api_router = APIRouter()

# -------------------------------------------------
# system / ops
# -------------------------------------------------
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["health"],
)

# -------------------------------------------------
# core business
# -------------------------------------------------
# responses first: /pqrs/responses must not be shadowed by /pqrs routes
api_router.include_router(
    responses_router,
    prefix="/pqrs/responses",
    tags=["responses"],
)

api_router.include_router(
    pqrs_router,
    prefix="/pqrs",
    tags=["pqrs"],
)

# -------------------------------------------------
# organization (companies / branches)
# -------------------------------------------------
api_router.include_router(
    companies_router,
    prefix="/empresas",
    tags=["empresas"],
)

api_router.include_router(
    branches_router,
    prefix="/sucursales",
    tags=["sucursales"],
)

# -------------------------------------------------
# dashboard / files
# -------------------------------------------------
api_router.include_router(
    stats_router,
    prefix="/stats",
    tags=["stats"],
)

api_router.include_router(
    uploads_router,
    prefix="/uploads",
    tags=["uploads"],
)
