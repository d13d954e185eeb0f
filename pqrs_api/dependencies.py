# pqrs_api/dependencies.py
import logging

from fastapi import FastAPI, HTTPException, Request

from pqrs_api.core.config import settings
from pqrs_api.repositories.supabase_repo import (
    SupabaseBranchRepository,
    SupabaseCompanyRepository,
    SupabaseLogoStorage,
    SupabasePqrsRepository,
    SupabaseResponseRepository,
)
from pqrs_api.services.mail_service import SmtpMailSender
from pqrs_api.services.organization_service import OrganizationService
from pqrs_api.services.pqrs_service import PqrsService
from pqrs_api.services.response_service import ResponseService
from pqrs_api.services.stats_service import StatsService
from pqrs_api.services.tracking_service import TrackingService
from pqrs_api.utils.query_cache import MemoryQueryCache

logger = logging.getLogger(__name__)


def init_repositories(app: FastAPI) -> None:
    """
    Wire Supabase-backed infrastructure into app.state.
    Must be idempotent; tests put memory implementations there instead.
    """
    if getattr(app.state, "pqrs_repo", None) is not None:
        return

    app.state.pqrs_repo = SupabasePqrsRepository()
    app.state.company_repo = SupabaseCompanyRepository()
    app.state.branch_repo = SupabaseBranchRepository()
    app.state.response_repo = SupabaseResponseRepository()
    app.state.logo_storage = SupabaseLogoStorage(settings.upload_bucket)
    app.state.mailer = SmtpMailSender(settings)
    app.state.response_cache = MemoryQueryCache()
    logger.info("Repositories initialized")


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        logger.error("app.state.%s is not initialized", name)
        raise HTTPException(status_code=500, detail="Servicio no inicializado")
    return value


# -------------------------------------------------
# FastAPI dependencies
# -------------------------------------------------
def get_pqrs_service(request: Request) -> PqrsService:
    return PqrsService(_state(request, "pqrs_repo"))


def get_tracking_service(request: Request) -> TrackingService:
    return TrackingService(_state(request, "pqrs_repo"), scan_limit=settings.code_scan_limit)


def get_organization_service(request: Request) -> OrganizationService:
    return OrganizationService(
        _state(request, "company_repo"),
        _state(request, "branch_repo"),
        _state(request, "pqrs_repo"),
    )


def get_response_service(request: Request) -> ResponseService:
    return ResponseService(
        _state(request, "response_repo"),
        _state(request, "mailer"),
        settings,
        cache=getattr(request.app.state, "response_cache", None),
    )


def get_stats_service(request: Request) -> StatsService:
    return StatsService(
        _state(request, "pqrs_repo"),
        _state(request, "company_repo"),
        _state(request, "branch_repo"),
    )


def get_company_repo(request: Request):
    return _state(request, "company_repo")


def get_branch_repo(request: Request):
    return _state(request, "branch_repo")


def get_logo_storage(request: Request):
    return _state(request, "logo_storage")
