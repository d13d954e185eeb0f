# pqrs_api/bootstrap.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pqrs_api.core.config import settings
from pqrs_api.core.errors import register_exception_handlers
from pqrs_api.core.logging import setup_logging
from pqrs_api.core.middleware import RequestLoggingMiddleware
from pqrs_api.api.router import api_router


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title=settings.app_name)

    # -------------------------
    # Middleware
    # -------------------------
    app.add_middleware(RequestLoggingMiddleware)

    origins = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if origins else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------
    # Errors -> {"ok": false, "error": ...}
    # -------------------------
    register_exception_handlers(app)

    # -------------------------
    # Routers
    # -------------------------
    app.include_router(api_router, prefix=settings.api_prefix)

    # -------------------------
    # Root
    # -------------------------
    @app.get("/", tags=["root"])
    def root():
        return {
            "status": "ok",
            "service": settings.app_name,
            "api_prefix": settings.api_prefix,
        }

    return app
