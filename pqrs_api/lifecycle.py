# pqrs_api/lifecycle.py
import logging
from fastapi import FastAPI

from pqrs_api.dependencies import init_repositories

logger = logging.getLogger(__name__)


def register_lifecycle(app: FastAPI) -> None:
    @app.on_event("startup")
    def on_startup() -> None:
        logger.info("Application startup begin")
        init_repositories(app)
        logger.info("Application startup completed")

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        logger.info("Application shutdown begin")

        cache = getattr(app.state, "response_cache", None)
        if cache is not None:
            cache.clear()

        logger.info("Application shutdown completed")
