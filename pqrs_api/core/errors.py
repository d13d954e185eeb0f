import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PqrsError(Exception):
    """Base class for errors that map to a client-visible JSON envelope."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(PqrsError):
    status_code = 400


class InvalidCodeError(PqrsError):
    status_code = 400

    def __init__(self, message: str = "Código inválido"):
        super().__init__(message)


class UnknownPrefixError(PqrsError):
    status_code = 400

    def __init__(self, message: str = "Prefijo de código desconocido"):
        super().__init__(message)


class NotFoundError(PqrsError):
    status_code = 404


class DeliveryError(PqrsError):
    """SMTP delivery failed."""

    status_code = 500


def error_body(message: str) -> dict:
    return {"ok": False, "error": message}


# =================================================
# Exception handlers
# =================================================
def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PqrsError)
    async def handle_pqrs_error(request: Request, exc: PqrsError):
        if exc.status_code >= 500:
            logger.error(
                "request failed",
                extra={"props": {"path": request.url.path, "error": exc.message}},
            )
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Error"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", []) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else "Solicitud inválida"
        return JSONResponse(status_code=400, content=error_body(message))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        # store faults (postgrest APIError etc.) land here; no retry
        logger.exception(
            "unhandled error",
            extra={"props": {"path": request.url.path}},
        )
        return JSONResponse(status_code=500, content=error_body(_describe(exc)))


def _describe(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or "Error interno del servidor"
