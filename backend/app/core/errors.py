"""Application errors and their HTTP rendering.

Every error that reaches a client is rendered as the API envelope
``{"success": false, "error": "<message>"}``. Messages are user-facing and
written in Portuguese; internal details only go to the logs.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"


class AppError(Exception):
    """Base error carrying a user-facing message and an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Acesso negado") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class RoadmapSynthesisError(AppError):
    """A non-recoverable failure in an essential synthesis stage."""


class RoadmapPersistenceError(AppError):
    """The roadmap and its links could not be written."""


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def _handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request error",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        error=exc.message,
    )
    return error_response(exc.message, exc.status_code)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(
        "Request body rejected",
        path=request.url.path,
        method=request.method,
        errors=exc.errors(),
    )
    return error_response("Dados da requisição inválidos", status.HTTP_400_BAD_REQUEST)


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled request error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return error_response(INTERNAL_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope-rendering handlers on ``app``."""
    app.add_exception_handler(AppError, _handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
