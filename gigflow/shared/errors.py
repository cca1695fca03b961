# gigflow/shared/errors.py
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gigflow.shared.config import settings
from gigflow.shared.http import err

logger = logging.getLogger(__name__)


class GigFlowError(Exception):
    """Base for user-facing errors. Each subclass maps to one HTTP status."""
    code = "bad_request"
    status = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(GigFlowError):
    code = "validation_error"
    status = 400

class AuthenticationError(GigFlowError):
    code = "unauthenticated"
    status = 401

class AuthorizationError(GigFlowError):
    code = "forbidden"
    status = 403

class NotFoundError(GigFlowError):
    code = "not_found"
    status = 404

class ConflictError(GigFlowError):
    code = "conflict"
    status = 400

class InvalidStateError(GigFlowError):
    code = "invalid_state"
    status = 400


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GigFlowError)
    async def _domain_error(request: Request, exc: GigFlowError):
        return JSONResponse(status_code=exc.status, content=err(exc.message, exc.code, exc.details))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
        return JSONResponse(status_code=400, content=err("invalid request", ValidationError.code, details))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        message = f"{type(exc).__name__}: {exc}" if settings.ENV == "dev" else "internal server error"
        return JSONResponse(status_code=500, content=err(message, "internal_error"))
