"""Domain errors and the JSON error envelope.

Services raise ``FamilyHubError`` subclasses; each carries the HTTP status it
maps to. Every error leaving the API, including plain ``HTTPException`` and
request validation failures, is rendered as ``{"message": ..., "errors": [...]}``.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class FamilyHubError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class Unauthorized(FamilyHubError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(FamilyHubError):
    status_code = 403
    message = "Admin access required"


class NoActiveFamily(FamilyHubError):
    status_code = 400
    message = "No active family found"


class NotFound(FamilyHubError):
    status_code = 404
    message = "Not found"


class InvalidRequest(FamilyHubError):
    status_code = 400
    message = "Invalid request data"


class InvalidOrExpiredInvite(FamilyHubError):
    status_code = 400
    message = "Invalid or expired invitation"


class NotFoundOrAlreadyProcessed(FamilyHubError):
    status_code = 404
    message = "Invite not found or already processed"


class CodeGenerationExhausted(FamilyHubError):
    status_code = 500
    message = "Failed to generate unique code"


class PersistenceFailure(FamilyHubError):
    status_code = 500
    message = "Internal server error"


def _envelope(message: str, errors: Optional[list[Any]] = None) -> dict:
    body: dict[str, Any] = {"message": message}
    if errors is not None:
        body["errors"] = errors
    return body


def _validation_message(err: dict) -> str:
    msg = str(err.get("msg", "Invalid request data"))
    # Custom validators surface as "Value error, <message>"
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that render every error in the common envelope."""

    @app.exception_handler(FamilyHubError)
    async def familyhub_error_handler(request: Request, exc: FamilyHubError):
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d %s",
            request.method,
            request.url.path,
            exc.status_code,
            type(exc).__name__,
        )
        return JSONResponse(status_code=exc.status_code, content=_envelope(exc.message))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(message),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        raw = exc.errors()
        errors = [
            {
                "loc": [str(part) for part in e.get("loc", ())],
                "msg": _validation_message(e),
                "type": e.get("type"),
            }
            for e in raw
        ]
        message = errors[0]["msg"] if errors else "Invalid request data"
        logger.info("%s %s -> 400 validation: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content=_envelope(message, errors))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_envelope("Internal server error"))
