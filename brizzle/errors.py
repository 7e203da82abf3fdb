"""
Error taxonomy shared by every router.

All errors are rendered as ``{"error": "<message>"}`` so pages can show the
message without branching on anything but the HTTP status.
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pymongo.errors import PyMongoError

logger = logging.getLogger("brizzle.errors")


class Unauthenticated(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=401, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=403, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class Conflict(HTTPException):
    """Uniqueness violation. Reported as 400 to match the existing clients."""

    def __init__(self, detail: str = "Already exists"):
        super().__init__(status_code=400, detail=detail)


class ValidationFailed(HTTPException):
    def __init__(self, detail: str = "Invalid request data"):
        super().__init__(status_code=400, detail=detail)


class StorageError(HTTPException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=500, detail=detail)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request data"
    err = errors[0]
    field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    msg = err.get("msg", "invalid value")
    return f"{field}: {msg}" if field else msg


def register_error_handlers(app: FastAPI):
    """Install the ``{"error": ...}`` renderers on the application"""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _first_validation_message(exc)})

    @app.exception_handler(PyMongoError)
    async def storage_error_handler(request: Request, exc: PyMongoError):
        logger.exception("Storage error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
