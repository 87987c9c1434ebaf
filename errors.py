"""Application errors and the handlers that render them.

Every failure leaves the server as the same JSON shape:

    {"error": {"kind": "<machine readable>", "message": "<human readable>"}}

The only exception is an unauthenticated browser navigation, which is
redirected to the login page instead.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

LOGIN_PAGE = "/login.html"


class AppError(Exception):
    status_code = 500
    kind = "server_error"
    message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"error": {"kind": self.kind, "message": self.message}}


class ValidationFailed(AppError):
    status_code = 400
    kind = "validation_error"
    message = "Please fill in all required fields"


class AuthenticationRequired(AppError):
    status_code = 401
    kind = "authentication_required"
    message = "Authentication required"


class InvalidCredentials(AppError):
    status_code = 401
    kind = "invalid_credentials"
    message = "Incorrect username or password"


class Forbidden(AppError):
    status_code = 403
    kind = "forbidden"
    message = "Access denied"


class NotFound(AppError):
    status_code = 404
    kind = "not_found"
    message = "Not found"


class DuplicateUsername(AppError):
    status_code = 409
    kind = "duplicate_username"
    message = "Username already exists"


class PayloadTooLarge(AppError):
    status_code = 413
    kind = "payload_too_large"
    message = "File is too large"


class DatabaseError(AppError):
    """Any failure raised by the SQLite driver.

    The driver message is kept on the exception for logging; clients only
    ever see the generic message.
    """

    status_code = 500
    kind = "database_error"
    message = "Database error"

    def __init__(self, detail: str = ""):
        super().__init__()
        self.detail = detail

    def __str__(self) -> str:
        return self.detail or self.message


class IntegrityViolation(DatabaseError):
    """A UNIQUE / NOT NULL / CHECK constraint rejected the statement."""


def wants_json(request: Request) -> bool:
    if request.url.path.startswith("/api/"):
        return True
    if request.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
        return True
    return "json" in request.headers.get("accept", "")


def error_response(status_code: int, kind: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"kind": kind, "message": message}})


async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, AuthenticationRequired) and not wants_json(request):
        return RedirectResponse(LOGIN_PAGE, status_code=303)
    if isinstance(exc, DatabaseError):
        logger.opt(exception=exc).error("Database error on {} {}: {}", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", ValidationFailed.message)
    if field:
        message = f"{field}: {message}"
    return error_response(400, ValidationFailed.kind, message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    kind = {404: "not_found", 405: "method_not_allowed"}.get(exc.status_code, "http_error")
    return error_response(exc.status_code, kind, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return error_response(500, AppError.kind, AppError.message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
