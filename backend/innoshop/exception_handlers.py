from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .errors import (
    AccessDeniedError,
    BusinessRuleError,
    ConflictError,
    DomainError,
    EmailNotConfirmedError,
    NotFoundError,
    ServiceCommunicationError,
    UnauthorizedError,
    ValidationError,
)
from .observability.logging import get_logger
from .problem_details import problem_response


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)


def status_for(exc: DomainError) -> tuple[int, str]:
    """Map a domain error to its HTTP status and problem title."""
    # Subclasses are checked before their bases.
    if isinstance(exc, ValidationError):
        return 400, "Validation Error"
    if isinstance(exc, NotFoundError):
        return 404, "Resource Not Found"
    if isinstance(exc, AccessDeniedError):
        return 403, "Forbidden"
    if isinstance(exc, EmailNotConfirmedError):
        return 401, "Email Not Confirmed"
    if isinstance(exc, UnauthorizedError):
        return 401, "Unauthorized"
    if isinstance(exc, ConflictError):
        return 409, "Conflict"
    if isinstance(exc, BusinessRuleError):
        return 409, "Business Rule Violation"
    if isinstance(exc, ServiceCommunicationError):
        return 503, "Service Unavailable"
    # InternalError and anything unclassified.
    return 500, "Internal Server Error"


def domain_error_handler(request: Request, exc: DomainError) -> Response:
    status_code, title = status_for(exc)
    if status_code >= 500:
        get_logger("errors").error(
            "domain_error",
            error_type=type(exc).__name__,
            status_code=status_code,
            path=request.url.path,
            error=str(exc),
        )
    return problem_response(
        request=request,
        status_code=status_code,
        title=title,
        detail=str(exc),
        errors=exc.errors if isinstance(exc, ValidationError) else None,
        extensions=exc.extensions(),
    )


def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    status_code = int(getattr(exc, "status_code", 500) or 500)
    detail = getattr(exc, "detail", None)

    title: str | None = None
    extensions: dict | None = None
    safe_detail: str | None = None

    if isinstance(detail, dict):
        extensions = detail
        msg = detail.get("message")
        if isinstance(msg, str) and msg.strip():
            safe_detail = msg.strip()
    elif detail is not None:
        safe_detail = str(detail)

    if status_code == 404:
        title = "Not Found"
        if not safe_detail or safe_detail == "Not Found":
            safe_detail = "Route not found"

    return problem_response(
        request=request,
        status_code=status_code,
        title=title,
        detail=safe_detail,
        extensions=extensions,
    )


def request_validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors: list[dict[str, object]] = []
    for e in exc.errors():
        loc = e.get("loc") or ()
        loc_path = ".".join([str(x) for x in loc if x != "body"])
        errors.append(
            {
                "location": list(loc) if isinstance(loc, (list, tuple)) else [],
                "path": loc_path,
                "message": e.get("msg", "Invalid value"),
                "type": e.get("type"),
            }
        )
    return problem_response(
        request=request,
        status_code=422,
        title="Validation Failed",
        detail="Request validation failed",
        errors=errors,
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    # The response stays generic in production (see problem_response), but
    # operators need the traceback.
    user = getattr(getattr(request, "state", None), "user", None)
    user_id = getattr(user, "id", None) if user else None
    get_logger("unhandled").error(
        "unhandled_exception",
        http_method=str(getattr(request, "method", "") or "").upper() or None,
        path=str(getattr(getattr(request, "url", None), "path", "") or ""),
        user_id=str(user_id) if user_id else None,
        exc_info=exc,
    )

    return problem_response(
        request=request,
        status_code=500,
        title="Internal Server Error",
        detail=str(exc) if exc else None,
    )
