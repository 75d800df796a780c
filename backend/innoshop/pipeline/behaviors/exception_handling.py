from __future__ import annotations

from typing import Any

from ...errors import (
    BusinessRuleError,
    ConflictError,
    DomainError,
    InternalError,
    NotFoundError,
    ServiceCommunicationError,
    UnauthorizedError,
    ValidationError,
)
from ...observability.logging import get_logger
from ..contracts import CallNext, PipelineBehavior, Request

log = get_logger("pipeline")


def _warning_event(exc: DomainError) -> str:
    if isinstance(exc, ValidationError):
        return "request_validation_error"
    if isinstance(exc, NotFoundError):
        return "request_not_found"
    if isinstance(exc, UnauthorizedError):
        return "request_unauthorized"
    if isinstance(exc, BusinessRuleError):
        return "request_business_rule_violation"
    if isinstance(exc, ConflictError):
        return "request_conflict"
    return "request_domain_error"


class ExceptionHandlingBehavior(PipelineBehavior):
    """
    Passes domain errors through untouched and wraps everything else in
    InternalError. Cancellation (a BaseException) is never caught here.
    """

    async def handle(self, request: Request, call_next: CallNext) -> Any:
        name = type(request).__name__
        try:
            return await call_next()
        except (ServiceCommunicationError, InternalError) as exc:
            log.error(
                "request_dependency_error" if isinstance(exc, ServiceCommunicationError) else "request_internal_error",
                request_type=name,
                error=str(exc),
            )
            raise
        except DomainError as exc:
            log.warning(_warning_event(exc), request_type=name, error=str(exc))
            raise
        except Exception as exc:
            log.error("request_unhandled_exception", request_type=name, exc_info=exc)
            raise InternalError.for_request(name) from exc
