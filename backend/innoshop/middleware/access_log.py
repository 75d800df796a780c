from __future__ import annotations

import time
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.logging import get_logger
from ..security.principal import CurrentUser


def _caller_fields(request: Request) -> dict[str, Any]:
    """Who made the call: a user id and role, or the calling service's name."""
    user = getattr(request.state, "user", None)
    if not isinstance(user, CurrentUser):
        return {"caller": "anonymous"}
    if user.is_service:
        return {"caller": "service", "calling_service": user.claims.get("service")}
    return {"caller": "user", "user_id": str(user.id), "user_role": user.role}


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    One structured access-log record per request.

    Server errors are logged at error level and client errors at warning, so
    failed sibling calls stand out from routine traffic.
    """

    def __init__(self, app, *, exclude_paths: set[str] | None = None):
        super().__init__(app)
        self._exclude = exclude_paths or set()
        self._log = get_logger("access")

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in self._exclude:
            return await call_next(request)

        start = time.perf_counter()
        fields: dict[str, Any] = {
            "http_method": request.method.upper(),
            "path": path,
            "client_ip": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception:
            self._log.exception(
                "request_error",
                **fields,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
                **_caller_fields(request),
            )
            raise

        status_code = int(response.status_code)
        if status_code >= 500:
            emit = self._log.error
        elif status_code >= 400:
            emit = self._log.warning
        else:
            emit = self._log.info
        emit(
            "request",
            **fields,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
            **_caller_fields(request),
        )
        return response
