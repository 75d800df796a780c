from __future__ import annotations

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.logging import bind_request_context, reset_request_context

# Longer inbound ids are cut so a caller cannot bloat every log line.
MAX_REQUEST_ID_LENGTH = 128


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    - Reuses an inbound X-Request-Id or generates a UUIDv4.
    - Stores it in request.state.request_id, where problem details read it.
    - Binds request_id and the serving service into the log context.
    - Echoes X-Request-Id on the response.
    """

    header_name = "X-Request-Id"

    def __init__(self, app, *, service_name: str):
        super().__init__(app)
        self._service_name = service_name

    async def dispatch(self, request: Request, call_next):
        inbound = str(request.headers.get("x-request-id") or "").strip()
        request_id = inbound[:MAX_REQUEST_ID_LENGTH] or str(uuid.uuid4())

        request.state.request_id = request_id
        tokens = bind_request_context(request_id=request_id, service=self._service_name)
        try:
            response = await call_next(request)
        finally:
            reset_request_context(tokens)
        response.headers[self.header_name] = request_id
        return response
