from __future__ import annotations

import re
from collections.abc import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.logging import get_logger
from ..problem_details import problem_response
from ..security.tokens import TokenService

log = get_logger("auth_middleware")


class BearerAuthError(Exception):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(detail)
        self.detail = detail


def bearer_token(request: Request) -> str | None:
    auth = request.headers.get("authorization")
    if not auth:
        return None
    parts = str(auth).split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Bearer-token enforcement for /api routes.

    Paths listed in `public_paths` (exact) or matching `public_patterns`
    (regex, full match) pass through without a token. When a valid token is
    present on a public path the caller is still attached, so handlers can
    personalise anonymous endpoints.
    """

    def __init__(
        self,
        app,
        *,
        token_service: TokenService,
        public_paths: Iterable[str] = (),
        public_patterns: Iterable[str] = (),
    ):
        super().__init__(app)
        self._tokens = token_service
        self._public_paths = set(public_paths)
        self._public_patterns = [re.compile(p) for p in public_patterns]

    def is_public_path(self, path: str) -> bool:
        if path in ("/", "/health"):
            return True
        if path in self._public_paths:
            return True
        return any(p.fullmatch(path) for p in self._public_patterns)

    def _authenticate(self, request: Request) -> None:
        path = request.url.path

        # CORS preflight is answered by CORSMiddleware.
        if request.method.upper() == "OPTIONS":
            return
        if not path.startswith("/api/"):
            return

        token = bearer_token(request)
        public = self.is_public_path(path)
        if not token:
            if public:
                return
            raise BearerAuthError("Missing bearer token")

        user = self._tokens.current_user_from_token(token)
        if user is None:
            if public:
                return
            raise BearerAuthError("Invalid or expired token")

        request.state.user = user

    async def dispatch(self, request: Request, call_next):
        request.state.user = None
        try:
            self._authenticate(request)
        except BearerAuthError as exc:
            log.info("auth_middleware_denied", status_code=401, path=request.url.path)
            return problem_response(
                request=request,
                status_code=401,
                title="Unauthorized",
                detail=exc.detail,
            )
        return await call_next(request)
