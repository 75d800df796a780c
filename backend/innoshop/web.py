from __future__ import annotations

from collections.abc import Callable, Iterable
from contextlib import AbstractAsyncContextManager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from .exception_handlers import install_exception_handlers
from .middleware import AccessLogMiddleware, AuthMiddleware, RequestContextMiddleware
from .observability.logging import configure_logging, get_logger
from .routers.health import router as health_router
from .security.tokens import TokenService
from .settings import Settings

Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]


def create_service_app(
    settings: Settings,
    *,
    title: str,
    service_name: str,
    tokens: TokenService,
    lifespan: Lifespan,
    public_paths: Iterable[str] = (),
    public_patterns: Iterable[str] = (),
) -> FastAPI:
    """
    The FastAPI shell shared by both services: logging, middleware stack,
    problem-details error handlers and the health routes. Callers attach
    their own state and routers.
    """
    # Logging must be configured before the app starts handling requests.
    configure_logging(level="DEBUG" if settings.is_development else "INFO")
    log = get_logger("startup")

    app = FastAPI(
        title=title,
        version="1.0.0",
        default_response_class=ORJSONResponse,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service_name = service_name
    app.state.tokens = tokens

    log.info("app_starting", service=service_name, settings=settings.to_log_safe_dict())

    # Middlewares (order matters; last added is outermost)
    # Auth runs inside CORS so auth failures still get CORS headers.
    app.add_middleware(
        AuthMiddleware,
        token_service=tokens,
        public_paths=public_paths,
        public_patterns=public_patterns,
    )
    app.add_middleware(AccessLogMiddleware, exclude_paths={"/", "/health"})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-Id", "Cache-Control"],
        expose_headers=["X-Request-Id"],
        max_age=3000,
    )
    # Outermost: request context (request-id) wraps everything.
    app.add_middleware(RequestContextMiddleware, service_name=service_name)

    install_exception_handlers(app)

    app.include_router(health_router)
    return app
