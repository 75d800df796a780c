from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..background import BackgroundTaskRunner
from ..db.engine import Database
from ..observability.logging import get_logger
from ..pipeline.cache import InMemoryResponseCache
from ..pipeline.mediator import build_mediator
from ..security.passwords import PasswordHasher
from ..security.tokens import TokenService
from ..settings import Settings, get_settings
from ..web import create_service_app
from .auth_service import AuthService
from .email import EmailSender, EmailService, build_email_sender
from .handlers import register_handlers
from .models import UsersBase
from .product_client import ProductServiceClient
from .repository import UserRepository
from .routers import auth as auth_routes
from .routers import users as users_routes
from .user_service import UserService
from .validators import register_validators

SERVICE_NAME = "UserService"


def create_app(
    settings: Settings | None = None,
    *,
    email_sender: EmailSender | None = None,
    product_client: ProductServiceClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    log = get_logger("users_app")

    tokens = TokenService(settings)
    db = Database(settings.users_database_url or "", UsersBase.metadata, echo=settings.database_echo)
    background = BackgroundTaskRunner()
    cache = InMemoryResponseCache(maxsize=settings.cache_max_entries)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    emails = EmailService(settings, email_sender or build_email_sender(settings))
    products = product_client or ProductServiceClient(
        base_url=settings.product_service_base_url,
        tokens=tokens,
        caller=SERVICE_NAME,
        timeout_seconds=settings.service_http_timeout_seconds,
    )
    repository = UserRepository(db)

    mediator = build_mediator(settings, cache=cache)
    register_validators(mediator)
    register_handlers(
        mediator,
        auth=AuthService(
            settings=settings,
            users=repository,
            tokens=tokens,
            hasher=hasher,
            emails=emails,
            background=background,
        ),
        users=UserService(
            users=repository,
            hasher=hasher,
            emails=emails,
            products=products,
            background=background,
        ),
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await db.init_models()
        try:
            yield
        finally:
            await background.drain()
            await db.dispose()
            log.info("app_stopped", service=SERVICE_NAME)

    app = create_service_app(
        settings,
        title="InnoShop User Service",
        service_name=SERVICE_NAME,
        tokens=tokens,
        lifespan=lifespan,
        public_paths=(*auth_routes.PUBLIC_PATHS, *users_routes.PUBLIC_PATHS),
        public_patterns=users_routes.PUBLIC_PATTERNS,
    )
    app.state.mediator = mediator
    app.state.db = db
    app.state.cache = cache
    app.state.background = background
    app.state.emails = emails

    app.include_router(auth_routes.router, prefix="/api/auth")
    app.include_router(users_routes.router, prefix="/api/users")
    return app


app = create_app()
