from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..db.engine import Database
from ..observability.logging import get_logger
from ..pipeline.cache import InMemoryResponseCache
from ..pipeline.mediator import build_mediator
from ..security.tokens import TokenService
from ..settings import Settings, get_settings
from ..web import create_service_app
from .handlers import register_handlers
from .models import ProductsBase
from .product_service import ProductService
from .repository import ProductRepository
from .routers import products as products_routes
from .user_client import UserServiceClient
from .validators import register_validators

SERVICE_NAME = "ProductService"


def create_app(
    settings: Settings | None = None,
    *,
    user_client: UserServiceClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    log = get_logger("products_app")

    tokens = TokenService(settings)
    db = Database(settings.products_database_url or "", ProductsBase.metadata, echo=settings.database_echo)
    cache = InMemoryResponseCache(maxsize=settings.cache_max_entries)
    users = user_client or UserServiceClient(
        base_url=settings.user_service_base_url,
        tokens=tokens,
        caller=SERVICE_NAME,
        timeout_seconds=settings.service_http_timeout_seconds,
    )

    mediator = build_mediator(settings, cache=cache)
    register_validators(mediator)
    register_handlers(mediator, products=ProductService(products=ProductRepository(db), users=users))

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await db.init_models()
        try:
            yield
        finally:
            await db.dispose()
            log.info("app_stopped", service=SERVICE_NAME)

    app = create_service_app(
        settings,
        title="InnoShop Product Service",
        service_name=SERVICE_NAME,
        tokens=tokens,
        lifespan=lifespan,
    )
    app.state.mediator = mediator
    app.state.db = db
    app.state.cache = cache

    app.include_router(products_routes.router, prefix="/api/products")
    return app


app = create_app()
