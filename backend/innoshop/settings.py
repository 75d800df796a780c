from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEV_JWT_SECRET = "innoshop-development-secret-change-me-0123456789"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias="APP_ENV")
    port: int = Field(default=8080, validation_alias="PORT")

    # Databases (one per service)
    users_database_url: str | None = Field(
        default="sqlite+aiosqlite:///./users.db", validation_alias="USERS_DATABASE_URL"
    )
    products_database_url: str | None = Field(
        default="sqlite+aiosqlite:///./products.db", validation_alias="PRODUCTS_DATABASE_URL"
    )
    database_echo: bool = Field(default=False, validation_alias="DATABASE_ECHO")

    # Auth (JWT, symmetric key shared by both services)
    jwt_secret: str | None = Field(default=None, validation_alias="JWT_SECRET")
    jwt_issuer: str = Field(default="InnoShop-UserService", validation_alias="JWT_ISSUER")
    jwt_audience: str = Field(default="InnoShop-Client", validation_alias="JWT_AUDIENCE")
    jwt_expiry_hours: int = Field(default=24, validation_alias="JWT_EXPIRY_HOURS")
    jwt_refresh_expiry_days: int = Field(default=7, validation_alias="JWT_REFRESH_EXPIRY_DAYS")
    # Service-to-service tokens only need to outlive one HTTP call.
    service_token_expiry_minutes: int = Field(
        default=5, validation_alias="SERVICE_TOKEN_EXPIRY_MINUTES"
    )

    bcrypt_rounds: int = Field(default=12, validation_alias="BCRYPT_ROUNDS")

    # Request pipeline
    performance_threshold_ms: int = Field(default=1000, validation_alias="PERFORMANCE_THRESHOLD_MS")
    cache_default_ttl_seconds: int = Field(default=300, validation_alias="CACHE_DEFAULT_TTL_SECONDS")
    cache_max_entries: int = Field(default=1024, validation_alias="CACHE_MAX_ENTRIES")

    # Sibling services
    user_service_base_url: str = Field(
        default="http://localhost:5001", validation_alias="USER_SERVICE_BASE_URL"
    )
    product_service_base_url: str = Field(
        default="http://localhost:5002", validation_alias="PRODUCT_SERVICE_BASE_URL"
    )
    service_http_timeout_seconds: float = Field(
        default=30.0, validation_alias="SERVICE_HTTP_TIMEOUT_SECONDS"
    )

    # Email
    email_backend: str = Field(default="log", validation_alias="EMAIL_BACKEND")
    email_from: str = Field(default="no-reply@innoshop.local", validation_alias="EMAIL_FROM")
    aws_region: str = Field(default="us-east-1", validation_alias="AWS_REGION")
    frontend_base_url: str = Field(
        default="http://localhost:3000", validation_alias="FRONTEND_BASE_URL"
    )

    # CORS
    cors_allowed_origins: str | None = Field(default=None, validation_alias="CORS_ALLOWED_ORIGINS")

    # ---- helpers / derived flags ----
    @property
    def normalized_environment(self) -> str:
        v = (self.environment or "").strip().lower()
        if v in ("prod", "production"):
            return "production"
        if v in ("stage", "staging"):
            return "staging"
        if v in ("dev", "development"):
            return "development"
        if v in ("test", "testing"):
            return "test"
        return v or "development"

    @property
    def is_production(self) -> bool:
        return self.normalized_environment == "production"

    @property
    def is_development(self) -> bool:
        return self.normalized_environment == "development"

    @property
    def signing_key(self) -> str:
        return str(self.jwt_secret or "").strip() or _DEV_JWT_SECRET

    @property
    def allowed_origins(self) -> list[str]:
        raw = str(self.cors_allowed_origins or "")
        allowed = {s.strip() for s in raw.split(",") if s.strip()}
        allowed.add(self.frontend_base_url)
        return sorted(allowed)

    def require_in_production(self) -> None:
        """
        Enforce required settings in production.

        Development and test runs fall back to local SQLite files and a fixed
        signing key; production must be fully configured.
        """
        if not self.is_production:
            return

        missing: list[str] = []
        if not (self.jwt_secret and str(self.jwt_secret).strip()):
            missing.append("JWT_SECRET")
        if not (self.users_database_url and str(self.users_database_url).strip()):
            missing.append("USERS_DATABASE_URL")
        if not (self.products_database_url and str(self.products_database_url).strip()):
            missing.append("PRODUCTS_DATABASE_URL")

        if missing:
            raise RuntimeError(
                "Missing required production environment variables: "
                + ", ".join(missing)
            )

    def to_log_safe_dict(self) -> dict[str, object]:
        """
        A redacted representation safe for structured logs / diagnostics.
        """
        def _has(v: object) -> bool:
            return v is not None and str(v).strip() != ""

        return {
            "environment": self.normalized_environment,
            "port": self.port,
            "database": {
                "users_database_configured": _has(self.users_database_url),
                "products_database_configured": _has(self.products_database_url),
                "database_echo": bool(self.database_echo),
            },
            "auth": {
                "jwt_secret_configured": _has(self.jwt_secret),
                "jwt_issuer": self.jwt_issuer,
                "jwt_audience": self.jwt_audience,
                "jwt_expiry_hours": self.jwt_expiry_hours,
            },
            "pipeline": {
                "performance_threshold_ms": self.performance_threshold_ms,
                "cache_default_ttl_seconds": self.cache_default_ttl_seconds,
                "cache_max_entries": self.cache_max_entries,
            },
            "services": {
                "user_service_base_url": self.user_service_base_url,
                "product_service_base_url": self.product_service_base_url,
                "service_http_timeout_seconds": self.service_http_timeout_seconds,
            },
            "email": {
                "email_backend": self.email_backend,
                "email_from": self.email_from,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings()
    s.require_in_production()
    return s
