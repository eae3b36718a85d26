"""Application settings and configuration.

This module defines all configuration options for the TopBreja application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the TopBreja application.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="TopBreja", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./topbreja.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Session tokens issued by the hosted auth provider
    auth_jwt_secret: str = Field(alias="AUTH_JWT_SECRET")
    auth_jwt_algorithm: str = Field(default="HS256", alias="AUTH_JWT_ALGORITHM")
    auth_jwt_audience: str | None = Field(default="authenticated", alias="AUTH_JWT_AUDIENCE")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Session/role cache
    auth_cache_backend: str = Field(default="memory", alias="AUTH_CACHE_BACKEND")
    auth_cache_ttl_seconds: float = Field(default=30.0, alias="AUTH_CACHE_TTL_SECONDS")
    auth_cache_key: str = Field(default="topbreja_auth_cache", alias="AUTH_CACHE_KEY")
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Object storage for beer images
    storage_base_url: str | None = Field(default=None, alias="STORAGE_BASE_URL")
    storage_bucket: str = Field(default="beer-images", alias="STORAGE_BUCKET")
    image_placeholder: str = Field(default="/placeholder-beer.png", alias="IMAGE_PLACEHOLDER")

    # Composite ranking weights
    ranking_weight_votes: float = Field(default=0.4, ge=0, alias="RANKING_WEIGHT_VOTES")
    ranking_weight_rating: float = Field(default=0.3, ge=0, alias="RANKING_WEIGHT_RATING")
    ranking_weight_favorites: float = Field(default=0.2, ge=0, alias="RANKING_WEIGHT_FAVORITES")
    ranking_weight_comments: float = Field(default=0.1, ge=0, alias="RANKING_WEIGHT_COMMENTS")

    # Badge tiers handed out to the top positions, in order
    badge_tiers: list[str] = Field(
        default=["ouro", "prata", "bronze"],
        alias="BADGE_TIERS",
    )

    # Catalog paging
    catalog_page_size: int = Field(default=20, alias="CATALOG_PAGE_SIZE")
    catalog_max_page_size: int = Field(default=100, alias="CATALOG_MAX_PAGE_SIZE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def ranking_weights(self) -> dict[str, float]:
        """Return the composite score weights keyed by counter name."""
        return {
            "votes": self.ranking_weight_votes,
            "rating": self.ranking_weight_rating,
            "favorites": self.ranking_weight_favorites,
            "comments": self.ranking_weight_comments,
        }


settings = Settings()  # type: ignore[call-arg]
