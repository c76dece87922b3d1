"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Photodrop API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/photodrop",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # Session tokens
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Shared secret for signing session tokens (never logged)",
        repr=False,
    )
    jwt_algorithm: str = Field(default="HS256")
    access_token_ttl_seconds: int = Field(default=15 * 60)
    refresh_token_ttl_seconds: int = Field(default=30 * 24 * 60 * 60)
    refresh_cookie_name: str = Field(default="refreshToken")

    # Magic links
    magic_link_ttl_seconds: int = Field(default=15 * 60)
    magic_link_atomic_consume: bool = Field(
        default=False,
        description=(
            "Consume magic links with a conditional update (used_at IS NULL) "
            "so only one concurrent redemption succeeds"
        ),
    )
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Base URL used to build magic links ({frontend_url}/auth/{token})",
    )

    # Email delivery (Resend)
    resend_api_key: str = Field(default="", repr=False)
    email_from: str = Field(default="photodrop <noreply@photodrop.app>")

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
