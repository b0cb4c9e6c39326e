"""Centralized application configuration via Pydantic Settings.

Loads all env vars into a typed Settings instance so routers and services
never read os.environ directly.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(..., description="Supabase anon/public key")
    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Supabase service-role key (public pledge form, import CLI)",
    )

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    # Ingestion / aggregation
    TRANSACTION_PAGE_SIZE: int = Field(
        default=1000,
        description="Rows fetched per page when scanning bank_transactions",
    )
    BALANCE_SCAN_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Deadline for the full-table balance scan",
    )
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted bank statement upload",
    )
    DUPLICATE_SAMPLE_SIZE: int = Field(
        default=10,
        description="Duplicate references echoed back in upload responses",
    )

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def json_logs(self) -> bool:
        return self.ENVIRONMENT == "production"

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    """Factory for Settings; tests call it directly to override env."""
    return Settings()


# Module-level singleton (lazy: only created when first accessed)
try:
    settings = get_settings()
except Exception:
    # Env vars may be missing (tests, the CLI); callers go through setting()
    settings = None  # type: ignore[assignment]


def setting(name: str, default):
    """Read a setting, falling back to ``default`` when settings failed to load."""
    return getattr(settings, name, default) if settings is not None else default
