"""Application settings and configuration.

This module defines all configuration options for the AMA Global service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_REMOTE_URL = "your_supabase_url_here"
PLACEHOLDER_ANON_KEY = "your_supabase_anon_key_here"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="AMA Global", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Relational database backing the remote store
    database_url: str = Field(default="sqlite:///./ama_global.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Managed backend endpoint and identity provider credentials
    remote_url: str = Field(default="", alias="SUPABASE_URL")
    remote_anon_key: str = Field(default="", alias="SUPABASE_ANON_KEY")
    remote_jwt_secret: str | None = Field(default=None, alias="SUPABASE_JWT_SECRET")
    remote_jwt_audience: str = Field(default="authenticated", alias="SUPABASE_JWT_AUDIENCE")
    remote_timeout_seconds: float = Field(default=10.0, alias="SUPABASE_TIMEOUT_SECONDS")

    # Offline/demo mode
    offline_mode: bool = Field(default=False, alias="OFFLINE_MODE")
    local_store_path: str = Field(default=".ama_local_store.json", alias="LOCAL_STORE_PATH")

    # Public URL the identity provider redirects back to
    site_url: str = Field(default="https://ama-global.netlify.app", alias="SITE_URL")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def sqlalchemy_url(self) -> str:
        """Return ``database_url`` with the psycopg 3 driver spelled out.

        Hosted Postgres dashboards hand out ``postgres://`` and
        ``postgresql://`` URLs, which SQLAlchemy would map to psycopg2.
        """
        url = self.database_url
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+psycopg://" + url[len(prefix):]
        return url

    @property
    def has_valid_remote_credentials(self) -> bool:
        """Return True when the remote endpoint and key look usable."""
        from ama_global.core.gate import has_valid_credentials

        return has_valid_credentials(self.remote_url, self.remote_anon_key)

    def redirect_url(self, path: str = "/auth/callback") -> str:
        """Build an absolute URL the identity provider should send users back to."""
        return f"{self.site_url.rstrip('/')}{path}"


settings = Settings()
