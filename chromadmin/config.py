"""Configuration loaded from environment (.env) and defaults."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Locate the project root .env file regardless of CWD
_THIS_DIR = Path(__file__).resolve().parent          # chromadmin/
_PROJECT_ROOT = _THIS_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Name -> backend id resolutions are trusted for this many seconds
    chromadmin_cache_ttl_seconds: float = 30.0

    # Records per page in the list view
    chromadmin_page_size: int = 20

    # Nearest neighbours returned by a vector query
    chromadmin_query_results: int = 10

    # Per-request timeout for the raw v1 transport
    chromadmin_request_timeout: float = 30.0

    # Protocol generation used when the caller does not name one: v1 | v2
    chromadmin_api_version: str = "v1"

    # Default connection used by the CLI
    chromadmin_url: str = "http://localhost:8000"
    chromadmin_tenant: str = "default_tenant"
    chromadmin_database: str = "default_database"

    # CORS origins (comma-separated). Defaults to localhost dev.
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    # Optional regex to allow origins
    cors_origin_regex: str | None = None

    # Server port
    port: int = 8000

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def get_settings() -> Settings:
    return Settings()
