"""
Centralized client settings using Pydantic.

All environment variables are read once at import and validated.
Use this instead of scattered os.getenv() calls throughout the codebase.
"""

from pydantic_settings import BaseSettings


class ApiSettings(BaseSettings):
    """Digitization API endpoint and HTTP timeouts."""

    DIGITIZER_API_BASE_URL: str = "http://localhost:3000"
    DIGITIZER_API_PREFIX: str = "/api/v1"
    DIGITIZER_HTTP_TIMEOUT_SECONDS: float = 30.0
    DIGITIZER_UPLOAD_TIMEOUT_SECONDS: float = 120.0

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}

    @property
    def api_root(self) -> str:
        """Base URL joined with the versioned prefix, without a trailing slash."""
        return self.join_prefix(self.DIGITIZER_API_BASE_URL)

    def join_prefix(self, base_url: str) -> str:
        """Append the configured API prefix to a host-level base URL."""
        base = base_url.strip().rstrip("/")
        prefix = self.DIGITIZER_API_PREFIX.strip().strip("/")
        return f"{base}/{prefix}" if prefix else base


class PollingSettings(BaseSettings):
    """Status polling configuration."""

    DIGITIZER_POLL_INTERVAL_SECONDS: float = 3.0
    DIGITIZER_SUBMITTING_PROGRESS: int = 5

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class AppSettings(BaseSettings):
    """General application settings."""

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


# Singleton instances - loaded once at module import
api_settings = ApiSettings()
polling_settings = PollingSettings()
app_settings = AppSettings()
