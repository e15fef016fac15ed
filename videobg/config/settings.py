"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (and an optional .env
file) once at startup. Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without an object store.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing."""
    pass


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Field names map to upper-case env vars (store_bucket -> STORE_BUCKET).
    """

    # API Configuration
    api_title: str = "MP4 Background Page Maker"
    api_version: str = "0.1.0"

    # Object Store Configuration
    store_endpoint: str = Field(
        default="",
        description="S3-compatible endpoint URL, e.g. https://<account>.r2.cloudflarestorage.com"
    )
    store_region: str = Field(
        default="auto",
        description="Region passed to the S3 client. R2 expects 'auto'."
    )
    store_access_key_id: str = Field(
        default="",
        description="Object store access key ID"
    )
    store_secret_access_key: str = Field(
        default="",
        description="Object store secret access key"
    )
    store_bucket: str = Field(
        default="",
        description="Bucket that holds uploaded videos"
    )
    store_force_path_style: bool = Field(
        default=True,
        description="Use path-style addressing. Needed by most non-AWS S3-compatible providers."
    )
    store_mock_mode: bool = Field(
        default=False,
        description="Use in-memory store instead of a real bucket. Enables local dev without credentials."
    )

    # Public URLs
    public_base_url: str = Field(
        default="",
        description="Externally reachable base URL used to build shareable page links"
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=10000, description="Port to listen on")

    # Application Behavior
    max_upload_size_mb: int = Field(
        default=250,
        description="Maximum video size in MB (MiB). Larger uploads are rejected."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set.

        Returns list of missing env var names. Separate from Pydantic
        validation because store credentials are only required outside
        mock mode.
        """
        missing = []

        if not self.public_base_url:
            missing.append("PUBLIC_BASE_URL")

        if not self.store_mock_mode:
            if not self.store_endpoint:
                missing.append("STORE_ENDPOINT")
            if not self.store_access_key_id:
                missing.append("STORE_ACCESS_KEY_ID")
            if not self.store_secret_access_key:
                missing.append("STORE_SECRET_ACCESS_KEY")
            if not self.store_bucket:
                missing.append("STORE_BUCKET")

        return missing

    def require_valid(self) -> "Settings":
        """Raise ConfigurationError if any required value is absent."""
        missing = self.validate_required_fields()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, build Settings directly or call get_settings.cache_clear().
    """
    return Settings()
