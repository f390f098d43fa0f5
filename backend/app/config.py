"""Application configuration."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Email Validation API"
    environment: str = "development"
    log_level: str = "INFO"

    # Server binding
    host: str = "0.0.0.0"
    port: int = 3000
    trust_proxy: bool = False

    # CORS - single origin, "*" allows all
    cors_origin: str = "*"

    # Routing
    api_base_path: str = "/api"
    api_version: str = "v1"

    # Request body cap
    max_body_size_mb: int = 10

    # Graceful shutdown bound before forced exit
    shutdown_timeout_seconds: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def api_prefix(self) -> str:
        """Mount point of the validation routes, e.g. /api/v1."""
        return f"{self.api_base_path.rstrip('/')}/{self.api_version.strip('/')}"

    @property
    def max_body_size_bytes(self) -> int:
        return self.max_body_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
