"""Application configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Grooming Gateway API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Downstream grooming backend
    # WHY: The UI historically pointed at ".../api/v1"; both forms are accepted
    # and normalized by backend_base_url.
    API_URL: str = "http://localhost:3000"
    BACKEND_TIMEOUT: float = 30.0  # seconds, plain JSON calls
    IMPORT_STREAM_TIMEOUT: Optional[float] = None  # read timeout for the import relay

    # Uploads
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10 MB

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @property
    def backend_base_url(self) -> str:
        """
        Origin of the downstream API without the version prefix.

        WHY: Downstream paths are built as f"{base}/api/v1/...", so a
        configured URL that already ends in /api/v1 must not double it.
        """
        url = self.API_URL.rstrip("/")
        if url.endswith("/api/v1"):
            url = url[: -len("/api/v1")]
        return url


settings = Settings()
