"""
Configuration settings for the statutory declaration service.
Loads environment variables and provides application-wide settings.
"""
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # PDF Rendering Configuration
    # auto | remote | browser | none
    PDF_BACKEND: str = "auto"
    PDF_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PDF_API_KEY", "pdf_api_key", "NUXT_PDF_API_KEY"),
    )
    PDF_API_URL: str = "https://api.html2pdf.app/v1/generate"
    PDF_TIMEOUT_SECONDS: float = 30.0
    PDF_PAGE_FORMAT: str = "A4"
    PDF_MARGIN_PX: int = 75  # roughly 2cm
    BROWSER_EXECUTABLE_PATH: Optional[str] = None

    # Set to "1" by the serverless platform
    VERCEL: str = ""

    # Template Configuration
    TEMPLATE_PATH: Optional[str] = None
    ESCAPE_FIELD_VALUES: bool = True

    # n8n Proxy Configuration
    N8N_WEBHOOK_URL: Optional[str] = None
    MAX_PROXY_PAYLOAD_SIZE: int = 4 * 1024 * 1024  # 4 MB
    PROXY_TIMEOUT_SECONDS: float = 60.0

    # Request echo at /api/test; set to true in .env for development only
    ENABLE_DEBUG_ENDPOINTS: bool = False

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_serverless(self) -> bool:
        return self.VERCEL == "1"

    @property
    def environment_name(self) -> str:
        """Label reported in health checks and the X-Environment header."""
        return "Serverless" if self.is_serverless else "Local"

    def get_pdf_api_key(self) -> Optional[str]:
        key = (self.PDF_API_KEY or "").strip()
        return key or None

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
