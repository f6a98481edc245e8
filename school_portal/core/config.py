from typing import Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Backend REST API (all data lives there)
    api_base_url: str = "http://localhost:3000/api/sms"
    api_timeout_seconds: float = 30.0
    # Page size used when the portal walks a paginated backend list
    backend_page_limit: int = 100

    # App
    debug: bool = True
    log_level: str = "INFO"
    # Can be a comma-separated string or list
    cors_allowed_origins: Union[str, list[str]] = "http://localhost:5173"

    # Display
    timezone: str = "Asia/Manila"
    currency_symbol: str = "₱"

    # Merchandise images are forwarded to the backend upload endpoint
    merchandise_image_max_bytes: int = 5 * 1024 * 1024

    @field_validator("api_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Endpoints are joined as base + '/path'."""
        if not v:
            raise ValueError("API_BASE_URL is required")
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


settings = Settings()
