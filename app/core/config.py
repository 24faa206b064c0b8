"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.

Nothing here is required at boot. A missing value only fails the handler
that needs it, at call time.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Hosted relational datastore
    database_url: Optional[str] = None
    auto_create_schema: bool = False

    # Identity provider (Supabase Auth)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None
    supabase_jwt_audience: str = "authenticated"
    session_cookie_name: str = "sb-access-token"

    # Company registry (Gridlines MCA API)
    gridlines_base_url: str = "https://api.gridlines.io"
    gridlines_api_key: Optional[str] = None

    # Aadhaar OTP (API Setu)
    apisetu_aadhaar_init_url: Optional[str] = None
    apisetu_aadhaar_confirm_url: Optional[str] = None
    apisetu_api_key: Optional[str] = None
    default_aadhaar_mode: str = "apisetu"

    # Outbound HTTP
    http_timeout_seconds: float = 15.0

    # App
    app_name: str = "SafeHire"
    backend_cors_origins: str = "*"
    debug: bool = False
    log_level: str = "INFO"

    @property
    def cors_origins(self) -> List[str]:
        """Comma-separated BACKEND_CORS_ORIGINS as a list"""
        return [o.strip() for o in self.backend_cors_origins.split(",") if o.strip()]

    @property
    def identity_provider_configured(self) -> bool:
        return bool(self.supabase_jwt_secret or (self.supabase_url and self.supabase_anon_key))

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
