"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Frontdesk"
    debug: bool = False
    log_level: str = "INFO"

    # Remote hotel API
    api_base_url: str = "http://localhost:5000/api"
    api_timeout_seconds: float = 10.0
    auth_refresh_enabled: bool = True

    # Locales
    supported_locales: str = "en,es"
    default_locale: str = "en"

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Query cache
    cache_dedupe_seconds: float = 2.0
    cache_max_sessions: int = 256

    # Session cookies
    auth_cookie_name: str = "auth_token"
    refresh_cookie_name: str = "refresh_token"
    cookie_secure: bool = False

    @property
    def locales(self) -> list[str]:
        """Supported locale codes, default first."""
        codes = [code.strip() for code in self.supported_locales.split(",") if code.strip()]
        if self.default_locale in codes:
            codes.remove(self.default_locale)
        return [self.default_locale, *codes]

    @property
    def origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
