from pydantic_settings import BaseSettings, SettingsConfigDict
import os
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="APPETYTE_", case_sensitive=False, extra="ignore")

    # Database
    database_url: str = "duckdb://./data/appetyte.duckdb"

    # JWT
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24 * 7

    # API
    api_title: str = "Appetyte API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    debug: bool = False
    log_level: str = "INFO"

    # Provider-facing timezone, minutes east of UTC (IST)
    service_utc_offset_minutes: int = 330

    # None: balance may go negative without limit
    balance_floor_paise: Optional[int] = None

    # Development login without an upstream identity provider
    mock_auth_enabled: bool = False

    # Shared secret for the scheduled auto-order endpoint
    auto_order_secret: Optional[str] = None


def load_settings() -> Settings:
    """APPETYTE_ENV=development selects the development defaults"""
    if os.getenv("APPETYTE_ENV", "").lower() == "development":
        from .environments.development import DevelopmentSettings
        return DevelopmentSettings()
    return Settings()


settings = load_settings()
