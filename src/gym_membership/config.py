"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 168
    admin_token: str
    redis_url: str | None = None
    otp_ttl_seconds: int = 600
    rate_limit_requests: int = 5
    rate_limit_window_seconds: int = 600
    whatsapp_gateway_url: str = "http://localhost:3001"
    whatsapp_session_name: str = "gym"
    whatsapp_auth_dir: str = "auth_info_whatsapp"
    whatsapp_country_code: str = "91"
    whatsapp_print_qr: bool = True
    reconnect_delay_seconds: float = 3.0
    reconnect_backoff_multiplier: float = 1.0
    reconnect_max_delay_seconds: float | None = None
    reconnect_max_attempts: int | None = None
    billing_timezone: str = "Asia/Kolkata"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
