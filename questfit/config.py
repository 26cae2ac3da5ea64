"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "QuestFit"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Polar Accesslink ---
    polar_client_id: str = ""
    polar_client_secret: str = ""
    polar_redirect_uri: str = "https://questfit-pi.vercel.app"
    polar_scope: str = "accesslink.read_all"
    polar_webhook_url: str = "https://questfit-pi.vercel.app/api/v1/polar/webhook"
    polar_webhook_events: list[str] = ["EXERCISE", "SLEEP", "ACTIVITY_SUMMARY"]
    polar_webhook_signature_secret: str = ""  # returned once by webhook creation

    # --- Cron ---
    cron_secret: str = ""  # empty disables the bearer check (local dev only)

    # --- Mobile OAuth redirect ---
    mobile_redirect_scheme: str = "questfit://oauth/polar"

    # --- Document store ---
    database_url: str = ""  # empty: in-memory store
    database_pool_min: int = 1
    database_pool_max: int = 10

    # --- Sync ---
    sync_max_concurrent: int = 5
    debug_log_buffer: int = 500

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:8081"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
