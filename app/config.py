from typing import ClassVar
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    app_name: ClassVar[str] = "Bookstreak"
    version: ClassVar[str] = "0.1.0"

    database_url: str = "sqlite:///./storage/database/bookstreak.db"

    # --- SECURITY SETTINGS ---
    # In production, generating a long random string is best:
    # openssl rand -hex 32
    secret_key: str = "CHANGE_THIS_TO_A_SECURE_RANDOM_KEY"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # --- LOGGING ---
    log_dir: Path = Path("storage/logs")
    log_level: str = "INFO"

    # --- DATES ---
    # IANA name used when a user has no timezone of their own
    default_timezone: str = "UTC"

    # --- STATS & STREAKS ---
    # How many recent reading rows the streak walk looks at
    streak_fetch_limit: int = 200
    # Upper bound on rows pulled for the reading stats page
    stats_fetch_limit: int = 1000
    stats_window_days: int = 7
    pr_lookback_days: int = 30
    pr_min_pages: int = 5

    # --- XP ---
    daily_reading_xp_cap: int = 40

    model_config = SettingsConfigDict(env_file=".env",
                                      extra="ignore",
                                      env_ignore_empty=True,
                                      case_sensitive=False,
                                      env_nested_delimiter=None
                                      )


settings = Settings()
