from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal, Optional


class Settings(BaseSettings):
    # App
    app_name: str = "abacgate"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_dir: str = "/var/log/abacgate"
    file_logging: bool = False

    # Policy sources, checked in this order; built-in defaults otherwise
    policy_file: Optional[str] = None
    database_url: Optional[str] = None

    # Security
    secret_key: str = "dev-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Interception
    api_prefix: str = ""  # stripped before path mapping
    single_record_fallback: Literal["original", "empty"] = "original"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ABACGATE_",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
