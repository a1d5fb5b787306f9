from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Follows 12-factor app configuration principles.
    """

    # env_file is only used as fallback, env vars take precedence
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Secret store file (hierarchical YAML/JSON or a single legacy token) - required
    HMAC_SECRET_FILE: str

    LOG_LEVEL: str = "INFO"

    # Header carrying "sha1=<hex>"
    SIGNATURE_HEADER: str = "X-Hub-Signature"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every request.
    """
    return Settings()
