"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Redis (job records)
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "verify-"

    # gdrive CLI
    gdrive_bin: str = "/usr/local/bin/gdrive"
    gdrive_config_dir: str = "config/gdrive"

    # Download storage
    temp_dir: Optional[str] = None  # None = system temp dir
    download_cache_dir: str = "tmp/download_cache"
    cache_downloaded_files: bool = False  # keep downloads for reuse (dev only)
    cleanup_on_error: bool = True

    # Job record lifetime
    registration_ttl_seconds: int = 300
    job_ttl_seconds: int = 1800

    # Service
    log_level: str = "INFO"
    port: int = 8001

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "DRIVEVERIFY_",
    }


settings = Settings()
