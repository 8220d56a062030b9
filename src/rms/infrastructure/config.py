"""Application configuration using Pydantic Settings.

Every setting can be overridden with an ``RMS_``-prefixed environment
variable or a ``.env`` file in the working directory.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RMS_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Storage
    data_dir: Path = _DEFAULT_DATA_DIR
    store_file: str = "rms.json"
    lock_timeout: float = 10.0

    # Notifications
    notify_outbox: bool = True
    outbox_file: str = "notifications.json"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # console | json

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_file

    @property
    def outbox_path(self) -> Path:
        return self.data_dir / self.outbox_file


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
