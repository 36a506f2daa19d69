"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "ChatVault API"
    data_dir: Path = Path("~/.local/share/chatvault")
    database_filename: str = "chats.db"
    state_filename: str = "state.json"
    live_query_workers: int = 4
    sqlite_busy_timeout_ms: int = 5000
    importer_command: str | None = None
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    model_config = SettingsConfigDict(
        env_prefix="CHATVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_path(self) -> Path:
        return self.data_dir.expanduser() / self.database_filename

    @property
    def state_path(self) -> Path:
        return self.data_dir.expanduser() / self.state_filename


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
