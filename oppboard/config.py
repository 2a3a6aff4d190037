"""Oppboard configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class OppboardSettings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///oppboard.db"
    echo_sql: bool = False
    app_title: str = "Opportunity Board"
    log_level: str = "INFO"

    # GoHighLevel public API
    ghl_api_base: str = "https://services.leadconnectorhq.com"
    ghl_api_version: str = "2021-07-28"
    ghl_timeout_seconds: float = 30.0

    # Opportunity sync
    sync_page_size: int = 100
    sync_max_pages: int = 2000
    sync_batch_size: int = 500

    # Listing defaults when a location has no page size of its own
    default_page_size: int = 100

    model_config = {"env_prefix": "OPPBOARD_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.database_url


settings = OppboardSettings()
