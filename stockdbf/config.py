"""
Configuration settings for the stock table server.

Uses Pydantic Settings to load environment variables (and an optional `.env`
file) for table file location, text decoding, count caching, pagination limits
and logging.
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Table files
    dbf_path: str = Field("tmp", alias="DBF_PATH")
    table_name: str = Field("STOC", alias="TABLE_NAME")
    table_extension: str = Field(".DBF", alias="TABLE_EXTENSION")
    index_extension: str = Field(".MDX", alias="INDEX_EXTENSION")
    code_page: str = Field("cp1252", alias="DBF_CODE_PAGE")
    open_retry_attempts: int = Field(3, alias="OPEN_RETRY_ATTEMPTS")

    # Count cache
    cache_ttl_minutes: float = Field(15, alias="CACHE_TTL_MINUTES")
    cache_refresh_window_minutes: float = Field(2, alias="CACHE_REFRESH_WINDOW_MINUTES")

    # Query limits
    max_search_results: int = Field(100, alias="MAX_SEARCH_RESULTS")
    default_page_size: int = Field(10, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(100, alias="MAX_PAGE_SIZE")

    # Schema export
    schema_output: str = Field("config/schema.sql", alias="SCHEMA_OUTPUT")

    # Application
    app_env: str = Field("production", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def resolved_dbf_path(self) -> Path:
        """Table directory, resolved against the working directory when relative."""
        path = Path(self.dbf_path)
        if not path.is_absolute():
            path = Path(os.getcwd()) / path
        return path

    @property
    def table_path(self) -> Path:
        return self.resolved_dbf_path / f"{self.table_name}{self.table_extension}"

    @property
    def index_path(self) -> Path:
        return self.resolved_dbf_path / f"{self.table_name}{self.index_extension}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
