"""Application configuration using pydantic settings with structured sections."""

import sys
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./scripts.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class PaginationSettings(BaseModel):
    default_per_page: int = Field(default=10, ge=1)
    max_per_page: int = Field(default=100, ge=1)


class PreviewSettings(BaseModel):
    timeout_seconds: float = Field(default=10.0, gt=0)
    languages: list[str] = Field(default_factory=lambda: ["php", "lua", "python"])
    interpreters: dict[str, str] = Field(
        default_factory=lambda: {
            "python": sys.executable,
            "php": "php",
            "lua": "lua",
        }
    )


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Script Registry"
    api_prefix: str = "/api/1.0"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    pagination: PaginationSettings = PaginationSettings()
    preview: PreviewSettings = PreviewSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def supported_languages(self) -> list[str]:
        return [language.lower() for language in self.preview.languages]

    @property
    def default_per_page(self) -> int:
        return self.pagination.default_per_page

    @property
    def max_per_page(self) -> int:
        return max(self.pagination.max_per_page, self.pagination.default_per_page)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
