from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = "http://localhost:3000"


def split_origins(value: str) -> List[str]:
    """Comma-separated origins, blanks dropped"""
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Application settings, read once from the environment and .env"""
    database_url: str
    jwt_secret: str
    jwt_issuer: str
    jwt_audience: str
    # Mutating routes tolerate a little clock drift, read routes none
    jwt_write_leeway_seconds: int = Field(default=120, ge=0)
    jwt_read_leeway_seconds: int = Field(default=0, ge=0)
    strict_owner_check: bool = False
    page_size: int = Field(default=100, gt=0)
    cors_origins: str = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"
    sql_echo: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True
    )

    @property
    def cors_origin_list(self) -> List[str]:
        return split_origins(self.cors_origins)


@lru_cache
def get_settings() -> Settings:
    """Settings singleton - used as FastAPI dependency"""
    return Settings()
