"""
Core - Application settings loaded from the environment / .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Ledger Reporting API", alias="APP_NAME")
    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    database_type: Literal["sqlite", "postgresql"] = Field(default="sqlite", alias="DATABASE_TYPE")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    database_path: str = Field(default="./data/ledger.db", alias="DATABASE_PATH")
    db_host: str = Field(default="localhost", alias="DB_HOST")
    db_port: int = Field(default=5432, alias="DB_PORT")
    db_name: str = Field(default="ledger", alias="DB_NAME")
    db_user: str = Field(default="postgres", alias="DB_USER")
    db_password: str = Field(default="postgres", alias="DB_PASSWORD")

    def get_engine_url(self) -> str:
        """Database URL; an explicit DATABASE_URL wins over the composed one."""
        if self.database_url:
            return self.database_url
        if self.database_type == "sqlite":
            return f"sqlite:///{self.database_path}"
        if self.database_type == "postgresql":
            return (
                f"postgresql://{self.db_user}:{self.db_password}"
                f"@{self.db_host}:{self.db_port}/{self.db_name}"
            )
        raise ValueError(f"Unsupported database type: {self.database_type}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
