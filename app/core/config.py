from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Sales Call Analytics API"
    app_env: str = "development"
    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    allowed_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    data_store: str = "mongodb"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "sales_call_analytics"
    mongodb_connect_timeout_ms: int = 2000
    mongodb_sales_calls_collection: str = "sales_calls"
    mongodb_analytics_collection: str = "analytics"
    mongodb_organizations_collection: str = "organizations"
    mongodb_notifications_collection: str = "notifications"
    zapier_webhook_secret: str = ""
    analysis_notifications_enabled: bool = False
    analytics_retention_days: int = 30
    triggers_max_limit: int = 200

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("data_store", mode="before")
    @classmethod
    def normalize_data_store(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("analytics_retention_days", mode="before")
    @classmethod
    def normalize_analytics_retention(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 30
        return parsed_value

    @field_validator("triggers_max_limit", mode="before")
    @classmethod
    def normalize_triggers_max_limit(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 200
        return parsed_value


@lru_cache
def get_settings() -> Settings:
    return Settings()
