"""Configuration management using Pydantic Settings"""

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class RunMode(str, Enum):
    """How the service binds requests to an organization"""

    LIVE = "live"
    MOCKUP = "mockup"  # Requests without an organization header use mockup_organization_id


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./care_finance.db"
    create_tables: bool = True  # Create missing tables at startup

    # Service
    service_name: str = "care-finance"
    log_level: str = "INFO"
    run_mode: RunMode = RunMode.LIVE
    mockup_organization_id: int = 1

    # Reporting
    report_months: int = 12
    history_limit: int = 12


settings = Settings()
