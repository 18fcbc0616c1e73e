"""Configuration and environment settings for the statement ingestion pipeline."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the statement ingestion pipeline."""

    default_currency: str = "MUR"
    min_text_length: int = 50

    # Calibration points, chosen empirically.
    fuzzy_match_threshold: float = 0.6
    high_confidence_keywords: int = 3
    high_confidence_dates: int = 3
    high_confidence_currency: int = 1
    medium_confidence_keywords: int = 2
    medium_confidence_dates: int = 2

    cache_extracted_text: bool = True
    page_limit: int | None = None
    rules_file: str = "rules.json"
    vocabulary_file: str = "vocabulary.json"

    database_url: str = "sqlite:///batches.db"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_bucket: str = "statement-ingestion"

    log_file: str = "jobs/pipeline.log"
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
