"""
Configuration management for the Nomad 360 reporting service.

All environment variables are loaded here with their default values.
Every field is optional; the defaults reproduce the reporting rules
used by the feedback reports.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variable Reference:
    - DATA_DIR: Directory holding one `{tenant_id}.json` document per tenant.
      When unset the service starts with an empty in-memory store.

    Report rule overrides (HIGH_SCORE_THRESHOLD, TOP_ITEMS_LIMIT, ...) exist
    for tenants that run a different rating scale.
    """

    # Application settings
    app_name: str = "Nomad 360 Reporting"
    app_version: str = "1.0.0"
    debug: bool = False

    # Report data source
    data_dir: Optional[str] = None

    # Schema defaults for questions without catalog metadata
    default_cluster_name: str = "Uncategorized"
    default_competency_name: str = "General"
    default_rating_min: int = 1
    default_rating_max: int = 5

    # Aggregation rules
    high_score_threshold: float = 3.0  # averages >= threshold are "high"
    top_items_limit: int = 10
    anonymity_threshold: int = 3  # min raters before a restricted group is shown
    agreement_chart_limit: int = 15
    score_decimals: int = 2

    # Cache settings (JSON store documents)
    cache_ttl_seconds: int = 300
    cache_max_size: int = 256

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()


def get_service_status() -> dict:
    """
    Returns the configuration status of the report data source.
    Used by the health endpoint.
    """
    return {
        "report_store": "json" if settings.data_dir else "memory",
        "data_dir": settings.data_dir,
    }
