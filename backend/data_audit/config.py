"""Data audit configuration — store connection, rule thresholds, audit trail."""

from pydantic_settings import BaseSettings

VERSION = "1.0.0"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Built once per process via load_settings() and passed into each
    component; nothing reads the environment after startup.
    """

    # Database
    database_url: str = "sqlite:///data/data_audit.db"

    # Admin API (empty = auth disabled, dev mode)
    data_audit_api_key: str = ""

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:3000"

    # Validation rules
    min_case_threshold: int = 500  # Analytics eligibility floor
    case_count_tolerance: int = 5  # Allowed drift of judges.total_cases
    sample_limit: int = 10  # Records copied into issue details

    # Remediation audit trail
    audit_log_path: str = "data/remediation-audit.json"
    operator: str = "data-audit-cli"
    backup_dir: str | None = None
    max_backups: int = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def load_settings(**overrides) -> Settings:
    """Construct settings from environment, applying explicit overrides."""
    values = {k: v for k, v in overrides.items() if v is not None}
    return Settings(**values)
