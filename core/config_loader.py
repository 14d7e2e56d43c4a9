import yaml
import os
from typing import Optional
from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    url: str
    echo: bool = False


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class MatchingConfig(BaseModel):
    """
    Configuration for the MatchingService.

    Score weights and bucket thresholds are fixed in core.scorer.constants;
    these settings only shape candidate retrieval and result size.
    """
    recommendation_limit: int = Field(20, ge=1, le=100)
    candidate_pool_size: int = Field(100, ge=1)  # Fetched before ranking
    fallback_radius_miles: float = Field(100.0, gt=0)  # Users without a location
    min_match_score: float = Field(0.6, ge=0.0, le=1.0)  # Reverse matching cut-off
    match_limit: int = Field(20, ge=1)


class TeeTimeConfig(BaseModel):
    """
    Configuration for the TeeTimeService.
    """
    default_list_limit: int = Field(20, ge=1, le=100)
    # Isolation level for the join transaction; other operations use the default
    join_isolation_level: Optional[str] = "SERIALIZABLE"


class AppConfig(BaseModel):
    database: DatabaseConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    tee_times: TeeTimeConfig = Field(default_factory=TeeTimeConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from another directory), try next to the project root
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        if not data.get('database'):
            data['database'] = {}
        data['database']['url'] = env_db_url

    # Allow env var override for log level
    env_log_level = os.environ.get("LOG_LEVEL")
    if env_log_level:
        if not data.get('logging'):
            data['logging'] = {}
        data['logging']['level'] = env_log_level.upper()

    return AppConfig(**data)
