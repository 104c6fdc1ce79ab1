"""
Configuration settings for the failover probe.

Uses Pydantic Settings to load environment variables (and `.env`) for the
database connection, logging, and run parameters. A JSON config file in the
legacy `config.json` shape can be layered on top; values it sets win over the
environment.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from failover_probe.domain.models import RunConfig
from failover_probe.errors import ConfigurationError


class Settings(BaseSettings):
    # Database
    db_dsn: Optional[str] = Field(None, alias="DB_DSN")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("busy_db", alias="DB_NAME")
    db_connect_timeout: int = Field(5, alias="DB_CONNECT_TIMEOUT", ge=1)
    db_connect_attempts: int = Field(3, alias="DB_CONNECT_ATTEMPTS", ge=1)

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Run defaults; probe_rps is only None when set programmatically
    probe_test_run: int = Field(1_000, alias="PROBE_TEST_RUN", ge=0)
    probe_rps: Optional[int] = Field(10, alias="PROBE_RPS", gt=0)
    probe_max_retry: int = Field(30, alias="PROBE_MAX_RETRY", ge=1)
    probe_delay_retry: float = Field(1.0, alias="PROBE_DELAY_RETRY", ge=0)
    probe_seed: Optional[int] = Field(None, alias="PROBE_SEED")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def run_config(self) -> RunConfig:
        """Freeze the run parameters for a single run."""
        return RunConfig(
            test_run=self.probe_test_run,
            rps=self.probe_rps,
            max_retry=self.probe_max_retry,
            delay_retry=self.probe_delay_retry,
        )


class DatabaseSection(BaseModel):
    dsn: Optional[str] = None


class FileConfig(BaseModel):
    """
    Shape of the JSON config file:

        {"database": {"dsn": "..."}, "test_run": 1000, "rps": 10,
         "max_retry": 30, "delay_retry": 1}
    """

    database: DatabaseSection = Field(default_factory=DatabaseSection)
    test_run: Optional[int] = Field(None, ge=0)
    rps: Optional[int] = Field(None, gt=0)
    max_retry: Optional[int] = Field(None, ge=1)
    delay_retry: Optional[float] = Field(None, ge=0)

    model_config = {"extra": "ignore"}

    def overrides(self) -> Dict[str, Any]:
        """Map the file's keys onto Settings field names, skipping unset ones."""
        mapping = {
            "db_dsn": self.database.dsn,
            "probe_test_run": self.test_run,
            "probe_rps": self.rps,
            "probe_max_retry": self.max_retry,
            "probe_delay_retry": self.delay_retry,
        }
        return {key: value for key, value in mapping.items() if value is not None}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def load_file_config(path: Path | str) -> FileConfig:
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc
    try:
        return FileConfig.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config file {config_path}: {exc}") from exc


def load_settings(config_path: Path | str | None = None) -> Settings:
    """
    Resolve effective settings: environment first, then the optional JSON file.

    Raises
    ------
    ConfigurationError
        If the environment or the config file holds invalid values.
    """
    try:
        settings = get_settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid environment configuration: {exc}") from exc
    if config_path is None:
        return settings
    return settings.model_copy(update=load_file_config(config_path).overrides())


__all__ = [
    "Settings",
    "FileConfig",
    "get_settings",
    "load_file_config",
    "load_settings",
]
