"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class ApiConfig(BaseSettings):
    """Training backend API configuration."""

    model_config = {"env_prefix": "MLCONSOLE_API_"}

    use_dummy_data: bool = True
    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 30.0
    token: str | None = None


class WizardConfig(BaseSettings):
    """Dataset and training wizard configuration."""

    model_config = {"env_prefix": "MLCONSOLE_WIZARD_"}

    hyperparameters_path: str = "config/hyperparameters.yml"
    preview_limit: int | None = None
    max_sessions: int = 200


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "MLCONSOLE_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    api: ApiConfig = Field(default_factory=ApiConfig)
    wizard: WizardConfig = Field(default_factory=WizardConfig)
