"""Service configuration with YAML support."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import Field, field_validator

from playground_core.settings import EngineSettings


class ServiceConfig(EngineSettings):
    """Engine settings plus the knobs of the HTTP/CLI surface."""

    service_name: str = "code-playground-engine"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)

    @field_validator("log_level")
    @classmethod
    def known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    def engine_settings(self) -> EngineSettings:
        return EngineSettings(sandbox=self.sandbox, trace=self.trace, benchmark=self.benchmark)


def load_config(yaml_path: str | Path) -> ServiceConfig:
    """Load service configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        ServiceConfig instance

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or has unknown/invalid fields
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping: {yaml_path}")

    try:
        return ServiceConfig.model_validate(data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: ServiceConfig, yaml_path: str | Path) -> None:
    """Save service configuration to YAML file.

    Args:
        config: ServiceConfig to save
        yaml_path: Path where to save YAML file
    """
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    with open(yaml_path, "w", encoding="utf-8") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False, indent=2)
