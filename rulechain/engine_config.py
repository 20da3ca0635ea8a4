"""
Configuration for running rule chains.

Settings come from a YAML file:

    engine:
      default_result: 4.5
    logging:
      level: INFO
      format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    reporting:
      enabled: true
      output_dir: output

Only the engine section is required; the other sections fall back to
defaults. The chaining core never reads configuration itself; the
runner passes the values in.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

import yaml


DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class EngineConfig:
    """Resolved configuration for a chain run."""
    default_result: Any = None
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    reporting_enabled: bool = False
    report_dir: Path = Path("output")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EngineConfig":
        """
        Build a config from the parsed YAML document.

        Raises:
            ValueError: If a section is missing or has the wrong shape
        """
        if not isinstance(raw, dict):
            raise ValueError("Config must be a mapping")

        if "engine" not in raw:
            raise ValueError("Missing required config key: engine")

        engine = _section(raw, "engine")
        logging_section = _section(raw, "logging")
        reporting = _section(raw, "reporting")

        level = str(logging_section.get("level", "INFO")).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level: {level}")

        return cls(
            default_result=engine.get("default_result"),
            log_level=level,
            log_format=logging_section.get("format", DEFAULT_LOG_FORMAT),
            reporting_enabled=bool(reporting.get("enabled", False)),
            report_dir=Path(reporting.get("output_dir", "output"))
        )


def load_config(config_path: Union[str, Path]) -> EngineConfig:
    """
    Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the content is invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    return EngineConfig.from_dict(raw or {})


def configure_logging(config: EngineConfig, stream: Optional[Any] = None):
    """Configure root logging from the config."""
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=config.log_format,
        stream=stream,
        force=True
    )


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = raw.get(key) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{key}' must be a mapping")
    return section
