# utils/config_loader.py
from pathlib import Path
from typing import Any, Dict

import structlog
import yaml

log = structlog.get_logger(__name__)


class ConfigFormatError(ValueError):
    """A configuration file or section is not a mapping."""


def load_yaml_config(config_path: Path, config_name: str) -> Dict[str, Any]:
    """Loads a YAML configuration file into a dict."""
    config_path = Path(config_path)
    if not config_path.is_file():
        log.error(f"{config_name} config file not found", path=str(config_path))
        raise FileNotFoundError(f"{config_name} configuration file not found: {config_path}")
    try:
        with config_path.open("r") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        log.error(
            f"Error parsing YAML for {config_name}", path=str(config_path), error=str(e), exc_info=True
        )
        raise
    if config_data is None:
        log.warning(f"{config_name} config file is empty.", path=str(config_path))
        return {}
    if not isinstance(config_data, dict):
        log.error(
            f"{config_name} config must be a mapping",
            path=str(config_path),
            found=type(config_data).__name__,
        )
        raise ConfigFormatError(f"{config_name} configuration must be a mapping: {config_path}")
    log.info(f"{config_name} config loaded", path=str(config_path))
    return config_data


def config_section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return ``config[name]`` as a dict, or ``{}`` when the section is absent."""
    section = config.get(name) or {}
    if not isinstance(section, dict):
        log.error("Config section must be a mapping", section=name, found=type(section).__name__)
        raise ConfigFormatError(f"Config section '{name}' must be a mapping")
    return dict(section)
