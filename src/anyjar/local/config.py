import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from anyjar import settings

log = logging.getLogger(__name__)

# External (hyphenated) keys of server.yml mapped to ServerConfig fields.
FIELD_MAP: Dict[str, str] = {
    "ram-max": "ram_max",
    "ram-min": "ram_min",
    "server-jar": "server_target",
    "server-target": "server_target",
    "use-options": "use_options",
    "manual-startup-command": "manual_startup_command",
}

_TRUE_STRINGS = ('true', '1', 't', 'yes', 'y')


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed."""


@dataclass(frozen=True)
class ServerConfig:
    """
    The launcher configuration, read once at startup.

    Only one startup mode is active per run: with `use_options` the command is
    derived from `server_target` and the RAM tokens, otherwise
    `manual_startup_command` is tokenized. Inactive fields are ignored.
    """
    ram_max: str = "1G"
    ram_min: str = "1G"
    server_target: str = ""
    use_options: bool = False
    manual_startup_command: str = ""


def _coerce(field_name: str, value: Any) -> Any:
    """Coerces a raw YAML scalar to the type of the ServerConfig field."""
    if field_name == "use_options":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE_STRINGS
    return "" if value is None else str(value)


def config_from_mapping(data: Dict[str, Any]) -> ServerConfig:
    """
    Builds a ServerConfig from a parsed server.yml mapping.

    :param data: The mapping with hyphenated external keys.
    :return: The resulting ServerConfig. Missing keys keep their defaults.
    """
    values: Dict[str, Any] = {}
    for key, value in data.items():
        field_name = FIELD_MAP.get(str(key))
        if field_name is None:
            log.warning(f"Unknown configuration key '{key}'. Ignoring.")
            continue
        values[field_name] = _coerce(field_name, value)
    return ServerConfig(**values)


def load_config(path: Path) -> ServerConfig:
    """
    Loads the launcher configuration from a YAML file.

    :param path: Path to server.yml.
    :return: The loaded ServerConfig.
    :raises ConfigError: If the file cannot be read, is not valid YAML or is not a mapping.
    """
    try:
        with path.open('r', encoding='utf-8') as f:
            # Use safe_load to prevent arbitrary code execution from malicious YAML.
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Could not read config file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse config file '{path}': {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping, got {type(data).__name__}.")

    config = config_from_mapping(data)
    log.info(f"Loaded config: {config}")
    return config


def create_default_config(path: Path) -> None:
    """
    Writes the commented default configuration file.

    :param path: Where to create server.yml.
    :raises OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings.DEFAULT_CONFIG_TEMPLATE, encoding='utf-8')
