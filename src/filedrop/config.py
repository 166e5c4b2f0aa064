"""Load the YAML configuration shared by the watcher and the consumer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import yaml

from filedrop import CONFIG_ERROR

DEFAULT_CONFIG_PATH = Path("./config.yaml")
BROKER_ENV_VAR = "AMQP_URL"

# YAML key -> Configuration field
CONFIG_KEYS = {
    "path": "path",
    "copy_to": "copy_to",
    "extension": "extension",
    "brokerTopic": "broker_topic",
    "broker": "broker",
}


class ConfigError(Exception):
    """Raised when the configuration file cannot be used."""

    code = CONFIG_ERROR


@dataclass(frozen=True)
class Configuration:
    path: str
    copy_to: str
    extension: str
    broker_topic: str
    broker: str


def _read_yaml(filename: Path) -> Any:
    try:
        text = filename.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"{filename}: {exc.strerror or exc}") from exc
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f'in file "{filename}": {exc}') from exc


def load_config(filename: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Configuration:
    """Read ``filename`` into a :class:`Configuration`.

    ``broker`` may be left out of the file when ``AMQP_URL`` is set in the
    environment.
    """
    filename = Path(filename)
    data = _read_yaml(filename)
    if not isinstance(data, dict):
        raise ConfigError(f'in file "{filename}": expected a mapping of settings')

    data = dict(data)
    if not data.get("broker") and os.getenv(BROKER_ENV_VAR):
        data["broker"] = os.environ[BROKER_ENV_VAR]

    values = {}
    for key, field_name in CONFIG_KEYS.items():
        if key not in data or data[key] is None:
            raise ConfigError(f'in file "{filename}": missing required key {key!r}')
        value = data[key]
        if not isinstance(value, str):
            raise ConfigError(
                f'in file "{filename}": {key!r} must be a string, '
                f"got {type(value).__name__}"
            )
        values[field_name] = value
    return Configuration(**values)
