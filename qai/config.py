"""Configuration loading.

Settings are read from a YAML file, looked up in this order:

1. the path given with ``qai --config``;
2. ``$XDG_CONFIG_HOME/qai/qai.yml`` (``~/.config/qai/qai.yml``);
3. ``./qai.yml``;
4. built-in defaults.

An explicitly requested file must exist and parse.  Files found in
the default locations that fail to parse are logged and skipped.
Keys may be written with underscores or hyphens (``api_key`` or
``api-key``).  The ``QAI_API_KEY`` environment variable overrides the
key from the file.

Example::

    api_key: sk-...
    model: gpt-4o-mini
    timeout: 30
    bindings:
      trigger: ctrl-space
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigurationError


logger = logging.getLogger(__name__)

PROJECT_NAME = "qai"
API_KEY_ENV = "QAI_API_KEY"


def _xdg_dir(env_var: str, default: str) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value)
    return Path.home() / default


def config_dir() -> Path:
    """Return ``$XDG_CONFIG_HOME/qai`` (not created)."""
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / PROJECT_NAME


def cache_dir() -> Path:
    """Return ``$XDG_CACHE_HOME/qai`` (not created)."""
    return _xdg_dir("XDG_CACHE_HOME", ".cache") / PROJECT_NAME


def data_dir() -> Path:
    """Return ``$XDG_DATA_HOME/qai`` (not created)."""
    return _xdg_dir("XDG_DATA_HOME", ".local/share") / PROJECT_NAME


@dataclass(frozen=True)
class BindingsConfig:
    """Key bindings for the shell integration.

    Only the trigger key is configurable.  Submit is always Enter and
    interrupt is always Ctrl-C.
    """

    trigger: str = "tab"
    submit: str = field(default="enter", init=False)


@dataclass(frozen=True)
class Config:
    api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    api_base: str = "https://api.openai.com/v1"
    debug: bool = False
    timeout: float = 30.0
    count: int = 5
    bindings: BindingsConfig = field(default_factory=BindingsConfig)

    def get_api_key(self) -> Optional[str]:
        """Return the API key, preferring the ``QAI_API_KEY`` variable."""
        key = os.environ.get(API_KEY_ENV)
        if key:
            return key
        return self.api_key


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def config_from_dict(data: Optional[Dict[str, Any]]) -> Config:
    """Build a :class:`Config` from parsed YAML.

    Missing keys take their defaults and unknown keys are ignored.

    :raises ConfigurationError: If the document or the ``bindings``
      section is not a mapping, or a value has the wrong type.
    """
    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a mapping")
    data = _normalize_keys(data)
    known = {f.name for f in fields(Config)}
    values = {k: v for k, v in data.items() if k in known}

    bindings = values.pop("bindings", None)
    if bindings is not None:
        if not isinstance(bindings, dict):
            raise ConfigurationError("'bindings' must be a mapping")
        bindings = _normalize_keys(bindings)
        trigger = bindings.get("trigger", BindingsConfig.trigger)
        if not isinstance(trigger, str):
            raise ConfigurationError("'bindings.trigger' must be a key name")
        values["bindings"] = BindingsConfig(trigger=trigger)

    try:
        if "timeout" in values:
            values["timeout"] = float(values["timeout"])
        if "count" in values:
            values["count"] = int(values["count"])
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid config value: {exc}") from exc
    if "debug" in values:
        values["debug"] = bool(values["debug"])
    return Config(**values)


def load_config_file(path: Path) -> Config:
    """Load a single YAML config file.

    :raises ConfigurationError: When the file is unreadable or invalid.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"Failed to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse config file {path}: {exc}") from exc
    config = config_from_dict(data)
    logger.info("Loaded config from: %s", path)
    return config


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration using the lookup chain described above."""
    if path is not None:
        return load_config_file(Path(path))

    candidates = [
        config_dir() / f"{PROJECT_NAME}.yml",
        Path(f"{PROJECT_NAME}.yml"),
    ]
    for candidate in candidates:
        if not candidate.exists():
            continue
        try:
            return load_config_file(candidate)
        except ConfigurationError as exc:
            logger.warning("Failed to load config from %s: %s", candidate, exc)

    logger.info("No config file found, using defaults")
    return Config()
