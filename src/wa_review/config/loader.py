"""Loading of the ``.wa-review.yaml`` suppression file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, List, Mapping

import yaml

from ..errors import ConfigError
from .suppression import Suppression

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".wa-review.yaml"
REQUIRED_FIELDS = ("rule_id", "resource", "reason", "expires")


@dataclass(slots=True)
class ReviewConfig:
    """Parsed configuration file."""

    version: str = ""
    suppressions: List[Suppression] = field(default_factory=list)


def load_config(path: str | os.PathLike[str] = DEFAULT_CONFIG_FILE) -> ReviewConfig:
    """Return the configuration at ``path``; a missing file yields an empty one."""

    config_path = Path(path)
    if not config_path.exists():
        logger.debug("No configuration file at %s", config_path)
        return ReviewConfig()

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file {config_path}") from exc

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in configuration file {config_path}: {exc}") from exc

    return parse_config(data, source=str(config_path))


def parse_config(data: Any, *, source: str = DEFAULT_CONFIG_FILE) -> ReviewConfig:
    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration file {source} must contain a mapping")

    entries = data.get("suppressions") or []
    if not isinstance(entries, list):
        raise ConfigError(f"Configuration file {source}: 'suppressions' must be a list")

    suppressions: List[Suppression] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ConfigError(f"Invalid configuration file {source}: suppression[{index}] must be a mapping")

        values = {}
        for name in REQUIRED_FIELDS:
            value = _as_text(entry.get(name))
            if not value:
                raise ConfigError(f"Invalid configuration file {source}: suppression[{index}]: {name} is required")
            values[name] = value
        suppressions.append(Suppression(**values))

    version = data.get("version")
    return ReviewConfig(version="" if version is None else str(version), suppressions=suppressions)


def _as_text(value: Any) -> str:
    # YAML reads an unquoted 2026-12-31 as a date
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if value is None:
        return ""
    return str(value).strip()


__all__ = ["DEFAULT_CONFIG_FILE", "ReviewConfig", "load_config", "parse_config"]
