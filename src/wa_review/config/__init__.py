"""Suppression configuration loading and application."""

from .loader import DEFAULT_CONFIG_FILE, ReviewConfig, load_config, parse_config
from .suppression import Suppression, SuppressionResult, apply_suppressions

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ReviewConfig",
    "Suppression",
    "SuppressionResult",
    "apply_suppressions",
    "load_config",
    "parse_config",
]
