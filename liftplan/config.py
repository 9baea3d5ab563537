"""
Configuration loading from config.yaml.
"""

import copy
import logging
import os

import yaml

from liftplan.errors import ConfigError


logger = logging.getLogger(__name__)

# Relative to the working directory the CLI is run from.
DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_CONFIG = {
    "claude": {
        "api_key_env": "ANTHROPIC_API_KEY",
        "model": "claude-sonnet-4-5",
        "max_tokens": 2048,
        "timeout": 120,
    },
    "generation": {
        "max_retry_attempts": 2,
        "default_workout_type": "powerlifting",
    },
    "catalog": {
        "path": None,
    },
    "output": {
        "folder": "output",
        "format": "markdown",
    },
}


def deep_merge(base, override):
    """Return base with override applied recursively. Neither input is modified."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(path=None):
    """
    Load configuration, layered over DEFAULT_CONFIG.

    Args:
        path: YAML file to read. Defaults to config.yaml in the current
            directory; a missing default file is not an error.

    Returns:
        Configuration dictionary
    """
    explicit = path is not None
    path = path or DEFAULT_CONFIG_PATH

    if not os.path.exists(path):
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        logger.info("No config file at %s, using defaults", path)
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return deep_merge(DEFAULT_CONFIG, raw)
