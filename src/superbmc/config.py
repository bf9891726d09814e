"""
Configuration loading for Superbmc
"""

import copy
import logging
import os
from typing import Any, Dict

import yaml

from .pmbus.models import LEGACY_FAN_MARKER, NON_STANDARD_EXACT, NON_STANDARD_MODELS, ModelClassifier

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/superbmc/config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "ipmi": {
        "host": "localhost",
        "username": "ADMIN",
        "password": "ADMIN",
        "interface": "lanplus",
        "retries": 3,
        "retry_delay": 1.0,
    },
    "pmbus": {
        "bus": 0x07,
        "extra_non_standard_models": [],
        "legacy_fan_marker": LEGACY_FAN_MARKER,
    },
}


class ConfigError(Exception):
    """Raised when the configuration file cannot be used"""
    pass


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load a YAML config file on top of the defaults

    A missing file is not an error; the defaults are returned.

    Args:
        config_path: Path to configuration file

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if not os.path.exists(config_path):
        logger.debug(f"No configuration at {config_path}, using defaults")
        return config

    try:
        with open(config_path) as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load {config_path}: {e}") from e

    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    logger.info(f"Loaded configuration from {config_path}")
    return _merge(config, loaded)


def build_classifier(config: Dict[str, Any]) -> ModelClassifier:
    """Build the model classifier, extended with models named in the config

    Raises:
        ConfigError: If the model list or legacy fan marker has the wrong type
    """
    pmbus = config.get("pmbus", {})
    extra = pmbus.get("extra_non_standard_models") or []
    # A single model written without list brackets
    if isinstance(extra, str):
        extra = [extra]
    if not isinstance(extra, list) or not all(isinstance(model, (str, int)) for model in extra):
        raise ConfigError("pmbus.extra_non_standard_models must be a list of model numbers")

    marker = pmbus.get("legacy_fan_marker", LEGACY_FAN_MARKER)
    if marker is None:
        marker = ""
    # YAML reads an unquoted 721 as an int
    if not isinstance(marker, (str, int)) or isinstance(marker, bool):
        raise ConfigError("pmbus.legacy_fan_marker must be a string")

    return ModelClassifier(
        non_standard=NON_STANDARD_MODELS + tuple(str(model) for model in extra),
        exact=NON_STANDARD_EXACT,
        legacy_marker=str(marker),
    )
