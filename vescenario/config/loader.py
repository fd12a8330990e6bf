"""
Configuration loader with YAML/JSON support, environment overrides, and CLI overrides.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .schemas import ViewerConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "VESC__"


def load_config(path: str) -> ViewerConfig:
    """
    Load configuration from YAML or JSON file.

    Args:
        path: Path to config file

    Returns:
        ViewerConfig validated instance

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If file format is unsupported
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    suffix = config_path.suffix.lower()

    if suffix in [".yaml", ".yml"]:
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    elif suffix == ".json":
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = json.load(f)
    else:
        raise ValueError(f"Unsupported config file format: {suffix}. Use .yaml, .yml, or .json")

    # An empty YAML file means "all defaults"
    if config_dict is None:
        config_dict = {}
    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file must contain a mapping at top level: {path}")

    logger.debug(f"Loaded config from {config_path}")
    return ViewerConfig(**config_dict)


def parse_value(value: str) -> Any:
    """
    Parse an override value.

    Tries JSON first, then true/false/null and numbers, falling back to the raw string.
    """
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        pass

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _set_nested(overrides: Dict[str, Any], keys: Sequence[str], value: Any) -> None:
    """Set overrides[k1][k2]...[kn] = value, creating intermediate dicts"""
    current = overrides
    for key_part in keys[:-1]:
        if not isinstance(current.get(key_part), dict):
            current[key_part] = {}
        current = current[key_part]
    current[keys[-1]] = value


def _merge_overrides(cfg: ViewerConfig, overrides: Dict[str, Any]) -> ViewerConfig:
    """Merge overrides into config and re-validate"""
    if not overrides:
        return cfg
    config_dict = _deep_merge(cfg.model_dump(), overrides)
    return ViewerConfig(**config_dict)


def apply_env_overrides(cfg: ViewerConfig, environ: Optional[Mapping[str, str]] = None) -> ViewerConfig:
    """
    Apply environment variable overrides to configuration.

    Environment variables must follow pattern: VESC__{section}__{key}
    Example: VESC__loader__default_metric=Median

    Args:
        cfg: Base ViewerConfig
        environ: Environment mapping (defaults to os.environ)

    Returns:
        ViewerConfig with environment overrides applied
    """
    if environ is None:
        environ = os.environ

    overrides: Dict[str, Any] = {}

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        # Normalize to lowercase for Windows compatibility (env vars are often uppercase)
        parts = key[len(ENV_PREFIX):].lower().split("__")
        if len(parts) < 2 or not all(parts):
            logger.warning(f"Ignoring malformed config override variable: {key}")
            continue

        _set_nested(overrides, parts, parse_value(value))

    return _merge_overrides(cfg, overrides)


def apply_cli_overrides(cfg: ViewerConfig, sets: List[str]) -> ViewerConfig:
    """
    Apply CLI --set key=value overrides to configuration.

    Supports nested keys: loader.default_metric=Median or data.variants=["VERPAT"]

    Args:
        cfg: Base ViewerConfig
        sets: List of "key=value" strings from CLI --set flags

    Returns:
        ViewerConfig with CLI overrides applied
    """
    if not sets:
        return cfg

    overrides: Dict[str, Any] = {}

    for set_str in sets:
        if "=" not in set_str:
            raise ValueError(f"Invalid --set format: {set_str}. Expected 'key=value'")

        key_str, value_str = set_str.split("=", 1)
        key_parts = key_str.strip().split(".")
        if len(key_parts) < 2 or not all(key_parts):
            raise ValueError(f"Invalid --set key format: {key_str}. Expected 'section.key' or 'section.nested.key'")

        _set_nested(overrides, key_parts, parse_value(value_str))

    return _merge_overrides(cfg, overrides)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
