"""Centralized configuration loader for YAML-based configuration.

This module provides functions to load configuration from YAML files with:
- Environment variable overrides (env var → YAML → defaults)
- Type coercion (string to float, bool, int)
- Schema defaults using dataclasses
- Graceful degradation (missing files use defaults)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_ASSISTANT_API_URL = "https://paad-groq-proxy.kumarprincebt.workers.dev/api/chat"


def get_project_root() -> Path:
    """
    Get project root directory.

    Uses pattern: config_loader.py → core/ → metabolite_assistant/ → src/ → project_root

    Returns:
        Path to project root directory

    Raises:
        ValueError: If config/ directory is not found at the detected project root
    """
    project_root = Path(__file__).parent.parent.parent.parent

    config_dir = project_root / "config"
    if not config_dir.is_dir():
        raise ValueError(
            f"Project root detection failed: config/ directory not found at {config_dir}. "
            f"Detected project root: {project_root}. "
            f"If project structure has changed, update get_project_root() in config_loader.py"
        )

    return project_root


def _default_config_path(filename: str) -> Path | None:
    """Locate config/<filename> under the project root, or None for installed packages."""
    try:
        return get_project_root() / "config" / filename
    except ValueError as e:
        logger.debug(f"No project config directory, using defaults: {e}")
        return None


def _coerce_type(value: Any, target_type: type) -> Any:
    """
    Coerce value to target type.

    Handles:
    - String "30.0" → float 30.0
    - String "true"/"false" → bool True/False (case-insensitive)
    - String "123" → int 123

    Raises:
        ValueError: If coercion fails
    """
    if value is None:
        return None

    if isinstance(value, target_type) and not (target_type is int and isinstance(value, bool)):
        return value

    if target_type is bool:
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value)

    if target_type is float:
        return float(value)

    if target_type is int:
        if isinstance(value, str):
            return int(float(value))  # Handle "30.0" → 30
        return int(value)

    if target_type is str:
        return str(value)

    return value


def _apply_env_overrides(config: dict[str, Any], env_mapping: dict[str, str]) -> dict[str, Any]:
    """
    Apply environment variable overrides to config.

    Args:
        config: Configuration dictionary
        env_mapping: Mapping of env var names to config keys

    Returns:
        Config with env var overrides applied
    """
    result = config.copy()

    for env_key, config_key in env_mapping.items():
        env_value = os.getenv(env_key)
        if env_value is None:
            continue
        target_type = type(result[config_key])
        try:
            result[config_key] = _coerce_type(env_value, target_type)
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to coerce env var {env_key}={env_value} to {target_type.__name__}: {e}")

    return result


def _read_yaml(config_path: Path | None) -> dict[str, Any]:
    """
    Read a YAML mapping, or an empty dict when the file is absent.

    Raises:
        ValueError: If the file is not valid YAML or its top level is not a mapping
    """
    if config_path is None or not config_path.exists():
        logger.debug(f"Config file not found at {config_path}, using defaults")
        return {}

    try:
        with open(config_path) as f:
            yaml_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(yaml_data, dict):
        raise ValueError(f"Invalid YAML in {config_path}: expected a mapping, got {type(yaml_data).__name__}")
    return yaml_data


def _merge_yaml(defaults: dict[str, Any], yaml_data: dict[str, Any], config_path: Path | None) -> dict[str, Any]:
    """Merge scalar YAML values into defaults, coercing to each default's type."""
    config = defaults.copy()
    for key, value in yaml_data.items():
        if key not in defaults:
            logger.debug(f"Ignoring unknown config key {key} in {config_path}")
            continue
        target_type = type(defaults[key])
        try:
            config[key] = _coerce_type(value, target_type)
        except (ValueError, TypeError) as e:
            logger.warning(
                f"Failed to coerce YAML value {key}={value} to {target_type.__name__}: {e}, using default"
            )

    return config


@dataclass
class AssistantConfigDefaults:
    """Default values for the assistant overlay configuration."""

    api_url: str = DEFAULT_ASSISTANT_API_URL
    timeout_seconds: float = 0.0  # 0 disables the request timeout
    top_hits_limit: int = 5
    greeting: str = "Chat cleared. How can I help?"

    def to_dict(self) -> dict[str, Any]:
        """Convert dataclass to dictionary."""
        return {
            "api_url": self.api_url,
            "timeout_seconds": self.timeout_seconds,
            "top_hits_limit": self.top_hits_limit,
            "greeting": self.greeting,
        }


def load_assistant_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load assistant config from YAML with env var overrides.

    Precedence: Environment variable → YAML value → Default value

    Args:
        config_path: Optional path to config file. If None, uses config/assistant.yaml.

    Returns:
        dict with keys:
        - api_url: str
        - timeout_seconds: float
        - top_hits_limit: int
        - greeting: str

    Raises:
        ValueError: If YAML is invalid
    """
    if config_path is None:
        config_path = _default_config_path("assistant.yaml")

    config = _merge_yaml(AssistantConfigDefaults().to_dict(), _read_yaml(config_path), config_path)

    env_mapping = {
        "ASSISTANT_API_URL": "api_url",
        "ASSISTANT_TIMEOUT_SECONDS": "timeout_seconds",
        "ASSISTANT_TOP_HITS_LIMIT": "top_hits_limit",
    }
    return _apply_env_overrides(config, env_mapping)


@dataclass
class LoggingConfigDefaults:
    """Default values for logging configuration."""

    root_level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    module_levels: dict[str, str] = field(
        default_factory=lambda: {
            "metabolite_assistant.core": "INFO",
            "metabolite_assistant.ui": "INFO",
        }
    )
    reduce_noise: dict[str, str] = field(default_factory=lambda: {"streamlit": "WARNING", "urllib3": "WARNING"})

    def to_dict(self) -> dict[str, Any]:
        """Convert dataclass to dictionary (level maps copied)."""
        return {
            "root_level": self.root_level,
            "format": self.format,
            "module_levels": dict(self.module_levels),
            "reduce_noise": dict(self.reduce_noise),
        }


LEVEL_MAP_KEYS = ("module_levels", "reduce_noise")


def load_logging_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load logging config from YAML.

    Scalar keys go through the same coercing merge as the assistant config. The
    per-logger level maps are merged key by key over the defaults, so a YAML file
    only needs to list the loggers it changes.

    Args:
        config_path: Optional path to config file. If None, uses config/logging.yaml.

    Returns:
        dict with keys:
        - root_level: str
        - format: str
        - module_levels: dict[str, str]
        - reduce_noise: dict[str, str]

    Raises:
        ValueError: If YAML is invalid
    """
    if config_path is None:
        config_path = _default_config_path("logging.yaml")

    defaults = LoggingConfigDefaults().to_dict()
    yaml_data = _read_yaml(config_path)

    scalar_defaults = {key: value for key, value in defaults.items() if key not in LEVEL_MAP_KEYS}
    scalar_yaml = {key: value for key, value in yaml_data.items() if key not in LEVEL_MAP_KEYS}
    config = _merge_yaml(scalar_defaults, scalar_yaml, config_path)

    for key in LEVEL_MAP_KEYS:
        levels = defaults[key]
        overrides = yaml_data.get(key)
        if isinstance(overrides, dict):
            levels.update({str(name): str(level) for name, level in overrides.items()})
        elif overrides is not None:
            logger.warning(f"Ignoring {key} in {config_path}: expected a mapping of logger name to level")
        config[key] = levels

    return config
