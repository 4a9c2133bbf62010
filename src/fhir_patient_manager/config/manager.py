"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from fhir_patient_manager.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from fhir_patient_manager.config.schema import Config
from fhir_patient_manager.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "FHIR_PM_"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (FHIR_PM_* prefix, plus FHIR_BASE_URL and PORT)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> base_url = config.fhir.base_url
    """
    # Load .env file if present in project root
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        ) from e


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If JSON is malformed or unreadable
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
            return config_dict
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check file permissions and path"
            ) from e
    else:
        logger.info(
            f"Config file not found: {config_path}. Using default configuration."
        )
        # Return a deep copy of defaults to avoid mutation
        return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides.

    Environment variables follow the pattern: FHIR_PM_<FIELD>
    For example: FHIR_PM_BASE_URL, FHIR_PM_LOG_LEVEL. The unprefixed
    FHIR_BASE_URL and PORT variables are honoured when the prefixed
    ones are absent.

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with environment overrides applied
    """
    # FHIR server section
    if base_url := os.getenv(f"{ENV_PREFIX}BASE_URL") or os.getenv("FHIR_BASE_URL"):
        config_dict.setdefault("fhir", {})["base_url"] = base_url
        logger.debug("Override: base_url from environment")

    if page_size := os.getenv(f"{ENV_PREFIX}PAGE_SIZE"):
        config_dict.setdefault("fhir", {})["page_size"] = _parse_int(
            "PAGE_SIZE", page_size
        )
        logger.debug("Override: page_size from environment")

    # Transport section
    if verify_tls := os.getenv(f"{ENV_PREFIX}VERIFY_TLS"):
        config_dict.setdefault("transport", {})["verify_tls"] = _parse_bool(
            verify_tls
        )
        logger.debug("Override: verify_tls from environment")

    if timeout_connect := os.getenv(f"{ENV_PREFIX}TIMEOUT_CONNECT"):
        config_dict.setdefault("transport", {})["timeout_connect"] = _parse_int(
            "TIMEOUT_CONNECT", timeout_connect
        )
        logger.debug("Override: timeout_connect from environment")

    if timeout_read := os.getenv(f"{ENV_PREFIX}TIMEOUT_READ"):
        config_dict.setdefault("transport", {})["timeout_read"] = _parse_int(
            "TIMEOUT_READ", timeout_read
        )
        logger.debug("Override: timeout_read from environment")

    if max_connections := os.getenv(f"{ENV_PREFIX}MAX_CONNECTIONS"):
        config_dict.setdefault("transport", {})["max_connections"] = _parse_int(
            "MAX_CONNECTIONS", max_connections
        )
        logger.debug("Override: max_connections from environment")

    # Logging section
    if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config_dict.setdefault("logging", {})["level"] = log_level
        logger.debug("Override: log_level from environment")

    if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config_dict.setdefault("logging", {})["log_file"] = log_file
        logger.debug("Override: log_file from environment")

    if redact_pii := os.getenv(f"{ENV_PREFIX}REDACT_PII"):
        config_dict.setdefault("logging", {})["redact_pii"] = _parse_bool(redact_pii)
        logger.debug("Override: redact_pii from environment")

    # API section
    if api_host := os.getenv(f"{ENV_PREFIX}API_HOST"):
        config_dict.setdefault("api", {})["host"] = api_host
        logger.debug("Override: api host from environment")

    if api_port := os.getenv(f"{ENV_PREFIX}API_PORT") or os.getenv("PORT"):
        config_dict.setdefault("api", {})["port"] = _parse_int("API_PORT", api_port)
        logger.debug("Override: api port from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string.

    Args:
        value: String value to parse (case-insensitive)

    Returns:
        Boolean value
    """
    return value.lower() in ("true", "1", "yes", "on")


def _parse_int(name: str, value: str) -> int:
    """Parse integer environment value.

    Raises:
        ConfigurationError: If value is not an integer
    """
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {ENV_PREFIX}{name}: {value!r}. Must be an integer."
        ) from e

