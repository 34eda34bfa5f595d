"""Configuration loading from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Server version this client speaks to
DEFAULT_SUPPORTED_SERVER_VERSION = "0.4.1-beta"


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment.

    This dataclass is frozen (immutable) to prevent accidental modification
    after creation.
    """

    # Hastic server
    datasource_url: str = ""  # e.g., "http://localhost:8000"
    grafana_url: str = ""  # Sent along with new analytic units
    supported_server_version: str = DEFAULT_SUPPORTED_SERVER_VERSION

    # HTTP transport
    request_timeout: float = 10.0  # seconds

    # Polling intervals (seconds between the end of one fetch and the next)
    status_poll_interval: float = 1.0
    detections_poll_interval: float = 5.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    diagnostic_tags: str = ""

    @property
    def datasource_configured(self) -> bool:
        """Check if the Hastic datasource URL is configured."""
        return bool(self.datasource_url)


def _parse_positive_float(value: str, name: str, default: float) -> float:
    """Parse a string as a positive float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive float, or the default if invalid.
    """
    try:
        parsed = float(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %f is not positive, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _parse_non_negative_float(value: str, name: str, default: float) -> float:
    """Parse a string as a non-negative float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed non-negative float, or the default if invalid.
    """
    try:
        parsed = float(value)
        if parsed < 0:
            logging.warning(
                "Invalid %s: %f is negative, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Args:
        value: The log level string to validate.
        default: The default value to use if invalid.

    Returns:
        The validated log level (uppercase), or the default if invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid HASTIC_LOG_LEVEL: '%s' is not valid, using default '%s'. Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def load_config(env_file: Path | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Config object with loaded values.

    Invalid values are logged and replaced by their defaults.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    request_timeout = _parse_positive_float(
        os.getenv("HASTIC_REQUEST_TIMEOUT", "10.0"),
        "HASTIC_REQUEST_TIMEOUT",
        10.0,
    )

    status_poll_interval = _parse_non_negative_float(
        os.getenv("HASTIC_STATUS_POLL_INTERVAL", "1.0"),
        "HASTIC_STATUS_POLL_INTERVAL",
        1.0,
    )
    detections_poll_interval = _parse_non_negative_float(
        os.getenv("HASTIC_DETECTIONS_POLL_INTERVAL", "5.0"),
        "HASTIC_DETECTIONS_POLL_INTERVAL",
        5.0,
    )

    supported_server_version = (
        os.getenv("HASTIC_SUPPORTED_SERVER_VERSION", "").strip()
        or DEFAULT_SUPPORTED_SERVER_VERSION
    )

    log_level = _validate_log_level(os.getenv("HASTIC_LOG_LEVEL", "INFO"))
    log_json = _parse_bool(os.getenv("HASTIC_LOG_JSON", ""))

    return Config(
        datasource_url=os.getenv("HASTIC_DATASOURCE_URL", "").strip().rstrip("/"),
        grafana_url=os.getenv("HASTIC_GRAFANA_URL", "").strip().rstrip("/"),
        supported_server_version=supported_server_version,
        request_timeout=request_timeout,
        status_poll_interval=status_poll_interval,
        detections_poll_interval=detections_poll_interval,
        log_level=log_level,
        log_json=log_json,
        diagnostic_tags=os.getenv("HASTIC_DIAGNOSTIC_TAGS", ""),
    )
