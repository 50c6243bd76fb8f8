"""Configuration management with validation.

Invalid configuration fails at load time, never halfway through a
reconciliation call.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Per-operation timeouts (seconds), matching the resource provider's documented defaults
DEFAULT_CREATE_TIMEOUT_SECONDS = 30 * 60
DEFAULT_READ_TIMEOUT_SECONDS = 5 * 60
DEFAULT_UPDATE_TIMEOUT_SECONDS = 30 * 60
DEFAULT_DELETE_TIMEOUT_SECONDS = 30 * 60

MIN_TIMEOUT_SECONDS = 1
MAX_TIMEOUT_SECONDS = 2 * 60 * 60

MAX_SPEC_FILE_SIZE_BYTES = 1024 * 1024  # 1MB max spec file

VALID_SUBSCRIPTION_ID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    """Controller configuration loaded from environment variables.

    All fields are validated at construction time.
    """

    subscription_id: str

    # User-assigned managed identity; None selects the system-assigned identity
    client_id: str | None = None

    # Timing
    create_timeout_seconds: int = DEFAULT_CREATE_TIMEOUT_SECONDS
    read_timeout_seconds: int = DEFAULT_READ_TIMEOUT_SECONDS
    update_timeout_seconds: int = DEFAULT_UPDATE_TIMEOUT_SECONDS
    delete_timeout_seconds: int = DEFAULT_DELETE_TIMEOUT_SECONDS

    # Logging
    log_level: str = "INFO"
    json_logging: bool = True

    def __post_init__(self) -> None:
        errors: list[str] = []

        if not self.subscription_id:
            errors.append("AZURE_SUBSCRIPTION_ID is required")
        elif not re.match(VALID_SUBSCRIPTION_ID_PATTERN, self.subscription_id.lower()):
            errors.append(f"AZURE_SUBSCRIPTION_ID must be a valid GUID: {self.subscription_id}")

        for env_name, value in (
            ("CREATE_TIMEOUT", self.create_timeout_seconds),
            ("READ_TIMEOUT", self.read_timeout_seconds),
            ("UPDATE_TIMEOUT", self.update_timeout_seconds),
            ("DELETE_TIMEOUT", self.delete_timeout_seconds),
        ):
            if not (MIN_TIMEOUT_SECONDS <= value <= MAX_TIMEOUT_SECONDS):
                errors.append(
                    f"{env_name} must be between {MIN_TIMEOUT_SECONDS} "
                    f"and {MAX_TIMEOUT_SECONDS} seconds"
                )

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {list(VALID_LOG_LEVELS)}: {self.log_level}")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Environment Variables:
            AZURE_SUBSCRIPTION_ID: Subscription containing the API Management services
            AZURE_CLIENT_ID: Optional user-assigned managed identity client ID
            CREATE_TIMEOUT: Seconds allowed per create call (default: 1800)
            READ_TIMEOUT: Seconds allowed per read call (default: 300)
            UPDATE_TIMEOUT: Seconds allowed per update call (default: 1800)
            DELETE_TIMEOUT: Seconds allowed per delete call (default: 1800)
            LOG_LEVEL: Root log level (default: INFO)
            ENABLE_JSON_LOGGING: JSON logs to stderr (default: true)
        """

        def get_int(key: str, default: int) -> int:
            value = os.environ.get(key)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        def get_bool(key: str, default: bool) -> bool:
            value = os.environ.get(key, "").lower()
            if not value:
                return default
            return value in ("true", "1", "yes")

        return cls(
            subscription_id=os.environ.get("AZURE_SUBSCRIPTION_ID", ""),
            client_id=os.environ.get("AZURE_CLIENT_ID") or None,
            create_timeout_seconds=get_int("CREATE_TIMEOUT", DEFAULT_CREATE_TIMEOUT_SECONDS),
            read_timeout_seconds=get_int("READ_TIMEOUT", DEFAULT_READ_TIMEOUT_SECONDS),
            update_timeout_seconds=get_int("UPDATE_TIMEOUT", DEFAULT_UPDATE_TIMEOUT_SECONDS),
            delete_timeout_seconds=get_int("DELETE_TIMEOUT", DEFAULT_DELETE_TIMEOUT_SECONDS),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            json_logging=get_bool("ENABLE_JSON_LOGGING", True),
        )
