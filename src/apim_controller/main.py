"""Process wiring for the API Management tag controller.

Sets up structured logging and builds a TagReconciler from configuration,
with a Managed Identity credential and the Azure SDK tag client.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from .client import ApiManagementTagClient
from .config import Config
from .reconciler import OperationTimeouts, TagReconciler
from .security import get_managed_identity_credential

LOG_HANDLER_NAME = "apim-controller"

# LogRecord attributes that are not user-supplied extra fields
_RESERVED_RECORD_KEYS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    )
)


class JsonFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(config: Config) -> None:
    """Configure root logging to stderr, as JSON unless disabled."""
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(LOG_HANDLER_NAME)
    if config.json_logging:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root_logger = logging.getLogger()
    # Replace the handler from an earlier call instead of stacking another one
    for existing in list(root_logger.handlers):
        if existing.get_name() == LOG_HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(config.log_level_value)

    # Reduce noise from Azure SDK
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_reconciler(config: Config) -> TagReconciler:
    """Create a reconciler talking to Azure with the configured identity.

    Raises:
        SecretlessViolationError: If credential secrets are in the environment.
    """
    credential = get_managed_identity_credential(config.client_id)
    client = ApiManagementTagClient(
        credential=credential,
        subscription_id=config.subscription_id,
    )
    return TagReconciler(
        client=client,
        subscription_id=config.subscription_id,
        timeouts=OperationTimeouts.from_config(config),
    )
