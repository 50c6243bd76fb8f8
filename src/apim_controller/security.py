"""Secretless credential acquisition.

The controller authenticates to Azure with a Managed Identity only. Secret
material in the environment (client secrets, certificates, passwords) is
treated as a configuration fault and blocks startup.
"""

from __future__ import annotations

import logging
import os

from azure.identity import ManagedIdentityCredential

logger = logging.getLogger(__name__)

# Environment variables that indicate credential leakage
FORBIDDEN_CREDENTIAL_ENV_VARS: tuple[str, ...] = (
    "AZURE_CLIENT_SECRET",
    "AZURE_CLIENT_CERTIFICATE_PATH",
    "AZURE_CLIENT_CERTIFICATE_PASSWORD",
    "AZURE_USERNAME",
    "AZURE_PASSWORD",
)


class SecretlessViolationError(Exception):
    """Raised when secret credentials are present in the environment."""

    pass


def enforce_secretless_architecture() -> None:
    """Fail if any credential secret is present in the environment.

    Raises:
        SecretlessViolationError: Naming the first offending variable.
    """
    for env_var in FORBIDDEN_CREDENTIAL_ENV_VARS:
        if os.environ.get(env_var):
            logger.critical(
                "Credential secret detected in environment",
                extra={"env_var": env_var, "action": "startup_blocked"},
            )
            raise SecretlessViolationError(
                f"{env_var} is set. Only Managed Identity authentication is allowed; "
                "remove credential secrets from the environment."
            )


def get_managed_identity_credential(client_id: str | None = None) -> ManagedIdentityCredential:
    """Return a ManagedIdentityCredential after verifying the environment.

    Args:
        client_id: Client ID of a user-assigned identity. None selects the
            system-assigned identity.

    Raises:
        SecretlessViolationError: If credential environment variables are present.
    """
    enforce_secretless_architecture()

    if client_id:
        logger.info(
            "Using user-assigned managed identity",
            extra={"client_id": client_id[:8] + "..." if len(client_id) > 8 else client_id},
        )
        return ManagedIdentityCredential(client_id=client_id)

    logger.info("Using system-assigned managed identity")
    return ManagedIdentityCredential()
