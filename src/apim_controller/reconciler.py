"""Reconciliation of API Management tags against Azure.

Each public operation is one sequential unit of 1-3 remote calls:

    create_or_update: [get (new tags only)] -> create_or_update -> get
    read:             get
    delete:           delete

NOT-FOUND HANDLING:
A 404 from the management API is a control-flow signal, not an error, and each
operation interprets it differently:
- create guard: not-found means the name is free, proceed
- read: not-found means the tag was deleted out-of-band, report it missing
- delete: not-found means the desired end state already holds

Any other failure is wrapped in RemoteCallFailedError with the operation name
and the tag's coordinates. The reconciler holds no state between calls and
performs no retries; callers serialize operations per tag.

SECURITY: Timeouts are enforced on every Azure API call to prevent indefinite hangs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from azure.core.exceptions import AzureError

from .client import TagClient, is_not_found
from .config import (
    DEFAULT_CREATE_TIMEOUT_SECONDS,
    DEFAULT_DELETE_TIMEOUT_SECONDS,
    DEFAULT_READ_TIMEOUT_SECONDS,
    DEFAULT_UPDATE_TIMEOUT_SECONDS,
    Config,
)
from .models import RemoteTag, TagSpec
from .resource_id import TagId

logger = logging.getLogger(__name__)

# Operation names used in errors and logs
OP_CHECK_EXISTING = "checking for presence of existing"
OP_CREATE_OR_UPDATE = "creating or updating"
OP_RETRIEVE = "retrieving"
OP_READ = "reading"
OP_DELETE = "deleting"


class ReconcileError(Exception):
    """Base class for reconciliation failures."""

    pass


class AlreadyExistsError(ReconcileError):
    """Raised when creating a tag that already exists remotely.

    The tag must be imported (adopted by passing its ID as the existing handle)
    before it can be managed. This is not transient and must not be retried.
    """

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(
            f"A resource with the ID {resource_id!r} already exists - to be managed "
            "this resource needs to be imported"
        )


class RemoteCallFailedError(ReconcileError):
    """Raised when a remote call fails for any reason other than not-found."""

    def __init__(self, operation: str, tag_id: TagId, detail: str) -> None:
        self.operation = operation
        self.tag_id = tag_id
        super().__init__(
            f"{operation} Tag {tag_id.name!r} (API Management Service "
            f"{tag_id.service_name!r} / Resource Group {tag_id.resource_group!r}): {detail}"
        )


class EmptyIdentityError(ReconcileError):
    """Raised when the service accepted a write but returned no usable ID."""

    def __init__(self, tag_id: TagId) -> None:
        self.tag_id = tag_id
        super().__init__(
            f"Cannot read ID for Tag {tag_id.name!r} (API Management Service "
            f"{tag_id.service_name!r} / Resource Group {tag_id.resource_group!r})"
        )


class HandleMismatchError(ReconcileError):
    """Raised when a handle does not address the tag this call acts on.

    Either the handle belongs to another subscription than the one the client
    is scoped to, or an update handle names a different tag than the spec.
    """

    def __init__(self, handle: str, reason: str) -> None:
        self.handle = handle
        super().__init__(f"Handle {handle!r} cannot be used here: {reason}")


@dataclass(frozen=True)
class OperationTimeouts:
    """Default per-operation deadlines in seconds."""

    create: float = DEFAULT_CREATE_TIMEOUT_SECONDS
    read: float = DEFAULT_READ_TIMEOUT_SECONDS
    update: float = DEFAULT_UPDATE_TIMEOUT_SECONDS
    delete: float = DEFAULT_DELETE_TIMEOUT_SECONDS

    @classmethod
    def from_config(cls, config: Config) -> OperationTimeouts:
        return cls(
            create=config.create_timeout_seconds,
            read=config.read_timeout_seconds,
            update=config.update_timeout_seconds,
            delete=config.delete_timeout_seconds,
        )


class TagReconciler:
    """Drives API Management tags towards their desired state.

    Args:
        client: Remote tag capability (injected, never global).
        subscription_id: Subscription the client is scoped to.
        timeouts: Default deadlines; each call may override them.
    """

    def __init__(
        self,
        client: TagClient,
        subscription_id: str,
        timeouts: OperationTimeouts | None = None,
    ) -> None:
        self._client = client
        self._subscription_id = subscription_id
        self._timeouts = timeouts or OperationTimeouts()

    @property
    def subscription_id(self) -> str:
        return self._subscription_id

    async def create_or_update(
        self,
        spec: TagSpec,
        existing_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> TagId:
        """Create or update a tag and return its authoritative identity.

        Args:
            spec: Desired state.
            existing_id: Durable handle from a previous successful apply.
                None means the tag is new and the import guard runs first.
            timeout_seconds: Deadline for each remote call.

        Returns:
            TagId parsed from the ID the service reports after the write.

        Raises:
            MalformedIdentifierError: If existing_id or the reported ID is malformed.
            HandleMismatchError: If existing_id does not address the spec's tag.
            AlreadyExistsError: If a new tag collides with an existing one.
            RemoteCallFailedError: If any remote call fails.
            EmptyIdentityError: If the service reports no ID after the write.
        """
        is_new = existing_id is None
        tag_id = spec.tag_id(self._subscription_id)
        if not is_new:
            handle_id = self._resolve_handle(existing_id)
            if handle_id != tag_id:
                # Updates skip the import guard
                raise HandleMismatchError(existing_id, f"it does not address {tag_id}")

        if timeout_seconds is None:
            timeout_seconds = self._timeouts.create if is_new else self._timeouts.update

        if is_new:
            existing, found = await self._invoke(
                OP_CHECK_EXISTING,
                tag_id,
                lambda: self._client.get(tag_id.resource_group, tag_id.service_name, tag_id.name),
                timeout_seconds,
                not_found_ok=True,
            )
            existing_resource_id = getattr(existing, "id", None) if found else None
            if existing_resource_id:
                logger.warning(
                    "Tag already exists, refusing to create",
                    extra={"resource_id": existing_resource_id},
                )
                raise AlreadyExistsError(existing_resource_id)

        logger.info(
            "Applying tag",
            extra={
                "tag": tag_id.name,
                "service_name": tag_id.service_name,
                "resource_group": tag_id.resource_group,
                "new": is_new,
            },
        )
        await self._invoke(
            OP_CREATE_OR_UPDATE,
            tag_id,
            lambda: self._client.create_or_update(
                tag_id.resource_group, tag_id.service_name, tag_id.name, spec.display_name
            ),
            timeout_seconds,
        )

        # The write response is not guaranteed to carry the ID, so confirm with a read
        response, _ = await self._invoke(
            OP_RETRIEVE,
            tag_id,
            lambda: self._client.get(tag_id.resource_group, tag_id.service_name, tag_id.name),
            timeout_seconds,
        )
        resource_id = getattr(response, "id", None)
        if not resource_id:
            raise EmptyIdentityError(tag_id)

        applied = TagId.parse(resource_id)
        logger.info("Tag applied", extra={"resource_id": applied.id()})
        return applied

    async def read(self, handle: str, timeout_seconds: float | None = None) -> RemoteTag:
        """Read the current remote state of a tag.

        Returns:
            RemoteTag; identity is None when the tag no longer exists and the
            caller should drop its handle.

        Raises:
            MalformedIdentifierError: If handle is not a tag ID.
            HandleMismatchError: If handle belongs to another subscription.
            RemoteCallFailedError: If the remote call fails.
        """
        tag_id = self._resolve_handle(handle)

        response, found = await self._invoke(
            OP_READ,
            tag_id,
            lambda: self._client.get(tag_id.resource_group, tag_id.service_name, tag_id.name),
            timeout_seconds if timeout_seconds is not None else self._timeouts.read,
            not_found_ok=True,
        )
        if not found:
            logger.info(
                f"Tag {tag_id.name!r} was not found in API Management Service "
                f"{tag_id.service_name!r} / Resource Group {tag_id.resource_group!r} "
                "- removing from state",
                extra={"resource_id": handle},
            )
            return RemoteTag.missing()

        return RemoteTag(
            identity=tag_id,
            display_name=getattr(response, "display_name", None),
        )

    async def delete(self, handle: str, timeout_seconds: float | None = None) -> None:
        """Delete a tag. Deleting a tag that is already gone succeeds.

        Raises:
            MalformedIdentifierError: If handle is not a tag ID.
            HandleMismatchError: If handle belongs to another subscription.
            RemoteCallFailedError: If the remote call fails.
        """
        tag_id = self._resolve_handle(handle)

        logger.debug(f"Deleting {tag_id}")
        _, found = await self._invoke(
            OP_DELETE,
            tag_id,
            lambda: self._client.delete(tag_id.resource_group, tag_id.service_name, tag_id.name),
            timeout_seconds if timeout_seconds is not None else self._timeouts.delete,
            not_found_ok=True,
        )
        if not found:
            logger.info("Tag already absent, nothing to delete", extra={"resource_id": handle})

    def _resolve_handle(self, handle: str) -> TagId:
        """Parse a handle and check it belongs to the client's subscription.

        Subscription IDs compare case-insensitively; the returned TagId
        carries the reconciler's spelling.
        """
        tag_id = TagId.parse(handle)
        if tag_id.subscription_id.lower() != self._subscription_id.lower():
            raise HandleMismatchError(
                handle,
                f"it belongs to subscription {tag_id.subscription_id!r}, "
                f"not {self._subscription_id!r}",
            )
        return replace(tag_id, subscription_id=self._subscription_id)

    async def _invoke(
        self,
        operation: str,
        tag_id: TagId,
        call: Callable[[], Any],
        timeout_seconds: float,
        *,
        not_found_ok: bool = False,
    ) -> tuple[Any, bool]:
        """Run a blocking client call in the executor under a deadline.

        Args:
            operation: Human-readable operation name for errors and logs.
            tag_id: Tag being addressed, for error context.
            call: Zero-argument callable performing the SDK call.
            timeout_seconds: Maximum time to wait for the call.
            not_found_ok: Report not-found as (None, False) instead of failing.

        Returns:
            Tuple of (response, found).

        Raises:
            RemoteCallFailedError: On timeout or any non-tolerated Azure error.
        """
        loop = asyncio.get_running_loop()
        try:
            response = await asyncio.wait_for(
                loop.run_in_executor(None, call),
                timeout=timeout_seconds,
            )
        except TimeoutError as e:
            logger.error(
                "Azure call timed out",
                extra={
                    "operation": operation,
                    "resource_id": tag_id.id(),
                    "timeout_seconds": timeout_seconds,
                },
            )
            raise RemoteCallFailedError(
                operation, tag_id, f"timed out after {timeout_seconds}s"
            ) from e
        except AzureError as e:
            if not_found_ok and is_not_found(e):
                return None, False
            raise RemoteCallFailedError(operation, tag_id, str(e)) from e

        return response, True
