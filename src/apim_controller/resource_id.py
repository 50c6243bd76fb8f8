"""Azure resource ID parsing and rendering for API Management tags.

Resource IDs are persisted as the durable handle of a managed tag, so the
canonical format below is a fixed contract:

    /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.ApiManagement
        /service/{service}/tags/{name}

PARSING MODEL:
1. Segment the path into type/value pairs (keys are case-insensitive because
   ARM returns different casings across API versions).
2. Pop each segment the resource kind understands.
3. Require that nothing is left over. A leftover segment means the ID belongs
   to a different or nested resource kind and must be rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field


API_MANAGEMENT_PROVIDER = "Microsoft.ApiManagement"
SERVICE_SEGMENT = "service"
TAGS_SEGMENT = "tags"

TAG_ID_FORMAT = (
    "/subscriptions/{subscription_id}"
    "/resourceGroups/{resource_group}"
    "/providers/" + API_MANAGEMENT_PROVIDER + "/" + SERVICE_SEGMENT + "/{service_name}"
    "/" + TAGS_SEGMENT + "/{name}"
)


class MalformedIdentifierError(ValueError):
    """Raised when a resource ID cannot be decoded into the expected structure."""

    pass


@dataclass
class ParsedResourceId:
    """Intermediate result of segmenting an ARM resource ID.

    Attributes:
        source: The original input string.
        subscription_id: Value of the ``subscriptions`` segment.
        resource_group: Value of the ``resourceGroups`` segment, if present.
        provider: Value of the ``providers`` segment, if present.
        segments: Remaining segments, keyed by lower-cased type.
    """

    source: str
    subscription_id: str
    resource_group: str | None = None
    provider: str | None = None
    segments: dict[str, tuple[str, str]] = field(default_factory=dict)

    def pop_segment(self, key: str) -> str:
        """Extract and remove a segment value by its type key.

        Raises:
            MalformedIdentifierError: If the segment is absent.
        """
        entry = self.segments.pop(key.lower(), None)
        if entry is None:
            raise MalformedIdentifierError(f"ID was missing the '{key}' element: {self.source!r}")
        return entry[1]

    def validate_no_remaining_segments(self) -> None:
        """Fail if any segment was not consumed by the caller."""
        if not self.segments:
            return
        first_key = next(iter(self.segments.values()))[0]
        raise MalformedIdentifierError(
            f"ID contained more segments than required: {self.source!r} "
            f"(unexpected segment '{first_key}')"
        )


def parse_resource_id(resource_id: str) -> ParsedResourceId:
    """Split an ARM resource ID into its type/value segments.

    Args:
        resource_id: ARM resource ID, e.g. ``/subscriptions/.../tags/foo``.

    Returns:
        ParsedResourceId with well-known segments extracted.

    Raises:
        MalformedIdentifierError: If the input is not a well-formed ID.
    """
    if not resource_id or not resource_id.startswith("/"):
        raise MalformedIdentifierError(f"Cannot parse Azure ID: {resource_id!r}")

    path = resource_id.strip("/")
    components = path.split("/")

    if len(components) % 2 != 0:
        raise MalformedIdentifierError(
            f"The number of path segments is not divisible by 2 in {path!r}"
        )

    segments: dict[str, tuple[str, str]] = {}
    for index in range(0, len(components), 2):
        key = components[index]
        value = components[index + 1]
        if not key or not value:
            raise MalformedIdentifierError(
                f"Key/Value cannot be empty strings. Key: {key!r}, Value: {value!r}"
            )
        lowered = key.lower()
        if lowered in segments:
            raise MalformedIdentifierError(
                f"ID contained the '{key}' element more than once: {resource_id!r}"
            )
        segments[lowered] = (key, value)

    subscription = segments.pop("subscriptions", None)
    resource_group = segments.pop("resourcegroups", None)
    provider = segments.pop("providers", None)

    return ParsedResourceId(
        source=resource_id,
        subscription_id=subscription[1] if subscription else "",
        resource_group=resource_group[1] if resource_group else None,
        provider=provider[1] if provider else None,
        segments=segments,
    )


@dataclass(frozen=True)
class TagId:
    """Identity of a tag within an API Management service."""

    subscription_id: str
    resource_group: str
    service_name: str
    name: str

    def __post_init__(self) -> None:
        for attr in ("subscription_id", "resource_group", "service_name", "name"):
            value = getattr(self, attr)
            if not value:
                raise ValueError(f"TagId.{attr} must not be empty")
            if "/" in value:
                raise ValueError(f"TagId.{attr} must not contain '/': {value!r}")

    def id(self) -> str:
        """Render the canonical ARM resource ID."""
        return TAG_ID_FORMAT.format(
            subscription_id=self.subscription_id,
            resource_group=self.resource_group,
            service_name=self.service_name,
            name=self.name,
        )

    def __str__(self) -> str:
        return (
            f'Tag: (Name "{self.name}" / Service Name "{self.service_name}" '
            f'/ Resource Group "{self.resource_group}")'
        )

    @classmethod
    def parse(cls, resource_id: str) -> TagId:
        """Parse a tag resource ID.

        Raises:
            MalformedIdentifierError: If the ID is not a tag ID.
        """
        parsed = parse_resource_id(resource_id)

        if not parsed.subscription_id:
            raise MalformedIdentifierError(
                f"ID was missing the 'subscriptions' element: {resource_id!r}"
            )
        if not parsed.resource_group:
            raise MalformedIdentifierError(
                f"ID was missing the 'resourceGroups' element: {resource_id!r}"
            )
        if parsed.provider is None:
            raise MalformedIdentifierError(
                f"ID was missing the 'providers' element: {resource_id!r}"
            )
        if parsed.provider.lower() != API_MANAGEMENT_PROVIDER.lower():
            raise MalformedIdentifierError(
                f"ID has provider {parsed.provider!r}, expected {API_MANAGEMENT_PROVIDER!r}: "
                f"{resource_id!r}"
            )

        service_name = parsed.pop_segment(SERVICE_SEGMENT)
        name = parsed.pop_segment(TAGS_SEGMENT)
        parsed.validate_no_remaining_segments()

        return cls(
            subscription_id=parsed.subscription_id,
            resource_group=parsed.resource_group,
            service_name=service_name,
            name=name,
        )


def render_tag_id(tag_id: TagId) -> str:
    """Render a TagId to its canonical string form."""
    return tag_id.id()


def parse_tag_id(resource_id: str) -> TagId:
    """Parse a canonical (or case-varied) tag resource ID."""
    return TagId.parse(resource_id)
