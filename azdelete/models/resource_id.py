"""Azure resource identifier model.

Syntactic validation and parsing of ARM resource identifiers of the form
``/subscriptions/{uuid}/resourceGroups/{name}/providers/{namespace}/{type}/{name}``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

RESOURCE_ID_PATTERN = re.compile(
    r"/subscriptions/"
    r"(?P<subscription_id>[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})"
    r"/resourceGroups/(?P<resource_group>[^/]+)"
    r"/providers/(?P<namespace>[^/]+)"
    r"/(?P<type_name>[^/]+)"
    r"/(?P<name>[^/]+)",
    re.IGNORECASE,
)


def is_valid_resource_id(raw: Optional[str]) -> bool:
    """Check whether a string is a well-formed resource identifier.

    Purely syntactic: the subscription and resource group are not checked
    for existence. Empty or whitespace-only input is never valid.

    Args:
        raw: Candidate identifier string

    Returns:
        True if the string matches the identifier pattern
    """
    if not raw or not raw.strip():
        return False
    return RESOURCE_ID_PATTERN.fullmatch(raw) is not None


@dataclass(frozen=True)
class ResourceIdentifier:
    """Parsed, immutable resource identifier.

    Attributes:
        raw: Identifier exactly as supplied
        subscription_id: Subscription GUID
        resource_group: Resource group name
        namespace: Resource provider namespace (e.g., "Microsoft.Storage")
        type_name: Resource type within the namespace (e.g., "storageAccounts")
        name: Resource name
    """

    raw: str
    subscription_id: str
    resource_group: str
    namespace: str
    type_name: str
    name: str

    @classmethod
    def parse(cls, raw: str) -> ResourceIdentifier:
        """Parse an identifier string.

        Raises:
            ValueError: If the string is not a well-formed identifier
        """
        match = RESOURCE_ID_PATTERN.fullmatch(raw or "")
        if not match:
            raise ValueError(f"Invalid resource identifier: {raw!r}")

        return cls(raw=raw, **match.groupdict())

    @property
    def resource_type(self) -> str:
        """Fully-qualified type, e.g. "Microsoft.Storage/storageAccounts"."""
        return f"{self.namespace}/{self.type_name}"

    def __str__(self) -> str:
        return self.raw
