"""Resource store capability.

Lookup and delete of ARM resources, returning explicit result variants so the
deletion engine branches on data rather than on exception types.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError

from azdelete.models.resource_id import ResourceIdentifier

logger = logging.getLogger(__name__)

# HTTP statuses worth reporting as transient (throttling, timeouts, server errors)
TRANSIENT_STATUS_CODES = {408, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class Resource:
    """Read-only view of a resource returned by lookup.

    Attributes:
        resource_id: Identifier that was looked up
        name: Display name
        resource_type: Resource type (e.g., "Microsoft.Storage/storageAccounts")
        location: Azure region (optional)
    """

    resource_id: ResourceIdentifier
    name: str
    resource_type: str
    location: Optional[str] = None


@dataclass(frozen=True)
class Found:
    resource: Resource


@dataclass(frozen=True)
class NotFound:
    resource_id: ResourceIdentifier


@dataclass(frozen=True)
class LookupFailed:
    """Lookup could not determine whether the resource exists."""

    resource_id: ResourceIdentifier
    message: str


@dataclass(frozen=True)
class DeleteAck:
    resource_id: ResourceIdentifier


@dataclass(frozen=True)
class DeleteFailed:
    """Delete call failed.

    Attributes:
        resource_id: Identifier that was being deleted
        message: Provider error message
        transient: True for throttling, timeout and server-side errors
    """

    resource_id: ResourceIdentifier
    message: str
    transient: bool = False


LookupResult = Union[Found, NotFound, LookupFailed]
DeleteResult = Union[DeleteAck, DeleteFailed]


class ApiVersionError(Exception):
    """Raised when no API version is registered for a resource type."""


class ResourceStore(ABC):
    """Abstract capability for resource lookup and deletion."""

    @abstractmethod
    def lookup(self, resource_id: ResourceIdentifier) -> LookupResult:
        """Look up a resource.

        Args:
            resource_id: Identifier to look up

        Returns:
            Found, NotFound, or LookupFailed
        """
        pass

    @abstractmethod
    def delete(self, resource_id: ResourceIdentifier) -> DeleteResult:
        """Delete a resource.

        Args:
            resource_id: Identifier to delete

        Returns:
            DeleteAck or DeleteFailed
        """
        pass


class ArmResourceStore(ResourceStore):
    """ResourceStore backed by the ARM generic resources API.

    Resolves the API version for each provider/type pair from the provider
    registration and caches it for the lifetime of the store.

    Attributes:
        client: ResourceManagementClient
        wait_for_completion: Block on the delete poller until ARM reports completion
    """

    def __init__(self, client, wait_for_completion: bool = True) -> None:
        """Initialize ARM resource store.

        Args:
            client: ResourceManagementClient instance
            wait_for_completion: Wait for long-running deletes (default: True)
        """
        self.client = client
        self.wait_for_completion = wait_for_completion
        self._api_versions: dict[str, str] = {}

    def lookup(self, resource_id: ResourceIdentifier) -> LookupResult:
        try:
            api_version = self.resolve_api_version(resource_id)
            generic = self.client.resources.get_by_id(resource_id.raw, api_version)
        except ResourceNotFoundError:
            return NotFound(resource_id)
        except HttpResponseError as e:
            if e.status_code == 404:
                return NotFound(resource_id)
            logger.debug(f"Lookup failed for {resource_id}: {e}")
            return LookupFailed(resource_id, _error_message(e))
        except (AzureError, ApiVersionError) as e:
            logger.debug(f"Lookup failed for {resource_id}: {e}")
            return LookupFailed(resource_id, str(e))

        return Found(
            Resource(
                resource_id=resource_id,
                name=generic.name or resource_id.name,
                resource_type=generic.type or resource_id.resource_type,
                location=generic.location,
            )
        )

    def delete(self, resource_id: ResourceIdentifier) -> DeleteResult:
        try:
            api_version = self.resolve_api_version(resource_id)
            poller = self.client.resources.begin_delete_by_id(resource_id.raw, api_version)
            if self.wait_for_completion:
                poller.result()
        except HttpResponseError as e:
            return DeleteFailed(resource_id, _error_message(e), transient=e.status_code in TRANSIENT_STATUS_CODES)
        except AzureError as e:
            return DeleteFailed(resource_id, str(e), transient=True)
        except ApiVersionError as e:
            return DeleteFailed(resource_id, str(e))

        return DeleteAck(resource_id)

    def resolve_api_version(self, resource_id: ResourceIdentifier) -> str:
        """Resolve the API version for a resource's provider and type.

        Prefers the newest stable version, falling back to the newest preview.

        Raises:
            ApiVersionError: If the provider does not register the resource type
            HttpResponseError: If the provider query fails
        """
        key = resource_id.resource_type.lower()
        if key in self._api_versions:
            return self._api_versions[key]

        provider = self.client.providers.get(resource_id.namespace)
        versions: list[str] = []
        for provider_type in provider.resource_types or []:
            if (provider_type.resource_type or "").lower() == resource_id.type_name.lower():
                versions = list(provider_type.api_versions or [])
                break

        if not versions:
            raise ApiVersionError(f"No API version registered for {resource_id.resource_type}")

        stable = [v for v in versions if "preview" not in v.lower()]
        api_version = sorted(stable or versions, reverse=True)[0]
        self._api_versions[key] = api_version
        return api_version


def _error_message(error: HttpResponseError) -> str:
    code = error.error.code if error.error else None
    message = error.message or str(error)
    return f"{code}: {message}" if code else message
