"""Azure Resource Manager client factory."""

from __future__ import annotations

from typing import Any, Optional

from azure.identity import DefaultAzureCredential
from azure.mgmt.resource import ResourceManagementClient, SubscriptionClient


def create_credential(exclude_interactive: bool = True) -> Any:
    """Create the credential chain used for all ARM calls.

    Args:
        exclude_interactive: Skip the interactive browser credential (default: True)

    Returns:
        DefaultAzureCredential instance
    """
    return DefaultAzureCredential(exclude_interactive_browser_credential=exclude_interactive)


def create_resource_client(subscription_id: str, credential: Optional[Any] = None) -> ResourceManagementClient:
    """Create a ResourceManagementClient bound to a subscription.

    Args:
        subscription_id: Subscription GUID
        credential: Azure credential (default: DefaultAzureCredential)

    Returns:
        ResourceManagementClient instance
    """
    return ResourceManagementClient(credential or create_credential(), subscription_id)


def create_subscription_client(credential: Optional[Any] = None) -> SubscriptionClient:
    """Create a SubscriptionClient for identity lookups."""
    return SubscriptionClient(credential or create_credential())
