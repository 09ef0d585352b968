"""Subscription identity resolution.

Answers "who am I and which subscription am I operating on" before any input
is read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError
from azure.identity import CredentialUnavailableError

from azdelete.arm.client import create_subscription_client

logger = logging.getLogger(__name__)


class CredentialValidationError(Exception):
    """Raised when no authenticated subscription context is available."""


@dataclass(frozen=True)
class SubscriptionContext:
    """Active subscription identity.

    Attributes:
        subscription_id: Subscription GUID
        subscription_name: Subscription display name
        tenant_id: Azure AD tenant (optional)
    """

    subscription_id: str
    subscription_name: str
    tenant_id: Optional[str] = None


def get_current_identity(subscription_id: Optional[str] = None, credential: Optional[Any] = None) -> SubscriptionContext:
    """Resolve the active subscription for the current credentials.

    When no subscription is requested, the first enabled subscription visible
    to the credential is used.

    Args:
        subscription_id: Subscription to use (optional)
        credential: Azure credential (default: DefaultAzureCredential)

    Returns:
        SubscriptionContext for the active subscription

    Raises:
        CredentialValidationError: If not authenticated or no subscription is accessible
    """
    client = create_subscription_client(credential)

    try:
        if subscription_id:
            subscription = client.subscriptions.get(subscription_id)
        else:
            subscription = next(
                (s for s in client.subscriptions.list() if _is_enabled(s)),
                None,
            )
    except (ClientAuthenticationError, CredentialUnavailableError) as e:
        raise CredentialValidationError(f"Not authenticated to Azure: {e}") from e
    except HttpResponseError as e:
        raise CredentialValidationError(f"Unable to read subscription: {e.message}") from e

    if subscription is None:
        raise CredentialValidationError("No enabled subscription is accessible with the current credentials")

    context = SubscriptionContext(
        subscription_id=subscription.subscription_id,
        subscription_name=subscription.display_name,
        tenant_id=getattr(subscription, "tenant_id", None),
    )
    logger.debug(f"Using subscription {context.subscription_name} ({context.subscription_id})")
    return context


def _is_enabled(subscription: Any) -> bool:
    # state is a SubscriptionState enum on real models
    state = getattr(subscription.state, "value", subscription.state)
    return str(state or "").lower() == "enabled"
