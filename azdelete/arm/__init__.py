"""Azure Resource Manager integration.

Classes:
    ResourceStore: Capability interface used by the deletion engine
    ArmResourceStore: ResourceStore backed by azure-mgmt-resource
    SubscriptionContext: Active subscription identity
"""

from __future__ import annotations

from azdelete.arm.credentials import SubscriptionContext
from azdelete.arm.store import ArmResourceStore, ResourceStore

__all__ = [
    "ResourceStore",
    "ArmResourceStore",
    "SubscriptionContext",
]
