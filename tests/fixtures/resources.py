"""Test fixtures for resource identifiers, stores and confirmation gates."""

from __future__ import annotations

from typing import Optional, Union

from azdelete.arm.store import (
    DeleteAck,
    DeleteFailed,
    DeleteResult,
    Found,
    LookupResult,
    NotFound,
    Resource,
    ResourceStore,
)
from azdelete.deletion.confirmation import ConfirmationGate
from azdelete.models.resource_id import ResourceIdentifier

SUBSCRIPTION_ID = "11111111-1111-1111-1111-111111111111"


def make_resource_id(
    name: str = "acct",
    resource_group: str = "rg",
    namespace: str = "Microsoft.Storage",
    type_name: str = "storageAccounts",
    subscription_id: str = SUBSCRIPTION_ID,
) -> str:
    """Build a well-formed resource identifier string."""
    return (
        f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
        f"/providers/{namespace}/{type_name}/{name}"
    )


def make_identifier(name: str = "acct", **kwargs) -> ResourceIdentifier:
    """Build a parsed resource identifier."""
    return ResourceIdentifier.parse(make_resource_id(name, **kwargs))


def make_resource(resource_id: ResourceIdentifier) -> Resource:
    """Build the lookup view for an identifier."""
    return Resource(
        resource_id=resource_id,
        name=resource_id.name,
        resource_type=resource_id.resource_type,
        location="eastus",
    )


class FakeResourceStore(ResourceStore):
    """In-memory resource store.

    Resources listed in ``existing`` are found by lookup and removed by a
    successful delete. Per-resource scripted results override that behaviour:
    ``delete_results`` holds a list of DeleteResult (or exceptions to raise)
    consumed one per call, ``lookup_results`` does the same for lookup, and
    ``sticky`` names resources that survive delete.
    """

    def __init__(
        self,
        existing: Optional[list[ResourceIdentifier]] = None,
        delete_results: Optional[dict[str, list[Union[DeleteResult, Exception]]]] = None,
        sticky: Optional[set[str]] = None,
        lookup_results: Optional[dict[str, list[Union[LookupResult, Exception]]]] = None,
    ) -> None:
        self.existing = {r.raw for r in existing or []}
        self.delete_results = {k: list(v) for k, v in (delete_results or {}).items()}
        self.lookup_results = {k: list(v) for k, v in (lookup_results or {}).items()}
        self.sticky = sticky or set()
        self.lookup_calls: list[str] = []
        self.delete_calls: list[str] = []

    def lookup(self, resource_id: ResourceIdentifier) -> LookupResult:
        self.lookup_calls.append(resource_id.raw)

        scripted = self.lookup_results.get(resource_id.raw)
        if scripted:
            result = scripted.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        if resource_id.raw in self.existing:
            return Found(make_resource(resource_id))
        return NotFound(resource_id)

    def delete(self, resource_id: ResourceIdentifier) -> DeleteResult:
        self.delete_calls.append(resource_id.raw)

        scripted = self.delete_results.get(resource_id.raw)
        if scripted:
            result = scripted.pop(0)
            if isinstance(result, Exception):
                raise result
            if isinstance(result, DeleteFailed):
                return result

        if resource_id.raw not in self.sticky:
            self.existing.discard(resource_id.raw)
        return DeleteAck(resource_id)


class ScriptedConfirmationGate(ConfirmationGate):
    """Confirmation gate answering from a fixed list of responses."""

    def __init__(self, responses: Optional[list[str]] = None, confirmation_token: str = "DELETE") -> None:
        super().__init__(confirmation_token)
        self.responses = list(responses or [])
        self.prompts: list[str] = []

    def ask(self, message: str) -> str:
        self.prompts.append(message)
        return self.responses.pop(0) if self.responses else ""
