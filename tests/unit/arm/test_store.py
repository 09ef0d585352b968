"""Tests for ArmResourceStore class.

Test coverage for ARM lookup/delete result mapping and API version resolution.
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError, ServiceRequestError

from azdelete.arm.store import (
    ApiVersionError,
    ArmResourceStore,
    DeleteAck,
    DeleteFailed,
    Found,
    LookupFailed,
    NotFound,
)
from tests.fixtures.resources import make_identifier


def _http_error(status_code: int, message: str = "error") -> HttpResponseError:
    error = HttpResponseError(message=message)
    error.status_code = status_code
    return error


def _provider(*resource_types: tuple[str, list[str]]) -> Mock:
    provider = Mock()
    provider.resource_types = []
    for name, versions in resource_types:
        provider_type = Mock()
        provider_type.resource_type = name
        provider_type.api_versions = versions
        provider.resource_types.append(provider_type)
    return provider


@pytest.fixture
def client() -> Mock:
    client = Mock()
    client.providers.get.return_value = _provider(
        ("storageAccounts", ["2023-05-01-preview", "2023-01-01", "2022-09-01"]),
        ("storageAccounts/blobServices", ["2023-01-01"]),
    )
    generic = Mock()
    generic.name = "acct"
    generic.type = "Microsoft.Storage/storageAccounts"
    generic.location = "eastus"
    client.resources.get_by_id.return_value = generic
    return client


class TestApiVersionResolution:
    """Test suite for API version resolution."""

    def test_prefers_newest_stable(self, client: Mock) -> None:
        """Test preview versions are skipped when a stable one exists."""
        store = ArmResourceStore(client)

        assert store.resolve_api_version(make_identifier()) == "2023-01-01"
        client.providers.get.assert_called_once_with("Microsoft.Storage")

    def test_falls_back_to_preview(self, client: Mock) -> None:
        """Test preview-only types use the newest preview version."""
        client.providers.get.return_value = _provider(
            ("storageAccounts", ["2021-01-01-preview", "2024-01-01-preview"]),
        )
        store = ArmResourceStore(client)

        assert store.resolve_api_version(make_identifier()) == "2024-01-01-preview"

    def test_cached_per_type(self, client: Mock) -> None:
        """Test the provider is queried once per resource type."""
        store = ArmResourceStore(client)

        store.resolve_api_version(make_identifier("a"))
        store.resolve_api_version(make_identifier("b"))

        assert client.providers.get.call_count == 1

    def test_unknown_type(self, client: Mock) -> None:
        """Test unregistered types raise ApiVersionError."""
        store = ArmResourceStore(client)

        with pytest.raises(ApiVersionError, match="No API version registered"):
            store.resolve_api_version(make_identifier(type_name="unknownThings"))


class TestArmResourceStoreLookup:
    """Test suite for ArmResourceStore.lookup."""

    def test_found(self, client: Mock) -> None:
        """Test an existing resource maps to Found."""
        rid = make_identifier("acct")

        result = ArmResourceStore(client).lookup(rid)

        assert isinstance(result, Found)
        assert result.resource.name == "acct"
        assert result.resource.resource_type == "Microsoft.Storage/storageAccounts"
        assert result.resource.location == "eastus"
        client.resources.get_by_id.assert_called_once_with(rid.raw, "2023-01-01")

    def test_not_found(self, client: Mock) -> None:
        """Test ResourceNotFoundError maps to NotFound."""
        client.resources.get_by_id.side_effect = ResourceNotFoundError(message="gone")

        assert isinstance(ArmResourceStore(client).lookup(make_identifier()), NotFound)

    def test_http_404_is_not_found(self, client: Mock) -> None:
        """Test a bare 404 also maps to NotFound."""
        client.resources.get_by_id.side_effect = _http_error(404)

        assert isinstance(ArmResourceStore(client).lookup(make_identifier()), NotFound)

    def test_throttled_lookup_fails(self, client: Mock) -> None:
        """Test other HTTP errors map to LookupFailed."""
        client.resources.get_by_id.side_effect = _http_error(429, "Too many requests")

        result = ArmResourceStore(client).lookup(make_identifier())

        assert isinstance(result, LookupFailed)
        assert "Too many requests" in result.message

    def test_unresolvable_type_fails(self, client: Mock) -> None:
        """Test an unregistered type maps to LookupFailed."""
        result = ArmResourceStore(client).lookup(make_identifier(type_name="unknownThings"))

        assert isinstance(result, LookupFailed)
        client.resources.get_by_id.assert_not_called()


class TestArmResourceStoreDelete:
    """Test suite for ArmResourceStore.delete."""

    def test_delete_waits_for_poller(self, client: Mock) -> None:
        """Test delete starts the long-running operation and waits on it."""
        rid = make_identifier()
        poller = Mock()
        client.resources.begin_delete_by_id.return_value = poller

        result = ArmResourceStore(client).delete(rid)

        assert result == DeleteAck(rid)
        client.resources.begin_delete_by_id.assert_called_once_with(rid.raw, "2023-01-01")
        poller.result.assert_called_once()

    def test_delete_without_waiting(self, client: Mock) -> None:
        """Test the poller is not awaited when waiting is disabled."""
        poller = Mock()
        client.resources.begin_delete_by_id.return_value = poller

        ArmResourceStore(client, wait_for_completion=False).delete(make_identifier())

        poller.result.assert_not_called()

    @pytest.mark.parametrize("status_code,transient", [(429, True), (503, True), (403, False), (409, False)])
    def test_http_errors(self, client: Mock, status_code: int, transient: bool) -> None:
        """Test HTTP errors map to DeleteFailed with transient classification."""
        client.resources.begin_delete_by_id.side_effect = _http_error(status_code, "nope")

        result = ArmResourceStore(client).delete(make_identifier())

        assert isinstance(result, DeleteFailed)
        assert result.transient is transient
        assert "nope" in result.message

    def test_transport_error_is_transient(self, client: Mock) -> None:
        """Test connection failures are transient."""
        client.resources.begin_delete_by_id.side_effect = ServiceRequestError("connection reset")

        result = ArmResourceStore(client).delete(make_identifier())

        assert isinstance(result, DeleteFailed)
        assert result.transient is True
