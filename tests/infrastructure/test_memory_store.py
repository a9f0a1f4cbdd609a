"""
Tests for the in-memory resource store.
"""
import pytest

from devportal.core.errors import ErrorCode
from devportal.core.exceptions import ConflictError, NotFoundError
from devportal.domain.interfaces.store import ResourceKind, matches_filters
from devportal.domain.schemas import RequestStatus
from devportal.infrastructure.store import InMemoryResourceStore
from tests.fixtures.access import AccessTestData, make_product, make_request

data = AccessTestData


class TestInMemoryResourceStore:
    """Test versioning and conflict detection."""

    @pytest.mark.asyncio
    async def test_create_assigns_version_one(self, store):
        created = await store.create(ResourceKind.API_PRODUCT, make_product(data.PAYMENTS, data.BOB.id))

        assert created.resource_version == 1
        assert await store.get(ResourceKind.API_PRODUCT, "default", "payments") == created

    @pytest.mark.asyncio
    async def test_create_duplicate_conflicts(self, store):
        product = make_product(data.PAYMENTS, data.BOB.id)
        await store.create(ResourceKind.API_PRODUCT, product)

        with pytest.raises(ConflictError) as exc_info:
            await store.create(ResourceKind.API_PRODUCT, product)

        assert exc_info.value.code == ErrorCode.BUS_RESOURCE_ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_update_checks_expected_version(self, store):
        # Arrange
        created = await store.create(ResourceKind.ACCESS_REQUEST, make_request("r-1", data.PAYMENTS, data.ALICE))
        approved = created.model_copy(update={"status": RequestStatus.APPROVED})

        # Act
        updated = await store.update(ResourceKind.ACCESS_REQUEST, approved, expected_version=1)

        # Assert
        assert updated.resource_version == 2
        assert updated.status == RequestStatus.APPROVED
        with pytest.raises(ConflictError):
            await store.update(ResourceKind.ACCESS_REQUEST, approved, expected_version=1)

    @pytest.mark.asyncio
    async def test_update_missing_resource(self, store):
        with pytest.raises(NotFoundError):
            await store.update(
                ResourceKind.ACCESS_REQUEST, make_request("ghost", data.PAYMENTS, data.ALICE), expected_version=1
            )

    @pytest.mark.asyncio
    async def test_delete_reports_absence(self, store):
        await store.create(ResourceKind.ACCESS_REQUEST, make_request("r-1", data.PAYMENTS, data.ALICE))

        assert await store.delete(ResourceKind.ACCESS_REQUEST, "default", "r-1") is True
        assert await store.delete(ResourceKind.ACCESS_REQUEST, "default", "r-1") is False

    @pytest.mark.asyncio
    async def test_returned_objects_are_copies(self, store):
        """Test mutating a returned object does not change the stored one."""
        created = await store.create(ResourceKind.API_PRODUCT, make_product(data.PAYMENTS, data.BOB.id))
        created.tags.append("mutated")

        stored = await store.get(ResourceKind.API_PRODUCT, "default", "payments")
        assert stored.tags == []

    @pytest.mark.asyncio
    async def test_list_filters_and_kinds(self, store):
        await store.create(ResourceKind.API_PRODUCT, make_product(data.PAYMENTS, data.BOB.id))
        await store.create(ResourceKind.ACCESS_REQUEST, make_request("r-1", data.PAYMENTS, data.ALICE))
        await store.create(ResourceKind.ACCESS_REQUEST, make_request("r-2", data.WEATHER, data.CAROL))

        mine = await store.list(ResourceKind.ACCESS_REQUEST, {"requested_by.user_id": data.ALICE.id})
        pending = await store.list(ResourceKind.ACCESS_REQUEST, {"status": RequestStatus.PENDING})

        assert [r.name for r in mine] == ["r-1"]
        assert [r.name for r in pending] == ["r-1", "r-2"]
        assert len(await store.list(ResourceKind.API_PRODUCT)) == 1

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.create(ResourceKind.API_PRODUCT, make_product(data.PAYMENTS, data.BOB.id))

        store.clear()

        assert await store.list(ResourceKind.API_PRODUCT) == []


class TestFilters:
    """Test equality filter matching."""

    def test_enum_and_plain_values_match(self):
        request = make_request("r-1", data.PAYMENTS, data.ALICE)

        assert matches_filters(request, {"status": "Pending"})
        assert matches_filters(request, {"status": RequestStatus.PENDING})
        assert not matches_filters(request, {"status": "Approved"})

    def test_missing_path_does_not_match(self):
        request = make_request("r-1", data.PAYMENTS, data.ALICE)

        assert not matches_filters(request, {"requested_by.team": "payments"})
        assert matches_filters(request, None)
