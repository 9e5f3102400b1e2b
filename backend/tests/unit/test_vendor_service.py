"""
Tests for VendorService filtering, stats and updates.
"""

import pytest

from backend.src.schemas.vendor import VendorCreate, VendorUpdate
from backend.src.services.exceptions import NotFoundError
from backend.src.services.vendor_service import VendorService


@pytest.fixture
def vendor_service(test_db_session):
    return VendorService(test_db_session)


@pytest.fixture
def vendors(sample_vendor):
    return {
        "bloom": sample_vendor(),
        "feast": sample_vendor(
            name="Feast Catering",
            categories=["Caterer"],
            services=["buffet", "plated dinner"],
            city="Seattle",
            state="WA",
            is_verified=True,
        ),
        "lens": sample_vendor(
            name="Lens Works",
            categories=["Photographer", "florist"],
            services=["portraits"],
            description="Wedding photography studio",
        ),
        "gone": sample_vendor(name="Closed Shop", is_active=False),
    }


class TestList:

    def test_active_only_by_default(self, vendor_service, vendors):
        page, total = vendor_service.list()
        assert total == 3
        assert [v.name for v in page] == ["Bloom & Co", "Feast Catering", "Lens Works"]

    def test_include_inactive(self, vendor_service, vendors):
        _, total = vendor_service.list(include_inactive=True)
        assert total == 4

    def test_category_is_case_insensitive(self, vendor_service, vendors):
        page, total = vendor_service.list(category="FLORIST")
        assert total == 2
        assert {v.name for v in page} == {"Bloom & Co", "Lens Works"}

    def test_location_filters(self, vendor_service, vendors):
        page, _ = vendor_service.list(city="seattle", state="wa")
        assert [v.name for v in page] == ["Feast Catering"]

    def test_search_matches_services_and_description(self, vendor_service, vendors):
        assert [v.name for v in vendor_service.list(search="buffet")[0]] == ["Feast Catering"]
        assert [v.name for v in vendor_service.list(search="photography")[0]] == ["Lens Works"]

    def test_blank_search_is_ignored(self, vendor_service, vendors):
        _, total = vendor_service.list(search="   ")
        assert total == 3

    def test_pagination_keeps_total(self, vendor_service, vendors):
        page, total = vendor_service.list(limit=1, offset=1)
        assert total == 3
        assert [v.name for v in page] == ["Feast Catering"]


def test_stats(vendor_service, vendors):
    stats = vendor_service.get_stats()
    assert stats == {
        "total": 4,
        "active": 3,
        "verified": 1,
        "by_category": {"florist": 2, "caterer": 1, "photographer": 1},
    }


def test_create_sets_default_rating(vendor_service):
    vendor = vendor_service.create(VendorCreate(
        name="Sound Stage",
        categories=["DJ"],
        location={"city": "Austin", "state": "TX"},
    ))
    assert vendor.guid.startswith("vnd_")
    assert vendor.rating == {"average": 0, "count": 0}
    assert vendor.availability["is_available"] is True
    assert vendor.city == "Austin"


def test_update_ignores_null_required_fields(vendor_service, sample_vendor):
    vendor = sample_vendor()
    updated = vendor_service.update(vendor.guid, VendorUpdate(
        name=None, description="Seasonal arrangements", is_verified=True,
    ))
    assert updated.name == "Bloom & Co"
    assert updated.description == "Seasonal arrangements"
    assert updated.is_verified is True


def test_pricing_range_validated():
    with pytest.raises(ValueError):
        VendorCreate(name="X", pricing={"min_price": 10, "max_price": 5})


def test_get_unknown_and_malformed(vendor_service):
    with pytest.raises(NotFoundError):
        vendor_service.get_by_guid("vnd_nope")
    with pytest.raises(NotFoundError):
        vendor_service.get_by_guid("not-a-guid")


def test_delete(vendor_service, sample_vendor):
    vendor = sample_vendor()
    vendor_service.delete(vendor.guid)
    with pytest.raises(NotFoundError):
        vendor_service.get_by_guid(vendor.guid)
