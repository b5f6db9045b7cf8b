"""Tests for device_spine.persistence.primitives."""

from datetime import UTC, datetime

import pytest

from device_spine.codecs import SiteCodec
from device_spine.core.errors import DuplicateKeyError, ErrorCode, NotFoundError
from device_spine.model import EntityType, Site
from device_spine.persistence import primitives
from device_spine.persistence.search import SearchCriteria
from device_spine.store import InMemoryDocumentStore


@pytest.fixture
def sites():
    collection = InMemoryDocumentStore().collection("sites")
    collection.create_index([("token", 1)], unique=True)
    return collection


def _site_document(token, name="", created=None):
    return SiteCodec().to_document(Site(token=token, name=name, created_date=created))


class TestInsert:
    def test_duplicate_is_translated_with_caller_code(self, sites):
        primitives.insert(sites, _site_document("S1"), ErrorCode.DUPLICATE_SITE_TOKEN)
        with pytest.raises(DuplicateKeyError) as excinfo:
            primitives.insert(sites, _site_document("S1"), ErrorCode.DUPLICATE_SITE_TOKEN)
        assert excinfo.value.code == ErrorCode.DUPLICATE_SITE_TOKEN
        assert excinfo.value.context.metadata["index"] == "token_1"
        assert sites.count({}) == 1


class TestUpdate:
    def test_no_match_is_not_found(self, sites):
        with pytest.raises(NotFoundError):
            primitives.update(sites, {"token": "missing"}, _site_document("missing"))

    def test_collision_uses_duplicate_code(self, sites):
        primitives.insert(sites, _site_document("S1"), ErrorCode.DUPLICATE_SITE_TOKEN)
        second = primitives.insert(sites, _site_document("S2"), ErrorCode.DUPLICATE_SITE_TOKEN)
        with pytest.raises(DuplicateKeyError) as excinfo:
            primitives.update(
                sites,
                {"_id": second["_id"]},
                _site_document("S1"),
                ErrorCode.DUPLICATE_SITE_TOKEN,
            )
        assert excinfo.value.code == ErrorCode.DUPLICATE_SITE_TOKEN


class TestDelete:
    def test_delete_reports_already_gone(self, sites):
        document = primitives.insert(sites, _site_document("S1"), ErrorCode.DUPLICATE_SITE_TOKEN)
        assert primitives.delete(sites, document) == 1
        assert primitives.delete(sites, document) == 0

    def test_delete_matching(self, sites):
        for token in ("S1", "S2"):
            primitives.insert(sites, _site_document(token, name="x"), ErrorCode.DUPLICATE_KEY)
        assert primitives.delete_matching(sites, {"name": "x"}) == 2


class TestSearch:
    def test_total_is_independent_of_page(self, sites):
        for n in range(5):
            primitives.insert(sites, _site_document(f"S{n}", name=f"n{n}"), ErrorCode.DUPLICATE_KEY)
        results = primitives.search(
            EntityType.SITE,
            sites,
            {},
            [("name", 1)],
            SearchCriteria(page_number=2, page_size=2),
        )
        assert results.total == 5
        assert [site.token for site in results] == ["S2", "S3"]
        assert len(results) == 2

    def test_date_bounds_are_inclusive(self, sites):
        days = [datetime(2024, 1, d, tzinfo=UTC) for d in (1, 2, 3)]
        for n, day in enumerate(days):
            primitives.insert(sites, _site_document(f"S{n}", created=day), ErrorCode.DUPLICATE_KEY)
        results = primitives.search(
            EntityType.SITE,
            sites,
            {},
            [("createdDate", 1)],
            SearchCriteria(start_date=days[1], end_date=days[2]),
        )
        assert [site.token for site in results] == ["S1", "S2"]
        assert results.total == 2

    def test_add_date_search_criteria_leaves_query_without_bounds(self):
        assert primitives.add_date_search_criteria({"a": 1}, "createdDate", SearchCriteria()) == {
            "a": 1
        }

    def test_list_entities_is_unpaged(self, sites):
        for n in range(3):
            primitives.insert(sites, _site_document(f"S{n}"), ErrorCode.DUPLICATE_KEY)
        listed = primitives.list_entities(EntityType.SITE, sites, {}, [("token", -1)])
        assert [site.token for site in listed] == ["S2", "S1", "S0"]
