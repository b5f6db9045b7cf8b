"""Tests for device_spine.persistence.search."""

from datetime import UTC, datetime

import pytest

from device_spine.core.errors import ValidationError
from device_spine.persistence.search import (
    AssignmentSearchCriteria,
    DeviceSearchCriteria,
    SearchCriteria,
    SearchResults,
)


class TestSearchCriteria:
    def test_defaults_and_skip(self):
        criteria = SearchCriteria()
        assert (criteria.page_number, criteria.page_size, criteria.skip) == (1, 100, 0)
        assert SearchCriteria(page_number=3, page_size=25).skip == 50

    @pytest.mark.parametrize("kwargs", [{"page_number": 0}, {"page_size": 0}])
    def test_rejects_non_positive_paging(self, kwargs):
        with pytest.raises(ValidationError):
            SearchCriteria(**kwargs)

    def test_rejects_inverted_date_range(self):
        with pytest.raises(ValidationError):
            SearchCriteria(
                start_date=datetime(2024, 2, 1, tzinfo=UTC),
                end_date=datetime(2024, 1, 1, tzinfo=UTC),
            )

    def test_subclasses_validate_paging_too(self):
        with pytest.raises(ValidationError):
            DeviceSearchCriteria(page_size=0, exclude_assigned=True)
        assert AssignmentSearchCriteria(page_size=5).page_size == 5


class TestSearchResults:
    def test_iterates_items(self):
        results = SearchResults(total=10, items=["a", "b"])
        assert list(results) == ["a", "b"]
        assert len(results) == 2
