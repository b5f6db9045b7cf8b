"""Persistence primitives, search criteria and index layout."""

from device_spine.persistence.indexes import INDEX_LAYOUT, ensure_indexes
from device_spine.persistence.primitives import (
    add_date_search_criteria,
    delete,
    delete_matching,
    insert,
    list_entities,
    search,
    update,
)
from device_spine.persistence.search import (
    AssignmentSearchCriteria,
    AssignmentsForAssetSearchCriteria,
    DeviceSearchCriteria,
    SearchCriteria,
    SearchResults,
)

__all__ = [
    "INDEX_LAYOUT",
    "AssignmentSearchCriteria",
    "AssignmentsForAssetSearchCriteria",
    "DeviceSearchCriteria",
    "SearchCriteria",
    "SearchResults",
    "add_date_search_criteria",
    "delete",
    "delete_matching",
    "ensure_indexes",
    "insert",
    "list_entities",
    "search",
    "update",
]
