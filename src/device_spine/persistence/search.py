"""Search criteria and paged results.

Examples:
    >>> criteria = SearchCriteria(page_number=2, page_size=10)
    >>> criteria.skip
    10
    >>> SearchCriteria(page_number=0)
    Traceback (most recent call last):
    ...
    device_spine.core.errors.ValidationError: page_number must be >= 1
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from device_spine.core.errors import ValidationError
from device_spine.model.enums import AssignmentStatus

T = TypeVar("T")


@dataclass(frozen=True)
class SearchCriteria:
    """Paging plus optional date bounds (inclusive) on the entity's date field."""

    page_number: int = 1
    page_size: int = 100
    start_date: datetime | None = None
    end_date: datetime | None = None

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValidationError(
                "page_number must be >= 1", field="page_number", value=self.page_number
            )
        if self.page_size < 1:
            raise ValidationError("page_size must be >= 1", field="page_size", value=self.page_size)
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError(
                "start_date must not be after end_date", field="start_date", value=self.start_date
            )

    @property
    def skip(self) -> int:
        return (self.page_number - 1) * self.page_size


@dataclass(frozen=True)
class DeviceSearchCriteria(SearchCriteria):
    exclude_assigned: bool = False
    site_token: str | None = None
    specification_token: str | None = None


@dataclass(frozen=True)
class AssignmentSearchCriteria(SearchCriteria):
    status: AssignmentStatus | None = None


@dataclass(frozen=True)
class AssignmentsForAssetSearchCriteria(SearchCriteria):
    site_token: str | None = None
    status: AssignmentStatus | None = None


@dataclass
class SearchResults(Generic[T]):
    """One page of results plus the total number of matches."""

    total: int = 0
    items: list[T] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


__all__ = [
    "SearchCriteria",
    "DeviceSearchCriteria",
    "AssignmentSearchCriteria",
    "AssignmentsForAssetSearchCriteria",
    "SearchResults",
]
