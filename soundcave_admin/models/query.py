"""List query state and paged results."""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")

# Filter values meaning "no filter" (the dashboard's "All ..." option)
INACTIVE_FILTER_VALUES = (None, "", "all")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Query:
    """What a list screen asks the backend for."""
    search_term: str = ""
    filters: Dict[str, Any] = field(default_factory=dict)
    sort_key: str = "created_at"
    sort_direction: SortDirection = SortDirection.DESC
    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    def active_filters(self) -> Dict[str, Any]:
        return {k: v for k, v in self.filters.items() if v not in INACTIVE_FILTER_VALUES}

    def to_params(self, search_param: str = "search") -> Dict[str, Any]:
        """Query-string parameters for GET /api/<collection>."""
        params: Dict[str, Any] = {
            "page": self.page,
            "limit": self.page_size,
            "sort_by": self.sort_key,
            "order": self.sort_direction.value,
        }
        term = self.search_term.strip()
        if term:
            params[search_param] = term
        params.update(self.active_filters())
        return params


def total_pages_for(total_count: int, page_size: int) -> int:
    """ceil(total / page_size), never less than one page."""
    return max(1, math.ceil(total_count / page_size))


@dataclass
class PagedResult(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def first_index(self) -> int:
        """1-based index of the first row on this page (0 when empty)."""
        if self.total_count == 0:
            return 0
        return (min(self.page, self.total_pages) - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        return min(min(self.page, self.total_pages) * self.page_size, self.total_count)

    def page_window(self) -> List[Optional[int]]:
        """Page buttons to show: first, last and current +/- 1; None marks a gap."""
        current = min(self.page, self.total_pages)
        pages = [
            i
            for i in range(1, self.total_pages + 1)
            if i == 1 or i == self.total_pages or abs(i - current) <= 1
        ]
        window: List[Optional[int]] = []
        for i, p in enumerate(pages):
            if i > 0 and p - pages[i - 1] > 1:
                window.append(None)
            window.append(p)
        return window

    def to_dict(self, item_to_dict=None) -> dict:
        items = [item_to_dict(i) for i in self.items] if item_to_dict else list(self.items)
        return {
            "items": items,
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total_count,
            "total_pages": self.total_pages,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
            "range": [self.first_index, self.last_index],
            "window": self.page_window(),
        }
