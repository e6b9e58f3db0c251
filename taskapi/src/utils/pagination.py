"""
Simple pagination: page slices without a total count.

One extra row is fetched to tell whether a next page exists, which keeps
listing to a single LIMIT/OFFSET query.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

T = TypeVar('T')


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    per_page: int
    has_more: bool

    @property
    def next_page(self) -> Optional[int]:
        return self.page + 1 if self.has_more else None

    @property
    def prev_page(self) -> Optional[int]:
        return self.page - 1 if self.page > 1 else None

    @property
    def first_index(self) -> Optional[int]:
        """1-based position of the first item on this page (None when empty)."""
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + 1

    @property
    def last_index(self) -> Optional[int]:
        if not self.items:
            return None
        return self.first_index + len(self.items) - 1

    def to_dict(self, serialize: Callable[[T], Any],
                url_for_page: Optional[Callable[[int], str]] = None) -> dict:
        """
        Encode the page as a response envelope.

        Args:
            serialize: Converts one item to a JSON-ready value
            url_for_page: Builds the URL of a page number (links are None without it)
        """
        def link(page_number):
            if page_number is None or url_for_page is None:
                return None
            return url_for_page(page_number)

        return {
            'data': [serialize(item) for item in self.items],
            'links': {
                'first': link(1),
                'prev': link(self.prev_page),
                'next': link(self.next_page),
            },
            'meta': {
                'current_page': self.page,
                'per_page': self.per_page,
                'from': self.first_index,
                'to': self.last_index,
                'has_more': self.has_more,
                'next_page': self.next_page,
                'prev_page': self.prev_page,
            },
        }


def normalize_page_params(page, per_page, default_per_page=10, max_per_page=100):
    """Clamp raw page/per_page values to sane positive integers."""
    if page is None or page < 1:
        page = 1
    if per_page is None or per_page < 1:
        per_page = default_per_page
    return page, min(per_page, max_per_page)


def paginate(query, page: int, per_page: int) -> Page:
    """
    Slice an ordered SQLAlchemy query.

    The query must already carry a deterministic ORDER BY, otherwise pages
    may overlap.
    """
    rows = query.offset((page - 1) * per_page).limit(per_page + 1).all()
    has_more = len(rows) > per_page
    return Page(items=rows[:per_page], page=page, per_page=per_page, has_more=has_more)
