"""Result page models — Paginated containers for search results.

``SimpleResultPage`` knows only whether another page exists.
``SearchResultPage`` also carries the total count and derives ``has_more``
from it.
"""

from __future__ import annotations

import math
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, Field, model_validator


class SimpleResultPage(BaseModel):
    """A page of results without a total count."""

    items: list[Any] = Field(default_factory=list, description="Records (or raw hits) on this page")
    per_page: int = Field(ge=1, description="Page size")
    current_page: int = Field(default=1, ge=1, description="1-based page number")
    path: str = Field(default="/", description="Base path used for page links")
    page_name: str = Field(default="page", description="Query-string parameter carrying the page number")
    query: dict[str, Any] = Field(default_factory=dict, description="Extra query-string parameters for links")
    has_more: bool = Field(default=False, description="Whether a following page exists")

    def appends(self, key: str, value: Any) -> SimpleResultPage:
        """Add a query-string parameter to every generated page link."""
        self.query[key] = value
        return self

    def url(self, page: int) -> str:
        """Build the link for the given page number."""
        page = max(page, 1)
        params = {**self.query, self.page_name: page}
        separator = "&" if "?" in self.path else "?"
        return f"{self.path}{separator}{urlencode(params, doseq=True)}"

    def next_page_url(self) -> str | None:
        return self.url(self.current_page + 1) if self.has_more else None

    def previous_page_url(self) -> str | None:
        return self.url(self.current_page - 1) if self.current_page > 1 else None

    @property
    def on_first_page(self) -> bool:
        return self.current_page <= 1

    @property
    def count(self) -> int:
        """Number of items on this page."""
        return len(self.items)


class SearchResultPage(SimpleResultPage):
    """A length-aware page: ``has_more`` is ``current_page * per_page < total``."""

    total: int = Field(ge=0, description="Total number of matching records")

    @model_validator(mode="after")
    def _derive_has_more(self) -> SearchResultPage:
        self.has_more = self.current_page * self.per_page < self.total
        return self

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1)
