from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

STATUS_ENRICHED = "enriched"
STATUS_NOT_FOUND = "not_found"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class BookQuery:
    title: str
    author: str
    isbn: str = ""


@dataclass(frozen=True)
class EnrichedBook:
    title: str
    author: str
    isbn: str
    status: str  # "enriched" | "not_found" | "failed"

    # Derived fields; all None on a pass-through record.
    id: Optional[str] = None
    num_pages: Optional[str] = None
    image_url: Optional[str] = None
    average_rating: Optional[str] = None
    publication_year: Optional[str] = None
    url: Optional[str] = None
    display_title: Optional[str] = None
    display_image: Optional[str] = None

    @classmethod
    def passthrough(cls, query: BookQuery, status: str) -> "EnrichedBook":
        return cls(title=query.title, author=query.author, isbn=query.isbn, status=status)

    @property
    def enriched(self) -> bool:
        return self.status == STATUS_ENRICHED

    def as_query(self) -> BookQuery:
        return BookQuery(title=self.title, author=self.author, isbn=self.isbn)
