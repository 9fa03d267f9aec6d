from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Optional

from goodreads_table.core.models import (
    STATUS_ENRICHED,
    STATUS_FAILED,
    STATUS_NOT_FOUND,
    BookQuery,
    EnrichedBook,
)
from goodreads_table.core.normalize import (
    is_valid_book_id,
    looks_like_isbn,
    markdown_image,
    markdown_link,
    normalize_isbn,
)
from goodreads_table.core.response import ApiResponse, scalar_text
from goodreads_table.integrations.http_client import ConfigurationError, GoodreadsError, NotFoundError

logger = logging.getLogger(__name__)

NO_PHOTO_MARKER = "nophoto"
COVER_URL_TEMPLATE = "https://covers.openlibrary.org/b/isbn/{isbn}-M.jpg"


def sort_by_author(queries: Iterable[BookQuery]) -> List[BookQuery]:
    return sorted(queries, key=lambda q: q.author)


def cover_url_for_isbn(isbn: str) -> str:
    isbn = normalize_isbn(isbn)
    if not isbn:
        return ""
    return COVER_URL_TEMPLATE.format(isbn=isbn)


def resolve_image_url(thumbnail: str, isbn: str) -> str:
    if NO_PHOTO_MARKER in (thumbnail or ""):
        return cover_url_for_isbn(isbn)
    return thumbnail or ""


def book_id_of(response: ApiResponse) -> Optional[str]:
    book_id = scalar_text(response.path("book", "id")).strip()
    return book_id if is_valid_book_id(book_id) else None


def derive_fields(query: BookQuery, response: ApiResponse) -> EnrichedBook:
    """Build the enriched row from a by-id `book/show` response."""
    book = response.get("book")

    isbn = query.isbn.strip() or scalar_text(book.get("isbn")).strip()
    url = scalar_text(book.get("url")).strip()
    image_url = resolve_image_url(scalar_text(book.get("small_image_url")).strip(), isbn)
    display_title = markdown_link(query.title, url) if url else query.title

    return EnrichedBook(
        title=query.title,
        author=query.author,
        isbn=isbn,
        status=STATUS_ENRICHED,
        id=scalar_text(book.get("id")).strip(),
        num_pages=scalar_text(book.get("num_pages")).strip(),
        image_url=image_url,
        average_rating=scalar_text(book.get("average_rating")),
        publication_year=scalar_text(book.path("work", "original_publication_year")).strip(),
        url=url,
        display_title=display_title,
        display_image=markdown_image(display_title, image_url) if image_url else "",
    )


class EnrichmentPipeline:
    """
    Per-record lookup: ISBN or title lookup, then a by-id refetch, then
    field derivation. Any stage without a book id passes the record through.
    """

    def __init__(self, client) -> None:
        self.client = client
        self.stats: Counter = Counter()

    def _lookup_primary(self, query: BookQuery) -> ApiResponse:
        isbn = query.isbn.strip()
        if isbn:
            # A checksum-valid isbn is sent bare; anything else goes out as typed.
            if looks_like_isbn(isbn):
                isbn = normalize_isbn(isbn)
            else:
                logger.warning("isbn fails checksum, looking it up anyway | isbn=%s | title=%s", isbn, query.title)
            return self.client.get_book_by_isbn(isbn)
        return self.client.get_book_by_title(query.title, query.author)

    def enrich_one(self, query: BookQuery) -> EnrichedBook:
        logger.info("Querying Goodreads for %s - %s", query.title, query.author)
        try:
            book_id = book_id_of(self._lookup_primary(query))
            if book_id is None:
                logger.info("lookup: no match | title=%s | author=%s", query.title, query.author)
                return self._finish(EnrichedBook.passthrough(query, STATUS_NOT_FOUND))

            detail = self.client.get_book(book_id)
            if book_id_of(detail) is None:
                logger.info("refetch: no book for id=%s | title=%s", book_id, query.title)
                return self._finish(EnrichedBook.passthrough(query, STATUS_NOT_FOUND))
        except ConfigurationError:
            raise
        except NotFoundError:
            logger.info("lookup: no match | title=%s | author=%s", query.title, query.author)
            return self._finish(EnrichedBook.passthrough(query, STATUS_NOT_FOUND))
        except GoodreadsError as e:
            logger.warning("lookup failed | title=%s | author=%s | err=%s", query.title, query.author, e)
            return self._finish(EnrichedBook.passthrough(query, STATUS_FAILED))

        return self._finish(derive_fields(query, detail))

    def _finish(self, book: EnrichedBook) -> EnrichedBook:
        self.stats[book.status] += 1
        return book

    def run(self, queries: Iterable[BookQuery]) -> List[EnrichedBook]:
        ordered = sort_by_author(queries)
        out = [self.enrich_one(q) for q in ordered]
        logger.info(
            "enrich: total=%s enriched=%s not_found=%s failed=%s",
            len(out),
            self.stats[STATUS_ENRICHED],
            self.stats[STATUS_NOT_FOUND],
            self.stats[STATUS_FAILED],
        )
        return out
