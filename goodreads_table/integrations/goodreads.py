"""
Goodreads API client.

Endpoints implemented:
- author.show (get_author)
- author.books (get_books_by_author)
- book.show (get_book)
- book.show_by_isbn (get_book_by_isbn)
- book.title (get_book_by_title)
- reviews.list (get_shelf, get_latest_reads, get_all_books)
- review.show (get_review)
- user.show (get_user, get_user_by_username)
"""
from __future__ import annotations

from typing import Dict, Optional, Union
from urllib.parse import quote

import requests

from goodreads_table.config import ClientConfig
from goodreads_table.core.response import ApiResponse
from goodreads_table.integrations.http_client import (
    FORMAT_JSON,
    FORMAT_XML,
    MinIntervalLimiter,
    Transport,
    decode_body,
    make_goodreads_session,
)

# reviews.list only speaks XML, whatever the client default is.
LISTING_PARAMS = {"v": 2, "format": FORMAT_XML}


class GoodreadsClient:
    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
        limiter: Optional[MinIntervalLimiter] = None,
    ) -> None:
        config.validate()
        self.config = config
        self.session = session if session is not None else make_goodreads_session(config.user_agent)
        self.limiter = limiter if limiter is not None else MinIntervalLimiter(config.rate_interval_s)
        self.transport = Transport(self.session, self.limiter, timeout_s=config.timeout_s)

    def __enter__(self) -> "GoodreadsClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def request(self, endpoint: str, params: Optional[Dict[str, object]] = None) -> ApiResponse:
        query: Dict[str, object] = {"key": self.config.api_key}
        query.update(params or {})
        if "format" not in query and self.config.response_format == FORMAT_JSON:
            query["format"] = FORMAT_JSON
        fmt = str(query.get("format") or FORMAT_XML)

        url = f"{self.config.base_url}/{endpoint}"
        body = self.transport.get(url, query, fmt=fmt, endpoint=endpoint)
        return decode_body(body, fmt, endpoint=endpoint, url=url)

    def get_author(self, author_id: int) -> ApiResponse:
        return self.request("author/show", {"id": int(author_id)})

    def get_books_by_author(self, author_id: int, page: int = 1) -> ApiResponse:
        return self.request("author/list", {"id": int(author_id), "page": int(page)})

    def get_book(self, book_id: Union[int, str]) -> ApiResponse:
        return self.request("book/show", {"id": int(book_id)})

    def get_book_by_isbn(self, isbn: str) -> ApiResponse:
        return self.request(f"book/isbn/{quote(isbn, safe='')}")

    def get_book_by_title(self, title: str, author: str = "") -> ApiResponse:
        """Look a book up by title; the author narrows the match."""
        return self.request("book/title", {"title": title, "author": author})

    def get_user(self, user_id: int) -> ApiResponse:
        return self.request("user/show", {"id": int(user_id)})

    def get_user_by_username(self, username: str) -> ApiResponse:
        return self.request("user/show", {"username": username})

    def get_review(self, review_id: int, page: int = 1) -> ApiResponse:
        """Fetch one review; `page` pages through its comments (1-N)."""
        return self.request("review/show", {"id": int(review_id), "page": int(page)})

    def get_shelf(
        self,
        user_id: int,
        shelf: str,
        sort: str = "title",
        limit: int = 100,
        page: int = 1,
    ) -> ApiResponse:
        """
        Books on one of a user's shelves (read, currently-reading, to-read, ...).

        `sort` is one of title, author, rating, year_pub, date_pub, date_read,
        date_added, avg_rating; `limit` is 1-200.
        """
        return self.request(
            "review/list",
            {
                **LISTING_PARAMS,
                "id": int(user_id),
                "shelf": shelf,
                "sort": sort,
                "page": int(page),
                "per_page": int(limit),
            },
        )

    def get_all_books(self, user_id: int, sort: str = "title", limit: int = 100, page: int = 1) -> ApiResponse:
        return self.request(
            "review/list",
            {
                **LISTING_PARAMS,
                "id": int(user_id),
                "sort": sort,
                "page": int(page),
                "per_page": int(limit),
            },
        )

    def get_latest_reads(self, user_id: int, sort: str = "date_read", limit: int = 100, page: int = 1) -> ApiResponse:
        return self.get_shelf(user_id, "read", sort, limit, page)

    def show_author(self, author_id: int) -> ApiResponse:
        return self.get_author(author_id)

    def show_user(self, user_id: int) -> ApiResponse:
        return self.get_user(user_id)
