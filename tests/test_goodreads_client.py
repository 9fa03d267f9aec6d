import pytest

from goodreads_table.config import ClientConfig
from goodreads_table.core.response import ApiString
from goodreads_table.integrations.goodreads import GoodreadsClient
from goodreads_table.integrations.http_client import ConfigurationError, MinIntervalLimiter, ServerError

OK_XML = "<GoodreadsResponse><book><id>1</id></book></GoodreadsResponse>"
OK_JSON = '{"book": {"id": 1}}'


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code


class FakeSession:
    def __init__(self, body: str) -> None:
        self.body = body
        self.calls = []
        self.closed = False

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        return FakeResponse(self.body)

    def close(self) -> None:
        self.closed = True


def _client(fmt: str = "xml", body: str = OK_XML):
    session = FakeSession(body)
    cfg = ClientConfig(api_key="KEY", response_format=fmt)
    client = GoodreadsClient(cfg, session=session, limiter=MinIntervalLimiter(0))
    return client, session


def test_missing_api_key_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        GoodreadsClient(ClientConfig(api_key=""), session=FakeSession(OK_XML))


def test_every_request_carries_api_key() -> None:
    client, session = _client()
    client.get_author(5)
    client.get_book(7)
    client.get_book_by_title("Dune", "Frank Herbert")
    client.get_review(3, page=2)
    assert all(c["params"]["key"] == "KEY" for c in session.calls)


def test_endpoint_paths_and_params() -> None:
    client, session = _client()
    client.get_author(5)
    client.get_books_by_author(5, page=3)
    client.get_book("7")
    client.get_book_by_title("Dune", "Frank Herbert")
    client.get_user(9)
    client.get_user_by_username("reader")
    client.get_review(3)

    urls = [c["url"] for c in session.calls]
    assert urls == [
        "https://www.goodreads.com/author/show",
        "https://www.goodreads.com/author/list",
        "https://www.goodreads.com/book/show",
        "https://www.goodreads.com/book/title",
        "https://www.goodreads.com/user/show",
        "https://www.goodreads.com/user/show",
        "https://www.goodreads.com/review/show",
    ]
    assert session.calls[1]["params"]["page"] == 3
    assert session.calls[2]["params"]["id"] == 7
    assert session.calls[3]["params"]["title"] == "Dune"
    assert session.calls[3]["params"]["author"] == "Frank Herbert"
    assert session.calls[5]["params"]["username"] == "reader"
    assert session.calls[6]["params"]["page"] == 1


def test_isbn_is_url_encoded_in_path() -> None:
    client, session = _client()
    client.get_book_by_isbn("978 0/441")
    assert session.calls[0]["url"] == "https://www.goodreads.com/book/isbn/978%200%2F441"
    assert session.calls[0]["params"] == {"key": "KEY"}


def test_json_client_requests_json() -> None:
    client, session = _client(fmt="json", body=OK_JSON)
    resp = client.get_book(1)
    call = session.calls[0]
    assert call["params"]["format"] == "json"
    assert call["headers"]["Accept"] == "application/json"
    assert resp.path("book", "id") == ApiString("1")


def test_listing_endpoints_force_xml_for_json_client() -> None:
    client, session = _client(fmt="json", body=OK_XML)
    client.get_shelf(42, "to-read", sort="date_added", limit=50, page=2)
    client.get_all_books(42)
    for call in session.calls:
        assert call["url"] == "https://www.goodreads.com/review/list"
        assert call["params"]["format"] == "xml"
        assert call["params"]["v"] == 2
        assert call["headers"]["Accept"] == "application/xml"
    shelf_params = session.calls[0]["params"]
    assert shelf_params["shelf"] == "to-read"
    assert shelf_params["sort"] == "date_added"
    assert shelf_params["per_page"] == 50
    assert shelf_params["page"] == 2
    assert "shelf" not in session.calls[1]["params"]
    assert session.calls[1]["params"]["sort"] == "title"


def test_latest_reads_uses_read_shelf() -> None:
    client, session = _client()
    client.get_latest_reads(42)
    params = session.calls[0]["params"]
    assert params["shelf"] == "read"
    assert params["sort"] == "date_read"
    assert params["per_page"] == 100


def test_empty_payload_is_server_error() -> None:
    client, _ = _client(body="<GoodreadsResponse></GoodreadsResponse>")
    with pytest.raises(ServerError):
        client.get_book(1)


def test_context_manager_closes_session() -> None:
    client, session = _client()
    with client:
        client.show_user(1)
    assert session.closed


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


def test_calls_through_one_client_are_spaced_by_interval() -> None:
    clock = _Clock()
    starts = []

    class TimedSession(FakeSession):
        def get(self, url, params=None, headers=None, timeout=None):
            starts.append(clock())
            clock.now += 0.2
            return super().get(url, params=params, headers=headers, timeout=timeout)

    cfg = ClientConfig(api_key="KEY", rate_interval_s=2.0)
    limiter = MinIntervalLimiter(cfg.rate_interval_s, clock=clock, sleep=clock.sleep)
    client = GoodreadsClient(cfg, session=TimedSession(OK_XML), limiter=limiter)

    n = 5
    client.get_book(1)
    client.get_book_by_title("Dune")
    client.get_author(2)
    client.get_shelf(3, "read")
    client.get_user(4)

    assert len(starts) == n
    assert all(b - a >= 2.0 for a, b in zip(starts, starts[1:]))
    assert starts[-1] - starts[0] >= (n - 1) * 2.0
