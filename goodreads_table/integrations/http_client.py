from __future__ import annotations

import logging
import math
import time
from typing import Callable, Dict, Optional

import requests

from goodreads_table.core.response import ApiResponse, parse_json_body, parse_xml_body

GOODREADS_BASE_URL = "https://www.goodreads.com"
FORMAT_XML = "xml"
FORMAT_JSON = "json"
ACCEPT_HEADERS = {
    FORMAT_XML: "application/xml",
    FORMAT_JSON: "application/json",
}
DEFAULT_USER_AGENT = "goodreads-table/1.0"

logger = logging.getLogger(__name__)


class GoodreadsError(RuntimeError):
    def __init__(self, message: str, endpoint: str = "") -> None:
        super().__init__(message)
        self.endpoint = endpoint


class TransportError(GoodreadsError):
    def __init__(self, message: str, endpoint: str = "", status_code: Optional[int] = None) -> None:
        super().__init__(message, endpoint)
        self.status_code = status_code


class NotFoundError(GoodreadsError):
    """The service answered 404: the lookup matched nothing."""


class ProtocolError(GoodreadsError):
    pass


class ServerError(GoodreadsError):
    pass


class ConfigurationError(GoodreadsError):
    pass


def _safe_body_preview(text: str, limit: int = 300) -> str:
    text = (text or "").replace("\r", " ").replace("\n", " ").strip()
    if len(text) > limit:
        return text[:limit].rstrip() + "..."
    return text


def redact_params(params: Dict[str, object]) -> Dict[str, object]:
    return {k: ("***" if k == "key" else v) for k, v in params.items()}


class MinIntervalLimiter:
    """
    Flat courtesy delay between calls through one client.

    `mark()` records when a call starts; `pause()` runs after the call and
    sleeps whatever is left of `interval_s` since that start. No burst
    allowance and no backoff.
    """

    def __init__(
        self,
        interval_s: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        interval_s = float(interval_s)
        if not math.isfinite(interval_s) or interval_s < 0:
            raise ValueError(f"Rate interval must be a finite, non-negative number, got {interval_s!r}")
        self.interval_s = interval_s
        self._clock = clock
        self._sleep = sleep
        self.last_call: Optional[float] = None

    def mark(self) -> None:
        self.last_call = self._clock()

    def pause(self) -> None:
        now = self._clock()
        if self.last_call is None:
            self.last_call = now
        remaining = self.interval_s - (now - self.last_call)
        if remaining > 0:
            self._sleep(remaining)


def make_goodreads_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    s = requests.Session()
    s.headers.update({"User-Agent": user_agent})
    return s


class Transport:
    """One GET per call, followed by the limiter pause whatever the outcome."""

    def __init__(
        self,
        session: requests.Session,
        limiter: MinIntervalLimiter,
        *,
        timeout_s: float = 30,
    ) -> None:
        if session is None or not callable(getattr(session, "get", None)):
            raise ConfigurationError("No usable HTTP session (requests is required)")
        self.session = session
        self.limiter = limiter
        self.timeout_s = timeout_s

    def get(self, url: str, params: Dict[str, object], *, fmt: str = FORMAT_XML, endpoint: str = "") -> str:
        headers = {"Accept": ACCEPT_HEADERS.get(fmt, ACCEPT_HEADERS[FORMAT_XML])}
        logger.debug(
            "request | method=GET | url=%s | params=%s | accept=%s",
            url,
            redact_params(params),
            headers["Accept"],
        )
        self.limiter.mark()
        try:
            r = self.session.get(url, params=params, headers=headers, timeout=self.timeout_s)
        except requests.RequestException as e:
            logger.warning("request error | endpoint=%s | err=%r", endpoint, e)
            raise TransportError(f"Method failed: {endpoint}: {e}", endpoint) from e
        finally:
            self.limiter.pause()

        if r.status_code == 404:
            logger.info("not found | status=404 | endpoint=%s", endpoint)
            raise NotFoundError(f"Nothing found for {endpoint}", endpoint)
        if r.status_code >= 400:
            logger.error(
                "http error | status=%s | endpoint=%s | body=%s",
                r.status_code,
                endpoint,
                _safe_body_preview(r.text),
            )
            raise TransportError(
                f"Method failed: {endpoint}: HTTP {r.status_code}",
                endpoint,
                status_code=r.status_code,
            )
        return r.text or ""


def decode_body(body: str, fmt: str, *, endpoint: str = "", url: str = "") -> ApiResponse:
    """
    Normalize a raw body into an ApiResponse.

    Raises ProtocolError when the body does not parse as `fmt`, and
    ServerError when it parses to nothing.
    """
    try:
        if fmt == FORMAT_JSON:
            result = parse_json_body(body)
        else:
            result = parse_xml_body(body)
    except ValueError as e:
        raise ProtocolError(f"Unparseable {fmt} body from {endpoint}: {e}", endpoint) from e

    if result.is_empty():
        raise ServerError(f'Server error on "{url or endpoint}": {_safe_body_preview(body)}', endpoint)
    return result
