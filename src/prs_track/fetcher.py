"""HTTP page fetcher for prsindia.org profile pages.

Retry lives entirely here: the probe scheduler calls :meth:`PageFetcher.fetch`
once per candidate URL and only ever sees page text or a :class:`FetchError`.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field

import requests
from requests.adapters import HTTPAdapter
from urllib3.exceptions import MaxRetryError, ProtocolError, ReadTimeoutError
from urllib3.util.retry import Retry

from .config import (
    BASE_URL,
    FETCH_RETRIES,
    FETCH_TIMEOUT_SECONDS,
    MAX_CONCURRENCY,
    REQUEST_DELAY,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": f"{BASE_URL}/",
}

# Bodies shorter than this are treated as a truncated/blank response and retried.
SHORT_BODY_LENGTH = 64


class FetchError(Exception):
    """A page could not be fetched."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url


class TransientFetchError(FetchError):
    """Timeout, 5xx, rate limiting or empty body; retries already exhausted."""


class PermanentFetchError(FetchError):
    """4xx or DNS/connection failure; not retried."""


def _is_exhausted_read_failure(exc: requests.ConnectionError) -> bool:
    """True when urllib3 gave up after read timeouts or dropped responses.

    requests re-raises an exhausted ``MaxRetryError`` as ``ConnectionError``
    even when every attempt connected and then timed out while reading.
    """
    reason = exc.args[0] if exc.args else None
    if isinstance(reason, MaxRetryError):
        reason = reason.reason
    return isinstance(reason, (ReadTimeoutError, ProtocolError))


@dataclass
class PageFetcher:
    timeout_seconds: float = FETCH_TIMEOUT_SECONDS
    retries: int = FETCH_RETRIES
    backoff_factor: float = 0.5
    request_delay: float = REQUEST_DELAY
    pool_size: int = MAX_CONCURRENCY
    _session: requests.Session = field(default_factory=requests.Session, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _last_request_time: float = field(default=0.0, repr=False)

    def __post_init__(self) -> None:
        """Configure retry adapter for resilient HTTP requests."""
        retry_strategy = Retry(
            total=self.retries,
            connect=0,  # DNS / refused connections are permanent
            read=self.retries,
            status=self.retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=frozenset({"GET"}),
        )
        adapter = HTTPAdapter(
            max_retries=retry_strategy,
            pool_connections=self.pool_size,
            pool_maxsize=self.pool_size,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)
        self._session.headers.update(DEFAULT_HEADERS)

    # ── throttled HTTP ────────────────────────────────────────────────────

    def _throttled_get(self, url: str, **kwargs: object) -> requests.Response:
        """GET with a per-instance rate limit shared by all probe threads."""
        if self.request_delay > 0:
            with self._lock:
                elapsed = time.time() - self._last_request_time
                wait = max(0.0, self.request_delay - elapsed)
                # Reserve our slot by advancing the timestamp before releasing the lock.
                self._last_request_time = time.time() + wait
            if wait > 0:
                time.sleep(wait)
        kwargs.setdefault("timeout", self.timeout_seconds)
        return self._session.get(url, **kwargs)

    # ── public API ───────────────────────────────────────────────────────

    def fetch(self, url: str) -> str:
        """Return the page body or raise :class:`FetchError`."""
        attempts = max(1, self.retries)
        for attempt in range(1, attempts + 1):
            try:
                resp = self._throttled_get(url)
                resp.raise_for_status()
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else 0
                if status == 429 or status >= 500:
                    raise TransientFetchError(url, f"HTTP {status}") from exc
                raise PermanentFetchError(url, f"HTTP {status}") from exc
            except requests.exceptions.RetryError as exc:
                raise TransientFetchError(url, "retries exhausted") from exc
            except requests.Timeout as exc:
                raise TransientFetchError(url, "timed out") from exc
            except requests.ConnectionError as exc:
                if _is_exhausted_read_failure(exc):
                    raise TransientFetchError(url, "read failed after retries") from exc
                raise PermanentFetchError(url, "connection failed") from exc
            except requests.RequestException as exc:
                raise PermanentFetchError(url, str(exc)) from exc

            body = resp.text or ""
            if len(body.strip()) >= SHORT_BODY_LENGTH:
                return body
            LOGGER.debug("Short body (%d chars) from %s, attempt %d", len(body), url, attempt)
            if attempt < attempts:
                time.sleep(self.backoff_factor * attempt)
        raise TransientFetchError(url, "empty or truncated body")

    def close(self) -> None:
        self._session.close()
