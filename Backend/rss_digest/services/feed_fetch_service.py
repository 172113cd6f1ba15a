from __future__ import annotations

import asyncio
from typing import List, Optional

import feedparser
import httpx

from rss_digest.core.domain_limiter import DomainLimiter
from rss_digest.core.errors import FeedFetchError, FeedParseError, FeedStatusError
from rss_digest.core.logging import get_logger
from rss_digest.models.feeds import FeedItem, FetchResult, Source
from rss_digest.services.feed_normalization import (
    DEFAULT_MAX_DESCRIPTION_LENGTH,
    DEFAULT_MAX_ITEMS,
    normalize_feed_entries,
)

logger = get_logger()

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_BASE_DELAY_S = 2.0

FEED_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/rss+xml, application/xml, text/xml, application/atom+xml, */*",
}

# Lowercased substrings of transient failures worth another attempt.
RETRYABLE_SIGNATURES = (
    "timed out",
    "connection reset",
    "connection refused",
    "connection timed out",
    "econnreset",
    "etimedout",
    "econnrefused",
    "socket disconnected",
    "server disconnected",
    "status code 429",
    "status code 503",
    "fetch failed",
)


def describe_error(exc: BaseException) -> str:
    """Message recorded for a failed attempt; also the input of `is_retryable`."""
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return "Request timed out"
    if isinstance(exc, FeedFetchError):
        return str(exc)
    if isinstance(exc, httpx.TransportError):
        return f"fetch failed: {str(exc) or type(exc).__name__}"
    return str(exc) or type(exc).__name__


def is_retryable(message: str) -> bool:
    lowered = message.lower()
    return any(signature in lowered for signature in RETRYABLE_SIGNATURES)


def backoff_delay(attempt: int, base_delay_s: float) -> float:
    """Seconds to wait before `attempt` (1-based retries): base, 2*base, 4*base, ..."""
    if attempt <= 0:
        return 0.0
    return base_delay_s * (2 ** (attempt - 1))


class FeedFetchService:
    """
    Fetches one feed per call, gated per hostname by a shared DomainLimiter,
    retrying transient failures with exponential backoff.
    """

    def __init__(
        self,
        *,
        limiter: Optional[DomainLimiter] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay_s: float = DEFAULT_RETRY_BASE_DELAY_S,
        max_items: int = DEFAULT_MAX_ITEMS,
        max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
    ) -> None:
        self.limiter = limiter or DomainLimiter()
        self.timeout_s = timeout_s
        self.max_retries = max(0, max_retries)
        self.retry_base_delay_s = retry_base_delay_s
        self.max_items = max_items
        self.max_description_length = max_description_length
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "FeedFetchService":
        self._client = httpx.AsyncClient(
            timeout=self.timeout_s,
            headers=FEED_HEADERS,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client:
            await self._client.aclose()

    async def _fetch_xml(self, url: str) -> bytes:
        if self._client is None:
            raise RuntimeError("FeedFetchService client not initialized")
        response = await asyncio.wait_for(self._client.get(url), self.timeout_s)
        if not response.is_success:
            raise FeedStatusError(response.status_code, url=url)
        return response.content

    def _parse_feed(self, raw: bytes, source: Source) -> List[FeedItem]:
        parsed = feedparser.parse(raw)
        if parsed.get("bozo") and not parsed.get("entries"):
            reason = parsed.get("bozo_exception") or "no entries"
            raise FeedParseError(f"Unable to parse feed: {reason}")
        return normalize_feed_entries(
            parsed,
            source,
            max_items=self.max_items,
            max_description_length=self.max_description_length,
        )

    async def fetch_with_retry(self, source: Source) -> FetchResult:
        domain = source.domain
        message = "no attempt made"

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                await asyncio.sleep(backoff_delay(attempt, self.retry_base_delay_s))

            error: Optional[BaseException] = None
            raw = b""
            async with self.limiter.slot(domain):
                try:
                    raw = await self._fetch_xml(source.url)
                except (httpx.HTTPError, httpx.InvalidURL, FeedFetchError, asyncio.TimeoutError) as exc:
                    error = exc

            if error is None:
                try:
                    items = self._parse_feed(raw, source)
                except FeedParseError as exc:
                    error = exc
                else:
                    return FetchResult(source_name=source.name, items=items)

            message = describe_error(error)
            if not is_retryable(message) or attempt == self.max_retries:
                logger.warning(
                    "feed_fetch_failed",
                    source=source.name,
                    url=source.url,
                    attempts=attempt + 1,
                    error=message,
                )
                return FetchResult(source_name=source.name, error=message)

            logger.info(
                "feed_fetch_retrying",
                source=source.name,
                attempt=attempt + 1,
                error=message,
            )

        return FetchResult(source_name=source.name, error=message)
