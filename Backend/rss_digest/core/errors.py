# Backend/rss_digest/core/errors.py
from __future__ import annotations

from typing import Optional


class FeedFetchError(Exception):
    """Base class for failures while fetching or reading a single feed."""


class FeedStatusError(FeedFetchError):
    """
    Non-2xx response from a feed host.
    The message format ("Status code <N>") is what the retry classifier
    inspects for 429/503.
    """

    def __init__(self, status_code: int, url: Optional[str] = None):
        super().__init__(f"Status code {status_code}")
        self.status_code = status_code
        self.url = url


class FeedParseError(FeedFetchError):
    """The response body could not be read as an RSS/Atom feed."""


class SourcesConfigError(Exception):
    """The sources file is missing or malformed. Fatal for the run."""
