from __future__ import annotations

import httpx
import pytest

from rss_digest.core.errors import FeedParseError, FeedStatusError
from rss_digest.services.feed_fetch_service import backoff_delay, describe_error, is_retryable


@pytest.mark.parametrize(
    "message",
    [
        "Request timed out",
        "fetch failed: [Errno 111] Connection refused",
        "Connection reset by peer",
        "read ECONNRESET",
        "Client network socket disconnected before secure TLS connection was established",
        "Server disconnected without sending a response.",
        "Status code 429",
        "Status code 503",
    ],
)
def test_transient_messages_are_retryable(message):
    assert is_retryable(message)


@pytest.mark.parametrize(
    "message",
    ["Status code 404", "Status code 500", "Unable to parse feed: not well-formed", "boom"],
)
def test_permanent_messages_are_not_retryable(message):
    assert not is_retryable(message)


def test_describe_error_maps_httpx_failures():
    request = httpx.Request("GET", "https://example.com/rss")

    assert describe_error(httpx.ReadTimeout("slow", request=request)) == "Request timed out"
    assert describe_error(httpx.ConnectError("refused", request=request)) == "fetch failed: refused"
    assert describe_error(FeedStatusError(503)) == "Status code 503"
    assert describe_error(FeedParseError("Unable to parse feed: x")) == "Unable to parse feed: x"


def test_backoff_doubles_from_base():
    assert backoff_delay(0, 2.0) == 0.0
    assert backoff_delay(1, 2.0) == 2.0
    assert backoff_delay(2, 2.0) == 4.0
    assert backoff_delay(2, 1.0) == 2.0
