from __future__ import annotations

import re
from html import unescape
from typing import Any, Dict, List

from rss_digest.models.feeds import FeedItem, Source

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_MAX_ITEMS = 20
DEFAULT_MAX_DESCRIPTION_LENGTH = 500


def _strip_html(value: str) -> str:
    text = unescape(value or "")
    text = _HTML_TAG_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def _get_first_content_value(entry: Dict[str, Any]) -> str:
    content = entry.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict):
                val = block.get("value")
                if isinstance(val, str) and val.strip():
                    return val
    if isinstance(content, dict):
        val = content.get("value")
        if isinstance(val, str):
            return val
    return ""


def _text(entry: Dict[str, Any], key: str) -> str:
    value = entry.get(key)
    if isinstance(value, str):
        return value.strip()
    return ""


def _extract_description(entry: Dict[str, Any], max_length: int) -> str:
    summary = entry.get("summary") or entry.get("description")
    if isinstance(summary, str) and summary.strip():
        text = _strip_html(summary)
    else:
        text = _strip_html(_get_first_content_value(entry))
    return text[:max_length]


def _extract_pub_date(entry: Dict[str, Any]) -> str:
    # Raw feed strings; ordering parses them later.
    return _text(entry, "published") or _text(entry, "updated")


def normalize_entry(
    source: Source,
    entry: Dict[str, Any],
    *,
    max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
) -> FeedItem:
    return FeedItem(
        title=_text(entry, "title"),
        link=_text(entry, "link"),
        description=_extract_description(entry, max_description_length),
        pub_date=_extract_pub_date(entry),
        source=source.name,
    )


def normalize_feed_entries(
    parsed_feed: Any,
    source: Source,
    *,
    max_items: int = DEFAULT_MAX_ITEMS,
    max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
) -> List[FeedItem]:
    """
    Turn the first `max_items` entries of a parsed feed into FeedItems.
    Accepts feedparser results as well as plain dicts.
    """
    if isinstance(parsed_feed, dict):
        entries = parsed_feed.get("entries") or []
    else:
        entries = getattr(parsed_feed, "entries", []) or []
    return [
        normalize_entry(source, entry, max_description_length=max_description_length)
        for entry in list(entries)[:max_items]
    ]
