"""
Feed sources loader.

Parses the sources JSON file (`{"categories": [{name, key, sources: [{name, url}]}]}`)
into Category/Source objects. A missing or structurally broken file is fatal
for the run; individual malformed source entries are logged and skipped.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from rss_digest.core.errors import SourcesConfigError
from rss_digest.core.logging import get_logger
from rss_digest.models.feeds import Category, Source

logger = get_logger()


def load_sources_config(path: Path) -> Dict[str, Any]:
    cfg_path = Path(path)
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SourcesConfigError(f"sources file not found: {cfg_path}") from exc
    except OSError as exc:
        raise SourcesConfigError(f"cannot read sources file {cfg_path}: {exc}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SourcesConfigError(f"sources file {cfg_path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise SourcesConfigError(
            f"sources file {cfg_path} must hold an object, got {type(data).__name__}"
        )
    return data


def _validate_source(raw: Any, category_key: str) -> Optional[Source]:
    if not isinstance(raw, dict):
        logger.warning("feed_source_invalid_entry", category=category_key, raw=raw)
        return None

    name = str(raw.get("name") or "").strip()
    url = raw.get("url")
    if not name or not isinstance(url, str) or not url.strip():
        logger.warning(
            "feed_source_invalid_missing_fields",
            category=category_key,
            raw=raw,
        )
        return None

    url = url.strip()
    if not url.startswith(("http://", "https://")):
        logger.warning("feed_source_invalid_url", category=category_key, url=url)
        return None

    return Source(name=name, url=url)


def _parse_category(raw: Any, index: int) -> Category:
    if not isinstance(raw, dict):
        raise SourcesConfigError(f"category #{index} must be an object")

    name = raw.get("name")
    key = raw.get("key")
    if not isinstance(name, str) or not isinstance(key, str):
        raise SourcesConfigError(f"category #{index} needs string 'name' and 'key'")

    raw_sources = raw.get("sources") or []
    if not isinstance(raw_sources, list):
        raise SourcesConfigError(f"category {key!r}: 'sources' must be a list")

    sources = tuple(
        source
        for source in (_validate_source(item, key) for item in raw_sources)
        if source is not None
    )
    return Category(name=name, key=key, sources=sources)


def parse_categories(data: Dict[str, Any]) -> List[Category]:
    raw_categories = data.get("categories")
    if not isinstance(raw_categories, list):
        raise SourcesConfigError("'categories' must be a list")
    return [_parse_category(raw, idx) for idx, raw in enumerate(raw_categories)]


def load_categories(path: Path) -> List[Category]:
    categories = parse_categories(load_sources_config(path))
    logger.info(
        "feed_sources_loaded",
        path=str(path),
        categories=len(categories),
        sources=sum(len(c.sources) for c in categories),
    )
    return categories
