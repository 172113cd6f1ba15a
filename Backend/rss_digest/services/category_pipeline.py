from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional, Sequence, Tuple

from rss_digest.core.logging import get_logger
from rss_digest.core.task_runner import run_bounded
from rss_digest.models.feeds import Category, CategoryResult, FeedItem, FetchResult
from rss_digest.services.feed_fetch_service import FeedFetchService

logger = get_logger()

DEFAULT_CONCURRENCY = 10


def parse_pub_date(value: Optional[str]) -> float:
    """
    POSIX timestamp of a feed date string (RFC 822 or ISO 8601).
    Missing or unparsable values map to 0 so they sort last.
    """
    if not value or not value.strip():
        return 0.0
    text = value.strip()

    parsed: Optional[datetime] = None
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            parsed = datetime.fromisoformat(iso)
        except ValueError:
            return 0.0

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def sort_items_by_date(items: Sequence[FeedItem]) -> List[FeedItem]:
    # Stable: items with equal dates keep their source order.
    return sorted(items, key=lambda item: parse_pub_date(item.pub_date), reverse=True)


def merge_fetch_results(results: Sequence[FetchResult]) -> Tuple[List[FeedItem], int]:
    items: List[FeedItem] = []
    errors = 0
    for result in results:
        if not result.ok:
            errors += 1
            continue
        items.extend(result.items)
    return items, errors


@dataclass
class CategoryPipelineResult:
    categories: List[CategoryResult] = field(default_factory=list)
    total_errors: int = 0

    @property
    def total_items(self) -> int:
        return sum(category.item_count for category in self.categories)


class CategoryPipeline:
    def __init__(self, fetch_service: FeedFetchService, *, concurrency: int = DEFAULT_CONCURRENCY) -> None:
        self.fetch_service = fetch_service
        self.concurrency = concurrency

    async def run_category(self, category: Category) -> Tuple[CategoryResult, int]:
        logger.info("category_started", category=category.name, sources=len(category.sources))

        # Domain pressure does not carry over from the previous category.
        self.fetch_service.limiter.reset()

        operations = [
            (lambda source=source: self.fetch_service.fetch_with_retry(source))
            for source in category.sources
        ]
        results = await run_bounded(operations, self.concurrency)

        items, errors = merge_fetch_results(results)
        items = sort_items_by_date(items)
        result = CategoryResult(
            name=category.name,
            key=category.key,
            item_count=len(items),
            items=items,
        )
        logger.info(
            "category_finished",
            category=category.name,
            items=result.item_count,
            failed_sources=errors,
        )
        return result, errors

    async def run(self, categories: Sequence[Category]) -> CategoryPipelineResult:
        outcome = CategoryPipelineResult()
        for category in categories:
            if not category.sources:
                continue
            result, errors = await self.run_category(category)
            outcome.categories.append(result)
            outcome.total_errors += errors
        return outcome
