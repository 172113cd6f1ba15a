from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple

from rss_digest.config import Settings
from rss_digest.core.domain_limiter import DomainLimiter
from rss_digest.core.logging import get_logger
from rss_digest.models.feeds import Category, RunSummary, Snapshot
from rss_digest.services.category_pipeline import CategoryPipeline
from rss_digest.services.feed_fetch_service import FeedFetchService
from rss_digest.services.snapshot_service import SnapshotBuilder, write_snapshot
from rss_digest.services.translation_service import TranslationService

logger = get_logger()


def build_fetch_service(settings: Settings) -> FeedFetchService:
    return FeedFetchService(
        limiter=DomainLimiter(settings.DOMAIN_CONCURRENCY),
        timeout_s=settings.FETCH_TIMEOUT_S,
        max_retries=settings.FETCH_MAX_RETRIES,
        retry_base_delay_s=settings.FETCH_RETRY_BASE_DELAY_S,
        max_items=settings.MAX_ITEMS_PER_FEED,
        max_description_length=settings.MAX_DESCRIPTION_LENGTH,
    )


def build_translation_service(settings: Settings) -> TranslationService:
    return TranslationService(
        target_lang=settings.TRANSLATE_TARGET_LANG,
        concurrency=settings.TRANSLATE_CONCURRENCY,
        timeout_s=settings.TRANSLATE_TIMEOUT_S,
        max_retries=settings.TRANSLATE_MAX_RETRIES,
        retry_base_delay_s=settings.TRANSLATE_RETRY_BASE_DELAY_S,
        progress_every=settings.TRANSLATE_PROGRESS_EVERY,
    )


async def build_snapshot(
    categories: Sequence[Category],
    settings: Settings,
    *,
    translate: Optional[bool] = None,
) -> Tuple[Snapshot, RunSummary]:
    """Fetch every category, then translate the merged item set. Nothing is written here."""
    builder = SnapshotBuilder()

    async with build_fetch_service(settings) as fetch_service:
        pipeline = CategoryPipeline(fetch_service, concurrency=settings.FETCH_CONCURRENCY)
        outcome = await pipeline.run(categories)
    builder.extend(outcome.categories)
    snapshot = builder.build()

    summary = RunSummary(total_items=outcome.total_items, total_errors=outcome.total_errors)

    should_translate = settings.TRANSLATE_ENABLED if translate is None else translate
    if should_translate:
        async with build_translation_service(settings) as translation_service:
            summary.total_translations = await translation_service.translate_items(snapshot.all_items())
    else:
        logger.info("translation_skipped", items=summary.total_items)

    return snapshot, summary


async def run_digest(
    categories: Sequence[Category],
    settings: Settings,
    *,
    output_path: Optional[Path] = None,
    translate: Optional[bool] = None,
) -> RunSummary:
    snapshot, summary = await build_snapshot(categories, settings, translate=translate)

    target = write_snapshot(snapshot, output_path or settings.OUTPUT_PATH)
    summary.output_path = str(target)

    logger.info(
        "digest_summary",
        total_items=summary.total_items,
        total_errors=summary.total_errors,
        total_translations=summary.total_translations,
        output=summary.output_path,
    )
    return summary
