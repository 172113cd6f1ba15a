from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence

import httpx

from rss_digest.core.logging import get_logger
from rss_digest.core.task_runner import run_bounded
from rss_digest.models.feeds import FeedItem
from rss_digest.models.preferences import DEFAULT_LANGUAGE
from rss_digest.services.feed_fetch_service import backoff_delay

logger = get_logger()

TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"
DEFAULT_TRANSLATE_CONCURRENCY = 10
DEFAULT_TRANSLATE_TIMEOUT_S = 10.0
DEFAULT_TRANSLATE_MAX_RETRIES = 2
DEFAULT_TRANSLATE_RETRY_BASE_DELAY_S = 1.0
DEFAULT_PROGRESS_EVERY = 100


def join_segments(data: Any) -> str:
    """Concatenate `segment[0]` over the first element of a translate_a/single response."""
    segments = data[0]
    return "".join(
        segment[0]
        for segment in segments
        if isinstance(segment, list) and segment and isinstance(segment[0], str)
    )


class ProgressReporter:
    """Logs `completed/total` every `every` completions and on the last one."""

    def __init__(self, total: int, *, every: int = DEFAULT_PROGRESS_EVERY) -> None:
        self.total = total
        self.every = max(1, every)
        self.completed = 0

    def advance(self) -> None:
        self.completed += 1
        if self.completed % self.every == 0 or self.completed == self.total:
            logger.info(
                "translation_progress",
                completed=self.completed,
                total=self.total,
                progress=f"{self.completed}/{self.total}",
            )


@dataclass
class TranslationChannels:
    """
    Write targets for translation tasks: one slot per item in each channel.
    Every slot is owned by at most one task; `apply` hands the results over
    to the items once all tasks have settled.
    """

    titles: List[Optional[str]] = field(default_factory=list)
    descriptions: List[Optional[str]] = field(default_factory=list)

    @classmethod
    def for_items(cls, count: int) -> "TranslationChannels":
        return cls(titles=[None] * count, descriptions=[None] * count)

    def apply(self, items: Sequence[FeedItem]) -> None:
        for index, item in enumerate(items):
            title = self.titles[index]
            if title is not None:
                item.title_translated = title
            description = self.descriptions[index]
            if description is not None:
                item.description_translated = description


class TranslationService:
    def __init__(
        self,
        *,
        target_lang: str = DEFAULT_LANGUAGE,
        concurrency: int = DEFAULT_TRANSLATE_CONCURRENCY,
        timeout_s: float = DEFAULT_TRANSLATE_TIMEOUT_S,
        max_retries: int = DEFAULT_TRANSLATE_MAX_RETRIES,
        retry_base_delay_s: float = DEFAULT_TRANSLATE_RETRY_BASE_DELAY_S,
        progress_every: int = DEFAULT_PROGRESS_EVERY,
    ) -> None:
        self.target_lang = target_lang
        self.concurrency = concurrency
        self.timeout_s = timeout_s
        self.max_retries = max(0, max_retries)
        self.retry_base_delay_s = retry_base_delay_s
        self.progress_every = progress_every
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "TranslationService":
        self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client:
            await self._client.aclose()

    def _params(self, text: str) -> dict:
        return {"client": "gtx", "sl": "auto", "tl": self.target_lang, "dt": "t", "q": text}

    async def translate_text(self, text: str) -> str:
        """
        Translate one field. Never raises: every failure resolves to "".
        """
        if not text or not text.strip():
            return ""
        if self._client is None:
            raise RuntimeError("TranslationService client not initialized")

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                await asyncio.sleep(backoff_delay(attempt, self.retry_base_delay_s))
            try:
                response = await asyncio.wait_for(
                    self._client.get(TRANSLATE_URL, params=self._params(text)),
                    self.timeout_s,
                )
                if response.status_code == 429:
                    continue
                if not response.is_success:
                    logger.debug("translation_http_error", status=response.status_code)
                    return ""
                return join_segments(response.json())
            except (httpx.HTTPError, asyncio.TimeoutError, ValueError, TypeError, IndexError, KeyError) as exc:
                logger.debug("translation_attempt_failed", attempt=attempt + 1, error=str(exc))
        return ""

    def build_tasks(
        self,
        items: Sequence[FeedItem],
        channels: TranslationChannels,
        progress: Optional[ProgressReporter] = None,
    ) -> List[Callable[[], Awaitable[None]]]:
        tasks: List[Callable[[], Awaitable[None]]] = []

        def _task(slots: List[Optional[str]], index: int, text: str) -> Callable[[], Awaitable[None]]:
            async def _run() -> None:
                slots[index] = await self.translate_text(text)
                if progress is not None:
                    progress.advance()
            return _run

        for index, item in enumerate(items):
            tasks.append(_task(channels.titles, index, item.title))
            if item.description:
                tasks.append(_task(channels.descriptions, index, item.description))
            else:
                channels.descriptions[index] = ""
        return tasks

    async def translate_items(self, items: Sequence[FeedItem]) -> int:
        """Translate every title and non-empty description; returns the number of field tasks."""
        channels = TranslationChannels.for_items(len(items))
        total = sum(1 + (1 if item.description else 0) for item in items)
        progress = ProgressReporter(total, every=self.progress_every)
        tasks = self.build_tasks(items, channels, progress)

        logger.info(
            "translation_started",
            items=len(items),
            fields=total,
            target_lang=self.target_lang,
        )
        await run_bounded(tasks, self.concurrency)
        channels.apply(items)
        logger.info("translation_finished", fields=total)
        return total
