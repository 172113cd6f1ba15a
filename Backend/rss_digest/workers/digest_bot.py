from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from rss_digest.config import Settings, get_settings
from rss_digest.core.logging import configure_logging, get_logger
from rss_digest.core.request_id import with_run_id
from rss_digest.models.feed_sources import load_categories
from rss_digest.services.digest_service import run_digest

WORKER_NAME = "digest_bot"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="DigestBot — fetch all configured feeds, translate them and write one snapshot."
    )
    parser.add_argument("--sources", type=Path, default=None, help="Path to the sources JSON file.")
    parser.add_argument("--output", type=Path, default=None, help="Where to write the snapshot JSON.")
    parser.add_argument(
        "--target-lang",
        default=None,
        help="Target language code for translations (e.g. zh-CN, ja, de).",
    )
    parser.add_argument(
        "--no-translate",
        action="store_true",
        help="Skip the translation stage.",
    )
    return parser.parse_args(argv)


async def run(settings: Settings, *, translate: Optional[bool] = None) -> int:
    logger = get_logger().bind(worker=WORKER_NAME)
    try:
        categories = load_categories(settings.SOURCES_PATH)
        summary = await run_digest(categories, settings, translate=translate)
    except Exception as exc:
        logger.error("digest_failed", error=str(exc), error_type=type(exc).__name__)
        return 1

    logger.info(
        "digest_finished",
        total_items=summary.total_items,
        total_errors=summary.total_errors,
        output=summary.output_path,
    )
    return 0


async def main_async(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = get_settings(
            SOURCES_PATH=args.sources,
            OUTPUT_PATH=args.output,
            TRANSLATE_TARGET_LANG=args.target_lang,
        )
    except ValueError as exc:
        configure_logging(service_name="worker")
        get_logger().bind(worker=WORKER_NAME).error("digest_invalid_settings", error=str(exc))
        return 1

    configure_logging(service_name="worker", level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    with with_run_id():
        return await run(settings, translate=False if args.no_translate else None)


def main() -> None:
    exit_code = asyncio.run(main_async())
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
