from __future__ import annotations

import json

import pytest

from rss_digest.config import Settings
from rss_digest.models.feeds import Category, Source
from rss_digest.services import digest_service
from rss_digest.services.translation_service import TranslationService

A_URL = "https://a.example/rss"
B_URL = "https://b.example/rss"


def _rss(count: int) -> str:
    items = "".join(
        f"<item><title>A{i}</title><link>https://a.example/{i}</link>"
        f"<description>{'x' * 600 if i == 0 else 'short'}</description>"
        f"<pubDate>Mon, 0{i + 1} Jan 2024 10:00:00 GMT</pubDate></item>"
        for i in range(count)
    )
    return f'<?xml version="1.0"?><rss version="2.0"><channel><title>A</title>{items}</channel></rss>'


def _settings(tmp_path, **overrides) -> Settings:
    values = {
        "OUTPUT_PATH": tmp_path / "out" / "all-feeds.json",
        "FETCH_RETRY_BASE_DELAY_S": 0,
        "TRANSLATE_RETRY_BASE_DELAY_S": 0,
        "TRANSLATE_ENABLED": True,
    }
    values.update(overrides)
    return Settings(**values)


def _categories() -> list[Category]:
    return [
        Category(name="Alpha", key="alpha", sources=(Source(name="Source A", url=A_URL),)),
        Category(name="Beta", key="beta", sources=(Source(name="Source B", url=B_URL),)),
    ]


@pytest.mark.asyncio
async def test_end_to_end_partial_failure(httpx_mock, tmp_path):
    httpx_mock.add_response(url=A_URL, text=_rss(5))
    for _ in range(3):
        httpx_mock.add_response(url=B_URL, status_code=503)

    summary = await digest_service.run_digest(_categories(), _settings(tmp_path), translate=False)

    assert summary.total_items == 5
    assert summary.total_errors == 1
    assert summary.total_translations == 0

    data = json.loads((tmp_path / "out" / "all-feeds.json").read_text(encoding="utf-8"))
    alpha, beta = data["categories"]
    assert alpha["itemCount"] == 5
    assert beta["itemCount"] == 0
    assert beta["items"] == []
    assert data["fetchedAt"].endswith("Z")

    # Newest first; the 600-char description was trimmed on ingest.
    assert [item["title"] for item in alpha["items"]] == ["A4", "A3", "A2", "A1", "A0"]
    assert len(alpha["items"][-1]["description"]) == 500
    assert all(item["source"] == "Source A" for item in alpha["items"])
    assert len(httpx_mock.get_requests(url=B_URL)) == 3


@pytest.mark.asyncio
async def test_translation_runs_after_fetching(httpx_mock, tmp_path, monkeypatch):
    httpx_mock.add_response(url=A_URL, text=_rss(2))
    for _ in range(3):
        httpx_mock.add_response(url=B_URL, status_code=503)

    async def fake_translate(self, text: str) -> str:
        return "" if not text.strip() else f"zh:{text[:5]}"

    monkeypatch.setattr(TranslationService, "translate_text", fake_translate)

    snapshot, summary = await digest_service.build_snapshot(_categories(), _settings(tmp_path))

    assert summary.total_translations == 4
    items = snapshot.categories[0].items
    assert items[0].title_translated == "zh:A1"
    assert items[0].description_translated == "zh:short"
    assert items[1].description_translated == "zh:xxxxx"


@pytest.mark.asyncio
async def test_translation_can_be_disabled_by_settings(httpx_mock, tmp_path):
    httpx_mock.add_response(url=A_URL, text=_rss(1))
    for _ in range(3):
        httpx_mock.add_response(url=B_URL, status_code=503)

    snapshot, summary = await digest_service.build_snapshot(
        _categories(), _settings(tmp_path, TRANSLATE_ENABLED=False)
    )

    assert summary.total_translations == 0
    assert snapshot.categories[0].items[0].title_translated is None
