from __future__ import annotations

import json

import pytest

from rss_digest.config import Settings
from rss_digest.models.feeds import RunSummary
from rss_digest.workers import digest_bot


def _write_sources(tmp_path) -> Settings:
    sources = tmp_path / "sources.json"
    sources.write_text(
        json.dumps(
            {"categories": [{"name": "W", "key": "w", "sources": [{"name": "S", "url": "https://s.example/rss"}]}]}
        ),
        encoding="utf-8",
    )
    return Settings(SOURCES_PATH=sources, OUTPUT_PATH=tmp_path / "out.json")


@pytest.mark.asyncio
async def test_run_success(monkeypatch, tmp_path):
    settings = _write_sources(tmp_path)
    called = {}

    async def fake_run_digest(categories, settings, *, translate=None):
        called["categories"] = categories
        called["translate"] = translate
        return RunSummary(total_items=3, total_errors=1, output_path=str(settings.OUTPUT_PATH))

    monkeypatch.setattr(digest_bot, "run_digest", fake_run_digest)

    exit_code = await digest_bot.run(settings, translate=False)

    assert exit_code == 0
    assert [c.key for c in called["categories"]] == ["w"]
    assert called["translate"] is False


@pytest.mark.asyncio
async def test_run_failure_returns_nonzero(monkeypatch, tmp_path):
    settings = _write_sources(tmp_path)

    async def fake_run_digest(categories, settings, *, translate=None):
        raise OSError("disk full")

    monkeypatch.setattr(digest_bot, "run_digest", fake_run_digest)

    assert await digest_bot.run(settings) == 1


@pytest.mark.asyncio
async def test_malformed_sources_file_returns_nonzero(tmp_path):
    sources = tmp_path / "sources.json"
    sources.write_text("[]", encoding="utf-8")

    settings = Settings(SOURCES_PATH=sources, OUTPUT_PATH=tmp_path / "out.json")

    assert await digest_bot.run(settings) == 1
    assert not (tmp_path / "out.json").exists()


@pytest.mark.asyncio
async def test_main_async_applies_cli_overrides(monkeypatch, tmp_path):
    seen = {}

    async def fake_run(settings, *, translate=None):
        seen["settings"] = settings
        seen["translate"] = translate
        return 0

    monkeypatch.setattr(digest_bot, "run", fake_run)

    exit_code = await digest_bot.main_async(
        ["--output", str(tmp_path / "x.json"), "--target-lang", "de", "--no-translate"]
    )

    assert exit_code == 0
    assert seen["settings"].OUTPUT_PATH == tmp_path / "x.json"
    assert seen["settings"].TRANSLATE_TARGET_LANG == "de"
    assert seen["translate"] is False


@pytest.mark.asyncio
async def test_main_async_rejects_unknown_language():
    assert await digest_bot.main_async(["--target-lang", "klingon"]) == 1
