# Backend/rss_digest/config.py
from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rss_digest.models.preferences import DEFAULT_LANGUAGE, LANGUAGE_CODES

# Backend/rss_digest/config.py -> parents[1] = Backend
BACKEND_DIR = Path(__file__).resolve().parents[1]
ENV_FILE = BACKEND_DIR / ".env"
load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    # ---- Input / output ----
    SOURCES_PATH: Path = BACKEND_DIR / "configs" / "sources.json"
    OUTPUT_PATH: Path = BACKEND_DIR / "public" / "feed-data" / "all-feeds.json"

    # ---- Feed fetching ----
    FETCH_CONCURRENCY: int = 10
    DOMAIN_CONCURRENCY: int = 3
    FETCH_TIMEOUT_S: float = 30.0
    FETCH_MAX_RETRIES: int = 2
    FETCH_RETRY_BASE_DELAY_S: float = 2.0
    MAX_ITEMS_PER_FEED: int = 20
    MAX_DESCRIPTION_LENGTH: int = 500

    # ---- Translation ----
    TRANSLATE_ENABLED: bool = True
    TRANSLATE_TARGET_LANG: str = DEFAULT_LANGUAGE
    TRANSLATE_CONCURRENCY: int = 10
    TRANSLATE_TIMEOUT_S: float = 10.0
    TRANSLATE_MAX_RETRIES: int = 2
    TRANSLATE_RETRY_BASE_DELAY_S: float = 1.0
    TRANSLATE_PROGRESS_EVERY: int = 100

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("TRANSLATE_TARGET_LANG")
    @classmethod
    def _known_language(cls, value: str) -> str:
        if value not in LANGUAGE_CODES:
            raise ValueError(
                f"unsupported target language {value!r}; expected one of {sorted(LANGUAGE_CODES)}"
            )
        return value


def get_settings(**overrides) -> Settings:
    """Build settings from env/.env, with per-run overrides (CLI flags) on top."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
