"""
Interfaces of the reader-side state kept by the presentation layer.

The digest pipeline never touches these; they document what the reader
stores next to the snapshot: read/unread membership keyed by `link_id`, and
the preferred target language.
"""

from __future__ import annotations

from typing import Iterable, List, Protocol, Tuple

DEFAULT_LANGUAGE = "zh-CN"

LANGUAGES: List[Tuple[str, str]] = [
    ("zh-CN", "中文 (简体)"),
    ("zh-TW", "中文 (繁體)"),
    ("ja", "日本語"),
    ("ko", "한국어"),
    ("es", "Español"),
    ("fr", "Français"),
    ("de", "Deutsch"),
    ("ru", "Русский"),
    ("pt", "Português"),
    ("ar", "العربية"),
]

LANGUAGE_CODES = frozenset(code for code, _ in LANGUAGES)


def link_id(link: str) -> str:
    """
    Stable identifier for an article link: 32-bit signed `h * 31 + c` hash
    over UTF-16 code units, rendered as a decimal string.
    """
    h = 0
    encoded = link.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(h)


class ReadStateStore(Protocol):
    def is_read(self, link: str) -> bool: ...

    def mark_as_read(self, link: str) -> None: ...

    def mark_all_as_read(self, links: Iterable[str]) -> None: ...

    def read_count(self) -> int: ...


class LanguagePreference(Protocol):
    def get_language(self) -> str: ...

    def set_language(self, code: str) -> None: ...
