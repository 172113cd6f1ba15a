from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from rss_digest.core.domain_limiter import get_domain


@dataclass(frozen=True)
class Source:
    """Single configured feed. Identity is the url."""

    name: str
    url: str

    @property
    def domain(self) -> str:
        return get_domain(self.url)


@dataclass(frozen=True)
class Category:
    name: str
    key: str
    sources: Tuple[Source, ...] = ()


class FeedItem(BaseModel):
    """
    One normalized feed entry as stored in the snapshot.
    The translated fields are filled in after the translation stage and are
    left out of the document while unset.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = Field(default="", alias="pubDate")
    source: str
    title_translated: Optional[str] = Field(default=None, alias="titleTranslated")
    description_translated: Optional[str] = Field(default=None, alias="descriptionTranslated")


@dataclass
class FetchResult:
    source_name: str
    items: List[FeedItem] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CategoryResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    key: str
    item_count: int = Field(alias="itemCount")
    items: List[FeedItem] = Field(default_factory=list)


class Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    categories: List[CategoryResult] = Field(default_factory=list)
    fetched_at: str = Field(alias="fetchedAt")

    def all_items(self) -> List[FeedItem]:
        return [item for category in self.categories for item in category.items]


@dataclass
class RunSummary:
    total_items: int = 0
    total_errors: int = 0
    total_translations: int = 0
    output_path: Optional[str] = None
