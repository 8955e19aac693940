"""Data models for Feed Mirror."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class TermKind(str, Enum):
    """Taxonomies mirrored from the remote site."""

    CATEGORY = "category"
    TAG = "post_tag"


class ImportOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED_ERROR = "skipped-error"


@dataclass(frozen=True)
class Found(Generic[T]):
    """A lookup that matched something already stored locally."""

    value: T


@dataclass(frozen=True)
class Created(Generic[T]):
    """A lookup that had to create the local record."""

    value: T


@dataclass
class RemoteTerm:
    """A taxonomy term embedded in a remote item."""

    taxonomy: str
    name: str
    slug: str | None = None


@dataclass
class RemoteItem:
    """One article as delivered by the remote feed. Never stored as-is."""

    guid: str
    title: str
    content: str = ""
    excerpt: str = ""
    slug: str | None = None
    status: str | None = None
    date_gmt: str | None = None
    date: str | None = None
    terms: list[RemoteTerm] = field(default_factory=list)
    featured_media_urls: list[str] = field(default_factory=list)
    featured_media_href: str | None = None


@dataclass
class Term:
    """A local taxonomy term."""

    kind: TermKind
    name: str
    slug: str
    id: int | None = None


@dataclass
class User:
    """A local account that imported content can be attributed to."""

    login: str
    role: str = "subscriber"
    id: int | None = None


@dataclass
class Attachment:
    """A downloaded media file stored locally."""

    item_id: int
    path: str
    url: str
    content_type: str
    source_url: str | None = None
    id: int | None = None


@dataclass
class LocalItem:
    """An article stored in the local content store."""

    title: str
    content: str = ""
    excerpt: str = ""
    slug: str = ""
    status: str = "draft"
    item_type: str = "post"
    author_id: int | None = None
    date: datetime | None = None
    date_gmt: datetime | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    thumbnail_id: int | None = None
    id: int | None = None


@dataclass
class ImportResult:
    """What happened to a single remote item during a run."""

    guid: str
    title: str
    outcome: ImportOutcome
    item_id: int | None = None
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    """Results of one full import run."""

    results: list[ImportResult] = field(default_factory=list)

    def count(self, outcome: ImportOutcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    def as_dict(self) -> dict:
        return {
            "processed": len(self.results),
            "created": self.count(ImportOutcome.CREATED),
            "updated": self.count(ImportOutcome.UPDATED),
            "skipped": self.count(ImportOutcome.SKIPPED_ERROR),
        }
