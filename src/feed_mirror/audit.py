"""Audit trail of import decisions.

Each stored item produces one line on the ``feed_mirror.audit`` logger::

    AutoBlogAPI rastreo -> titulo: "Hello World" | categorias: ["News"] | tags: [] | imagenes: []

Lists are JSON arrays and are always present, ``[]`` when empty.
"""

import json
import logging
from dataclasses import dataclass, field

from feed_mirror.models import RemoteItem, TermKind
from feed_mirror.store import ContentStore

logger = logging.getLogger("feed_mirror.audit")


@dataclass
class AuditEntry:
    title: str
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)

    def format(self) -> str:
        return 'AutoBlogAPI rastreo -> titulo: "{}" | categorias: {} | tags: {} | imagenes: {}'.format(
            self.title,
            _json_list(self.categories),
            _json_list(self.tags),
            _json_list(self.images),
        )


class AuditLogger:
    """Writes the per-item trace lines and media warnings."""

    def __init__(self, store: ContentStore):
        self.store = store

    def record(self, item_id: int, remote: RemoteItem) -> AuditEntry:
        """Log what is now stored locally for an item and return it."""
        entry = self.describe(item_id, remote)
        logger.info(entry.format())
        return entry

    def describe(self, item_id: int, remote: RemoteItem) -> AuditEntry:
        item = self.store.get_item(item_id)
        title = item.title if item else remote.title

        images: list[str] = []
        thumbnail = self.store.get_thumbnail(item_id)
        if thumbnail is not None:
            images.append(thumbnail.url)
        else:
            images.extend(remote.featured_media_urls)

        return AuditEntry(
            title=title,
            categories=[t.name for t in self.store.get_item_terms(item_id, TermKind.CATEGORY)],
            tags=[t.name for t in self.store.get_item_terms(item_id, TermKind.TAG)],
            images=images,
        )

    def missing_image(self, guid: str) -> str:
        message = f"AutoBlogAPI: sin imagen destacada para el GUID {guid}"
        logger.warning(message)
        return message

    def download_failed(self, image_url: str, reason: str) -> str:
        message = f"AutoBlogAPI: error al descargar imagen {image_url} -> {reason}"
        logger.warning(message)
        return message


def _json_list(values: list[str]) -> str:
    return json.dumps(list(values), ensure_ascii=False)
