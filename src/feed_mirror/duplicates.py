"""Detection of remote items that were already imported."""

import logging

from feed_mirror.store import GUID_META_KEY, ContentStore

logger = logging.getLogger(__name__)


class DuplicateDetector:
    """Finds the local item corresponding to a remote guid or title."""

    def __init__(self, store: ContentStore, item_type: str = "post"):
        self.store = store
        self.item_type = item_type

    def find_existing(self, guid: str, title: str) -> int | None:
        """Return the id of an existing local item, or None if the item is new.

        The guid match is authoritative. The title match is only tried when
        the guid is empty and can collide for unrelated items sharing a title.
        """
        if guid:
            matches = self.store.find_items_by_meta(GUID_META_KEY, guid)
            if matches:
                return matches[0]
            return None

        if title:
            item_id = self.store.find_item_by_title(title, self.item_type)
            if item_id is not None:
                logger.debug("Matched item %d by title %r", item_id, title)
                return item_id

        return None
