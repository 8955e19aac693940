"""Import orchestration: one remote listing in, local items out."""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
from dateutil.parser import ParserError
from dateutil.parser import parse as parse_date

from feed_mirror.audit import AuditLogger
from feed_mirror.authors import resolve_author
from feed_mirror.duplicates import DuplicateDetector
from feed_mirror.errors import ConfigurationError, InsertError, MediaDownloadError
from feed_mirror.feed_client import fetch_remote_items
from feed_mirror.media import MediaResolver
from feed_mirror.models import (
    ImportOutcome,
    ImportResult,
    LocalItem,
    RemoteItem,
    RunSummary,
    TermKind,
)
from feed_mirror.store import FLAG_META_KEY, GUID_META_KEY, ContentStore
from feed_mirror.terms import TermResolver
from feed_mirror.text import sanitize_key, slugify

logger = logging.getLogger(__name__)

ALLOWED_STATUSES = ("publish", "draft", "pending", "future")
DEFAULT_STATUS = "draft"
PLACEHOLDER_TITLE = "Remote Post"


class Importer:
    """Mirrors the remote listing into the local store.

    Every remote item is processed independently: a failure on one item is
    logged and recorded as skipped, and the run moves on. Only a missing
    endpoint or a failed listing fetch aborts the run.
    """

    def __init__(
        self,
        store: ContentStore,
        client: httpx.Client,
        source_url: str = "",
        site_timezone: str = "UTC",
        current_user_id: int | None = None,
    ):
        self.store = store
        self.client = client
        self.source_url = source_url
        self.current_user_id = current_user_id
        try:
            self.tz = ZoneInfo(site_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown timezone: {site_timezone!r}") from e

        self.terms = TermResolver(store)
        self.duplicates = DuplicateDetector(store)
        self.media = MediaResolver(store, client)
        self.audit = AuditLogger(store)

    def run(self, endpoint: str | None = None) -> RunSummary:
        """Fetch the remote listing and import every item in it.

        Raises:
            ConfigurationError: If no endpoint is configured.
            FetchError: If the listing cannot be fetched or decoded.
        """
        endpoint = endpoint or self.source_url
        if not endpoint:
            raise ConfigurationError("MIRROR_SOURCE_URL is not defined.")

        remote_items = fetch_remote_items(endpoint, self.client)
        summary = RunSummary()
        if not remote_items:
            logger.info("Remote listing is empty, nothing to import")
            return summary

        author_id = resolve_author(self.store, self.current_user_id)
        for remote in remote_items:
            try:
                result = self.import_item(remote, author_id)
            except Exception:
                logger.exception("Import of remote item %r failed", remote.guid or remote.title)
                result = ImportResult(
                    guid=remote.guid,
                    title=remote.title,
                    outcome=ImportOutcome.SKIPPED_ERROR,
                )
            summary.results.append(result)

        logger.info(
            "Import run complete: %(created)d created, %(updated)d updated, %(skipped)d skipped",
            summary.as_dict(),
        )
        return summary

    def import_item(self, remote: RemoteItem, author_id: int) -> ImportResult:
        """Create or update the local item for one remote item."""
        guid = remote.guid
        title = remote.title

        # Terms are refreshed on every run so remote recategorisation propagates
        tax_input = self.terms.resolve(remote.terms)

        existing_id = self.duplicates.find_existing(guid, title)
        if existing_id is not None:
            return self._update_existing(existing_id, remote, tax_input)

        item = self.build_item(remote, author_id)
        try:
            item_id = self.store.insert_item(item)
        except InsertError as e:
            logger.warning("Skipping remote item %r: %s", guid or title, e)
            return ImportResult(guid=guid, title=title, outcome=ImportOutcome.SKIPPED_ERROR)

        if guid and not self.store.add_item_meta(item_id, GUID_META_KEY, guid):
            # Another run claimed the guid between lookup and insert
            self.store.delete_item(item_id)
            owners = self.store.find_items_by_meta(GUID_META_KEY, guid)
            if not owners:
                logger.warning("Could not record guid %r for new item %d", guid, item_id)
                return ImportResult(guid=guid, title=title, outcome=ImportOutcome.SKIPPED_ERROR)
            logger.info("Guid %r already belongs to item %d, updating it", guid, owners[0])
            return self._update_existing(owners[0], remote, tax_input)
        self.store.add_item_meta(item_id, FLAG_META_KEY, "1")
        self._sync_terms(item_id, tax_input)
        warnings = self._attach_featured_media(item_id, remote)

        return self._result(item_id, remote, ImportOutcome.CREATED, warnings)

    def _update_existing(
        self, item_id: int, remote: RemoteItem, tax_input: dict[TermKind, list[int]]
    ) -> ImportResult:
        self._sync_terms(item_id, tax_input)
        if remote.guid:
            self.store.update_item_meta(item_id, GUID_META_KEY, remote.guid)
        self.store.update_item_meta(item_id, FLAG_META_KEY, "1")
        return self._result(item_id, remote, ImportOutcome.UPDATED)

    def build_item(self, remote: RemoteItem, author_id: int) -> LocalItem:
        """Build a new local item from remote data."""
        title = remote.title or PLACEHOLDER_TITLE
        date, date_gmt = self._publication_dates(remote)
        return LocalItem(
            title=title,
            content=remote.content,
            excerpt=remote.excerpt,
            slug=slugify(remote.slug) if remote.slug else slugify(title),
            status=normalize_status(remote.status),
            author_id=author_id,
            date=date,
            date_gmt=date_gmt,
        )

    def _sync_terms(self, item_id: int, tax_input: dict[TermKind, list[int]]) -> None:
        for kind in TermKind:
            self.store.set_item_terms(item_id, tax_input.get(kind, []), kind)

    def _attach_featured_media(self, item_id: int, remote: RemoteItem) -> list[str]:
        """Download the featured image. Failures only produce warnings."""
        image_url = self.media.resolve_media(remote)
        if not image_url:
            return [self.audit.missing_image(remote.guid)]

        try:
            self.media.download_and_attach(item_id, image_url)
        except MediaDownloadError as e:
            return [self.audit.download_failed(image_url, str(e))]
        return []

    def _publication_dates(self, remote: RemoteItem) -> tuple[datetime | None, datetime | None]:
        """Return (local date, GMT date), preferring the remote GMT field."""
        gmt = _parse(remote.date_gmt)
        if gmt is not None:
            if gmt.tzinfo is None:
                gmt = gmt.replace(tzinfo=timezone.utc)
            gmt = gmt.astimezone(timezone.utc)
            return gmt.astimezone(self.tz).replace(tzinfo=None), gmt

        local = _parse(remote.date)
        if local is not None:
            if local.tzinfo is None:
                local = local.replace(tzinfo=self.tz)
            return local.astimezone(self.tz).replace(tzinfo=None), local.astimezone(timezone.utc)

        return None, None

    def _result(
        self,
        item_id: int,
        remote: RemoteItem,
        outcome: ImportOutcome,
        warnings: list[str] | None = None,
    ) -> ImportResult:
        entry = self.audit.record(item_id, remote)
        return ImportResult(
            guid=remote.guid,
            title=entry.title,
            outcome=outcome,
            item_id=item_id,
            categories=entry.categories,
            tags=entry.tags,
            images=entry.images,
            warnings=warnings or [],
        )


def normalize_status(status: str | None) -> str:
    """Map a remote status onto the allow-list, defaulting to draft."""
    key = sanitize_key(status)
    return key if key in ALLOWED_STATUSES else DEFAULT_STATUS


def _parse(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parse_date(value)
    except (ParserError, ValueError, OverflowError):
        return None
