"""Featured image lookup and download."""

import json
import logging
import mimetypes
import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

import httpx

from feed_mirror.errors import MediaDownloadError, MediaFetchError
from feed_mirror.models import Attachment, RemoteItem
from feed_mirror.store import ContentStore

logger = logging.getLogger(__name__)


class MediaResolver:
    """Finds a remote item's featured image and stores it locally."""

    def __init__(self, store: ContentStore, client: httpx.Client):
        self.store = store
        self.client = client

    def resolve_media(self, remote: RemoteItem) -> str | None:
        """Return the best featured image URL for a remote item.

        The embedded media is preferred; otherwise the linked media resource
        is queried for its source_url. Lookup failures mean "no image".
        """
        if remote.featured_media_urls:
            return remote.featured_media_urls[0]

        if not remote.featured_media_href:
            return None

        try:
            return self.fetch_source_url(remote.featured_media_href)
        except MediaFetchError as e:
            logger.warning("Featured media lookup failed for %s: %s", remote.guid or remote.title, e)
            return None

    def fetch_source_url(self, href: str) -> str:
        """Ask a linked media resource for just its source_url.

        Raises:
            MediaFetchError: On network failure, non-200 status, bad JSON
                or an empty source_url.
        """
        try:
            response = self.client.get(href, params={"_fields": "source_url"})
        except httpx.HTTPError as e:
            raise MediaFetchError(f"Could not reach media endpoint: {e}", href) from e

        if response.status_code != 200:
            raise MediaFetchError(f"Unexpected status code {response.status_code}", href)

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MediaFetchError("Invalid JSON payload from media endpoint", href) from e

        source_url = data.get("source_url") if isinstance(data, dict) else None
        if not source_url:
            raise MediaFetchError("Media endpoint returned no source_url", href)
        return str(source_url)

    def download_and_attach(self, item_id: int, image_url: str) -> Attachment:
        """Download an image and set it as the item's thumbnail.

        Raises:
            MediaDownloadError: If the download or the local write fails.
        """
        try:
            response = self.client.get(image_url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise MediaDownloadError(str(e) or type(e).__name__, image_url) from e

        if response.status_code != 200:
            raise MediaDownloadError(f"HTTP {response.status_code}", image_url)

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if not content_type.startswith("image/"):
            raise MediaDownloadError(
                f"Sorry, this file type is not permitted: {content_type or 'unknown'}",
                image_url,
            )

        if not response.content:
            raise MediaDownloadError("Empty response body", image_url)

        filename = _filename_from_url(image_url, content_type)
        attachment = self.store.store_attachment(
            item_id, filename, response.content, content_type, source_url=image_url
        )
        self.store.set_thumbnail(item_id, attachment.id)
        return attachment


def _filename_from_url(url: str, content_type: str) -> str:
    """Derive a safe local filename from the last path segment of a URL."""
    name = PurePosixPath(unquote(urlparse(url).path)).name
    name = re.sub(r"[^A-Za-z0-9._-]", "-", name).strip(".-") or "image"
    if not PurePosixPath(name).suffix:
        name += mimetypes.guess_extension(content_type) or ""
    return name
