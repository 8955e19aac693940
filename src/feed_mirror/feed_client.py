"""Remote feed fetching over the WordPress REST API."""

import json
import logging
from urllib.parse import urlparse

import httpx

from feed_mirror.errors import (
    FetchPayloadError,
    FetchStatusError,
    FetchTransportError,
)
from feed_mirror.models import RemoteItem, RemoteTerm
from feed_mirror.text import strip_tags

logger = logging.getLogger(__name__)


def fetch_remote_items(endpoint: str, client: httpx.Client) -> list[RemoteItem]:
    """Fetch the remote post listing with embedded terms and media.

    Args:
        endpoint: Full URL of the remote wp-json/wp/v2/posts endpoint.
        client: HTTP client; its timeout bounds the request.

    Returns:
        Decoded remote items. An empty list means nothing to import.

    Raises:
        FetchTransportError: If the request fails at the network level.
        FetchStatusError: If the remote answers with anything but 200.
        FetchPayloadError: If the body is not a JSON list.
    """
    _validate_url(endpoint)

    try:
        response = client.get(endpoint, params={"_embed": "1"})
    except httpx.HTTPError as e:
        raise FetchTransportError(f"Could not reach remote API: {e}", endpoint) from e

    if response.status_code != 200:
        raise FetchStatusError(response.status_code, endpoint)

    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FetchPayloadError("Invalid JSON payload from remote API.", endpoint) from e

    if not isinstance(data, list):
        raise FetchPayloadError("Invalid JSON payload from remote API.", endpoint)

    return _extract_items(data)


def _validate_url(url: str) -> None:
    """Validate that the URL has a valid format."""
    try:
        result = urlparse(url)
    except ValueError as e:
        raise FetchTransportError("Invalid URL format", url) from e
    if result.scheme not in ("http", "https") or not result.netloc:
        raise FetchTransportError("Invalid URL format: only http and https are supported", url)


def _extract_items(entries: list) -> list[RemoteItem]:
    """Decode remote post objects, skipping entries that are not objects."""
    items = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed remote entry: %r", entry)
            continue
        items.append(parse_remote_item(entry))
    return items


def parse_remote_item(data: dict) -> RemoteItem:
    """Convert one REST API post object into a RemoteItem.

    Missing values become empty strings or None, never errors.
    """
    embedded = data.get("_embedded")
    if not isinstance(embedded, dict):
        embedded = {}

    return RemoteItem(
        guid=extract_guid(data),
        title=extract_title(data),
        content=_rendered(data.get("content")),
        excerpt=strip_tags(_rendered(data.get("excerpt"))),
        slug=_optional_str(data.get("slug")),
        status=_optional_str(data.get("status")),
        date_gmt=_optional_str(data.get("date_gmt")),
        date=_optional_str(data.get("date")),
        terms=_extract_terms(embedded.get("wp:term")),
        featured_media_urls=_embedded_media_urls(embedded.get("wp:featuredmedia")),
        featured_media_href=_media_link(data.get("_links")),
    )


def extract_guid(data: dict) -> str:
    guid = data.get("guid")
    if isinstance(guid, dict):
        guid = guid.get("rendered")
    if guid is None:
        return ""
    return str(guid).strip()


def extract_title(data: dict) -> str:
    title = data.get("title")
    if isinstance(title, dict):
        title = title.get("rendered")
    if not isinstance(title, str):
        return ""
    return strip_tags(title)


def _rendered(value) -> str:
    if isinstance(value, dict):
        value = value.get("rendered")
    return value if isinstance(value, str) else ""


def _optional_str(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _extract_terms(groups) -> list[RemoteTerm]:
    """Flatten the wp:term groups (one list per taxonomy)."""
    terms: list[RemoteTerm] = []
    if not isinstance(groups, list):
        return terms
    for group in groups:
        if not isinstance(group, list):
            continue
        for term in group:
            if not isinstance(term, dict) or not term.get("taxonomy"):
                continue
            terms.append(
                RemoteTerm(
                    taxonomy=str(term["taxonomy"]),
                    name=strip_tags(str(term.get("name") or "")),
                    slug=_optional_str(term.get("slug")),
                )
            )
    return terms


def _embedded_media_urls(media) -> list[str]:
    if not isinstance(media, list):
        return []
    return [
        str(m["source_url"])
        for m in media
        if isinstance(m, dict) and m.get("source_url")
    ]


def _media_link(links) -> str | None:
    if not isinstance(links, dict):
        return None
    refs = links.get("wp:featuredmedia")
    if isinstance(refs, list) and refs and isinstance(refs[0], dict):
        return _optional_str(refs[0].get("href"))
    return None
