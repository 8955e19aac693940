"""Text normalization shared by the importer and the term resolver."""

import re
import unicodedata
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning


def strip_tags(html: str | None) -> str:
    """Remove all markup from an HTML fragment and collapse whitespace."""
    if not html:
        return ""
    with warnings.catch_warnings():
        # Titles that look like URLs or paths are still text
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(html, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    text = soup.get_text()
    return re.sub(r"\s+", " ", text).strip()


def slugify(value: str | None) -> str:
    """Generate a URL-friendly slug.

    Used both when looking terms up and when creating them, so the same
    name always lands on the same slug.
    """
    if not value:
        return ""
    value = strip_tags(value)
    value = unicodedata.normalize("NFKD", value)
    # Drop accents but keep non-latin letters
    value = "".join(c for c in value if not unicodedata.combining(c))
    value = value.lower()
    value = re.sub(r"[^\w\s-]", "", value)
    value = re.sub(r"[\s_-]+", "-", value)
    return value.strip("-")


def sanitize_key(value: str | None) -> str:
    """Lowercase a key and drop anything outside [a-z0-9_-]."""
    if not value:
        return ""
    return re.sub(r"[^a-z0-9_\-]", "", str(value).lower())
