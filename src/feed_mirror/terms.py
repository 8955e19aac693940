"""Mapping of remote taxonomy terms onto local terms."""

import logging

from feed_mirror.errors import TermCreationError
from feed_mirror.models import Created, Found, RemoteTerm, Term, TermKind
from feed_mirror.store import ContentStore
from feed_mirror.text import sanitize_key, slugify

logger = logging.getLogger(__name__)


class TermResolver:
    """Resolves remote terms to local term ids, creating missing terms."""

    def __init__(self, store: ContentStore, kinds: tuple[TermKind, ...] = tuple(TermKind)):
        self.store = store
        self.kinds = kinds

    def resolve(self, remote_terms: list[RemoteTerm]) -> dict[TermKind, list[int]]:
        """Group local term ids by kind for a remote item's terms.

        Unknown taxonomies, nameless terms and terms that fail to create
        are dropped. Each id appears once per kind, in first-seen order.
        """
        resolved: dict[TermKind, list[int]] = {kind: [] for kind in self.kinds}

        for remote in remote_terms:
            kind = self._kind(remote.taxonomy)
            if kind is None:
                continue

            result = self.resolve_term(remote, kind)
            if result is None:
                continue

            term_id = result.value.id
            if term_id not in resolved[kind]:
                resolved[kind].append(term_id)

        return resolved

    def resolve_term(self, remote: RemoteTerm, kind: TermKind) -> Found[Term] | Created[Term] | None:
        """Look a term up by slug within its kind, creating it when absent."""
        name = " ".join(remote.name.split())
        if not name:
            return None

        slug = slugify(remote.slug) if remote.slug else slugify(name)
        if not slug:
            return None

        existing = self.store.get_term_by_slug(slug, kind)
        if existing is not None:
            return Found(existing)

        try:
            term = self.store.insert_term(name, kind, slug)
        except TermCreationError as e:
            logger.warning("Skipping term %r (%s): %s", name, kind.value, e)
            return None

        logger.info("Created %s term %r (%s)", kind.value, name, slug)
        return Created(term)

    def _kind(self, taxonomy: str) -> TermKind | None:
        key = sanitize_key(taxonomy)
        for kind in self.kinds:
            if kind.value == key:
                return kind
        return None
